"""System schemas."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    service: str = "filestore"
    files: int = 0
    subscribed: bool = False
