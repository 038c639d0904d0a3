"""Admin gate schemas."""

from datetime import datetime

from pydantic import BaseModel


class LoginRequest(BaseModel):
    pin: str


class GateStatus(BaseModel):
    is_admin: bool
    state: str
    since: datetime
