"""Filestore configuration — Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "Filestore"
    debug: bool = True
    log_level: str = "INFO"

    # Network
    host: str = "127.0.0.1"
    port: int = 8000
    api_prefix: str = "/api"
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # Storage paths (relative resolved from backend dir at runtime)
    data_dir: str = "./data"
    database_path: str = "./data/filestore.db"

    # Registry namespace — every app id sees its own file collection
    app_id: str = "default-app-id"

    # Admin gate: plain shared PIN, compared as-is
    admin_pin: str = "432272"

    # Raw file size ceiling; the encoded payload is ~4/3 larger
    max_upload_bytes: int = 700_000

    # Seconds between checks for changes made by other processes (0 = off)
    registry_poll_seconds: int = 5

    uvicorn_workers: int = 1
    max_db_connections: int = 5

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="FILESTORE_",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str) and not value.startswith("["):
            return [o.strip() for o in value.split(",") if o.strip()]
        if isinstance(value, list):
            return value
        return ["http://localhost:5173"]

    @field_validator("max_upload_bytes")
    @classmethod
    def _positive_ceiling(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_upload_bytes must be positive")
        return value

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Ensure data paths are absolute."""
        base = Path(__file__).resolve().parent.parent  # backend/
        for field in ("data_dir", "database_path"):
            val = getattr(self, field)
            if not Path(val).is_absolute():
                setattr(self, field, str(base / val))
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
