"""SQLAlchemy ORM models for Filestore."""

from filestore.models.base import Base
from filestore.models.file_record import StoredFile

__all__ = [
    "Base",
    "StoredFile",
]
