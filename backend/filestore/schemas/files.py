"""File schemas — registry records and their public listing form."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

from filestore.utils.display import file_kind, format_size, type_label


class FileRecord(BaseModel):
    """One file as delivered in a registry snapshot."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    mime_type: str = ""
    size_bytes: int
    payload: str
    created_at: datetime | None = None  # None while the write is pending


@dataclass(frozen=True)
class RawFileInput:
    """An upload as received from the client, before encoding."""
    name: str
    mime_type: str
    data: bytes
    size_bytes: int

    @classmethod
    def from_bytes(cls, name: str, data: bytes, mime_type: str = "") -> "RawFileInput":
        return cls(name=name, mime_type=mime_type, data=data, size_bytes=len(data))


class FileItem(BaseModel):
    """File metadata for listing (payload omitted)."""
    id: str
    name: str
    mime_type: str
    size_bytes: int
    size_label: str
    kind: str
    type_label: str
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileItem":
        return cls(
            id=record.id,
            name=record.name,
            mime_type=record.mime_type,
            size_bytes=record.size_bytes,
            size_label=format_size(record.size_bytes),
            kind=file_kind(record.mime_type),
            type_label=type_label(record.mime_type),
            created_at=record.created_at,
        )


class FileListing(BaseModel):
    files: list[FileItem]
    count: int
    stale: bool = False  # last subscription update failed

    @classmethod
    def from_records(cls, records, stale: bool = False) -> "FileListing":
        items = [FileItem.from_record(r) for r in records]
        return cls(files=items, count=len(items), stale=stale)


class Notice(BaseModel):
    """Transient user notification — success or error only."""
    message: str
    type: Literal["success", "error"] = "success"
