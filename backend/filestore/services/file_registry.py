"""File registry view-model — local mirror of the registry plus intents."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from sqlalchemy.exc import SQLAlchemyError

from filestore.exceptions import (
    DeleteFailedError,
    SubscriptionError,
    TooLargeError,
    UploadFailedError,
)
from filestore.utils import codec

if TYPE_CHECKING:
    from filestore.schemas.files import FileRecord, RawFileInput
    from filestore.services.registry import RegistryClient, SubscriptionHandle

logger = logging.getLogger(__name__)

# Failures a registry call may surface; anything else is a bug and propagates
REGISTRY_ERRORS = (SQLAlchemyError, OSError)


class FileRegistryViewModel:
    """Mirrors the registry's ordered file list and forwards add/remove.

    ``add`` and ``remove`` never touch the cached list themselves. The list
    only changes when the registry echoes a new snapshot back through the
    subscription, and a snapshot always replaces the list wholesale.
    """

    def __init__(self, registry: RegistryClient, max_upload_bytes: int):
        self._registry = registry
        self._max_upload_bytes = max_upload_bytes
        self._files: tuple[FileRecord, ...] = ()
        self._last_error: SubscriptionError | None = None
        self._in_flight = 0

    @property
    def files(self) -> tuple[FileRecord, ...]:
        return self._files

    @property
    def last_error(self) -> SubscriptionError | None:
        """Error from the latest failed update, cleared by the next snapshot."""
        return self._last_error

    @property
    def uploading(self) -> bool:
        return self._in_flight > 0

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def get(self, file_id: str) -> FileRecord | None:
        for record in self._files:
            if record.id == file_id:
                return record
        return None

    async def subscribe(
        self,
        on_snapshot: Callable[[tuple[FileRecord, ...]], None] | None = None,
        on_error: Callable[[SubscriptionError], None] | None = None,
    ) -> SubscriptionHandle:
        """Start mirroring the registry. Optional callbacks see each update."""

        def _snapshot(records: list[FileRecord]) -> None:
            self._files = tuple(records)
            self._last_error = None
            if on_snapshot is not None:
                on_snapshot(self._files)

        def _error(exc: Exception) -> None:
            # Keep the last good snapshot; no retry here
            error = SubscriptionError(f"Error loading files: {exc}")
            self._last_error = error
            logger.error("File subscription error: %s", exc)
            if on_error is not None:
                on_error(error)

        return await self._registry.subscribe(_snapshot, _error)

    async def add(self, file: RawFileInput) -> None:
        """Encode and submit a new file. Raises TooLarge / UploadFailed."""
        if file.size_bytes > self._max_upload_bytes:
            logger.info(
                "Rejected %s: %d bytes exceeds %d",
                file.name, file.size_bytes, self._max_upload_bytes,
            )
            raise TooLargeError(file.size_bytes, self._max_upload_bytes)

        self._in_flight += 1
        try:
            await self._registry.create(
                name=file.name,
                mime_type=file.mime_type,
                size_bytes=file.size_bytes,
                payload=codec.encode(file.data, file.mime_type),
            )
        except REGISTRY_ERRORS as exc:
            logger.error("Upload error for %s: %s", file.name, exc)
            raise UploadFailedError() from exc
        finally:
            self._in_flight -= 1

    async def remove(self, file_id: str) -> None:
        """Submit a delete. Raises DeleteFailed; the record stays visible."""
        try:
            await self._registry.delete(file_id)
        except REGISTRY_ERRORS as exc:
            logger.error("Delete error for %s: %s", file_id, exc)
            raise DeleteFailedError() from exc
