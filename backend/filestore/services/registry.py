"""File registry backed by SQLite — live snapshots, create, delete.

The registry is the only owner of stored files. Subscribers never see
diffs: after every committed mutation each subscriber receives the whole
collection, ordered newest first.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from sqlalchemy import delete, literal_column, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from filestore.models.file_record import StoredFile
from filestore.schemas.files import FileRecord

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[FileRecord]], None]
ErrorCallback = Callable[[Exception], None]


class SubscriptionHandle:
    """Cancellation token returned by ``subscribe``."""

    def __init__(self, release: Callable[[], None]):
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        """Stop delivery. Later calls are no-ops."""
        if self._release is None:
            return
        release, self._release = self._release, None
        release()


class RegistryClient(Protocol):
    async def subscribe(
        self, on_snapshot: SnapshotCallback, on_error: ErrorCallback
    ) -> SubscriptionHandle: ...

    async def create(
        self, *, name: str, mime_type: str, size_bytes: int, payload: str
    ) -> str: ...

    async def delete(self, file_id: str) -> None: ...


class SqlFileRegistry:
    """Registry of stored files for one app id, with live subscriptions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], app_id: str):
        self._sessions = session_factory
        self._app_id = app_id
        self._subscribers: dict[int, tuple[SnapshotCallback, ErrorCallback]] = {}
        self._tokens = itertools.count(1)
        self._lock = asyncio.Lock()
        self._last_created: datetime | None = None
        self._last_signature: tuple | None = None

    @property
    def app_id(self) -> str:
        return self._app_id

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(
        self, on_snapshot: SnapshotCallback, on_error: ErrorCallback
    ) -> SubscriptionHandle:
        """Register callbacks and deliver the current snapshot right away.

        Registration and the initial query happen under the registry lock,
        so no mutation can publish between them and the initial snapshot is
        never older than a later delivery.
        """
        async with self._lock:
            token = next(self._tokens)
            self._subscribers[token] = (on_snapshot, on_error)
            logger.debug("Registry subscriber %d added (app_id=%s)", token, self._app_id)

            try:
                records = await self.snapshot()
            except SQLAlchemyError as exc:
                logger.error("Initial snapshot failed: %s", exc)
                on_error(exc)
            else:
                self._deliver(token, on_snapshot, records)

        return SubscriptionHandle(lambda: self._remove_subscriber(token))

    async def create(
        self, *, name: str, mime_type: str, size_bytes: int, payload: str
    ) -> str:
        """Insert a file, assigning its id and timestamp. Returns the id."""
        async with self._lock:
            file_id = uuid.uuid4().hex
            row = StoredFile(
                id=file_id,
                app_id=self._app_id,
                name=name,
                mime_type=mime_type,
                size_bytes=size_bytes,
                payload=payload,
                created_at=self._next_timestamp(),
            )
            async with self._sessions() as session:
                session.add(row)
                await session.commit()

            logger.info("Stored file %s (%s, %d bytes)", file_id, name, size_bytes)
            await self._publish_locked()
        return file_id

    async def delete(self, file_id: str) -> None:
        """Delete a file by id. Unknown ids are ignored."""
        async with self._lock:
            async with self._sessions() as session:
                result = await session.execute(
                    delete(StoredFile).where(
                        StoredFile.app_id == self._app_id,
                        StoredFile.id == file_id,
                    )
                )
                await session.commit()

            if result.rowcount:
                logger.info("Deleted file %s", file_id)
            else:
                logger.info("Delete of unknown file %s ignored", file_id)
            await self._publish_locked()

    async def snapshot(self) -> list[FileRecord]:
        """Whole collection, newest first (pending timestamps first).

        Equal timestamps fall back to SQLite's rowid; a new row always gets a
        rowid above every existing one, so the later insertion sorts first.
        """
        async with self._sessions() as session:
            result = await session.execute(
                select(StoredFile)
                .where(StoredFile.app_id == self._app_id)
                .order_by(
                    StoredFile.created_at.desc().nulls_first(),
                    literal_column("stored_files.rowid").desc(),
                )
            )
            return [FileRecord.model_validate(row) for row in result.scalars().all()]

    async def publish(self, only_if_changed: bool = False) -> bool:
        """Push a fresh snapshot to every subscriber.

        With ``only_if_changed`` the snapshot is delivered only when the set
        differs from the last one published. Returns True if delivered.
        """
        async with self._lock:
            return await self._publish_locked(only_if_changed)

    async def _publish_locked(self, only_if_changed: bool = False) -> bool:
        # Caller holds self._lock: deliveries follow commit order
        if not self._subscribers:
            return False

        try:
            records = await self.snapshot()
        except SQLAlchemyError as exc:
            logger.error("Snapshot query failed: %s", exc)
            for _, on_error in list(self._subscribers.values()):
                on_error(exc)
            return False

        signature = tuple((r.id, r.created_at) for r in records)
        if only_if_changed and signature == self._last_signature:
            return False
        self._last_signature = signature

        for token, (on_snapshot, _) in list(self._subscribers.items()):
            self._deliver(token, on_snapshot, records)
        return True

    @staticmethod
    def _deliver(token: int, on_snapshot: SnapshotCallback, records: list[FileRecord]) -> None:
        try:
            on_snapshot(list(records))
        except Exception:
            logger.exception("Snapshot subscriber %d raised", token)

    def _remove_subscriber(self, token: int) -> None:
        self._subscribers.pop(token, None)
        logger.debug("Registry subscriber %d removed", token)

    def _next_timestamp(self) -> datetime:
        """Strictly increasing naive-UTC timestamp for ordering."""
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        if self._last_created is not None and now <= self._last_created:
            now = self._last_created + timedelta(microseconds=1)
        self._last_created = now
        return now
