"""Tests for the SQLite file registry — snapshots, ordering, subscriptions."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from filestore.models.file_record import StoredFile
from filestore.schemas.files import RawFileInput
from filestore.services.file_registry import FileRegistryViewModel
from filestore.services.registry import SqlFileRegistry, SubscriptionHandle


class Recorder:
    """Collects snapshots and errors delivered to a subscriber."""

    def __init__(self):
        self.snapshots = []
        self.errors = []

    def on_snapshot(self, records):
        self.snapshots.append(records)

    def on_error(self, exc):
        self.errors.append(exc)

    @property
    def last_names(self):
        return [r.name for r in self.snapshots[-1]]


async def _create(registry, name, data="data:text/plain;base64,"):
    return await registry.create(name=name, mime_type="text/plain", size_bytes=0, payload=data)


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_initial_snapshot_delivered(self, registry):
        rec = Recorder()
        await registry.subscribe(rec.on_snapshot, rec.on_error)
        assert rec.snapshots == [[]]
        assert rec.errors == []

    @pytest.mark.asyncio
    async def test_every_mutation_delivers_full_snapshot(self, registry):
        rec = Recorder()
        await registry.subscribe(rec.on_snapshot, rec.on_error)

        a = await _create(registry, "a.txt")
        await _create(registry, "b.txt")
        await registry.delete(a)

        assert [len(s) for s in rec.snapshots] == [0, 1, 2, 1]
        assert rec.last_names == ["b.txt"]

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self, registry):
        rec = Recorder()
        handle = await registry.subscribe(rec.on_snapshot, rec.on_error)
        handle.unsubscribe()

        await _create(registry, "a.txt")

        assert len(rec.snapshots) == 1
        assert registry.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_unsubscribe_twice_is_safe(self, registry):
        handle = await registry.subscribe(lambda r: None, lambda e: None)
        handle.unsubscribe()
        handle.unsubscribe()
        assert handle.active is False

    @pytest.mark.asyncio
    async def test_initial_snapshot_failure_goes_to_on_error(self, registry):
        rec = Recorder()
        with patch.object(
            registry, "snapshot", AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("db gone")))
        ):
            handle = await registry.subscribe(rec.on_snapshot, rec.on_error)

        assert rec.snapshots == []
        assert len(rec.errors) == 1
        assert handle.active is True

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_starve_others(self, registry):
        rec = Recorder()

        def broken(records):
            if records:
                raise ValueError("subscriber bug")

        await registry.subscribe(broken, lambda e: None)
        await registry.subscribe(rec.on_snapshot, rec.on_error)

        await _create(registry, "a.txt")
        assert rec.last_names == ["a.txt"]


class TestConcurrentSubscribe:
    @pytest.mark.asyncio
    async def test_initial_snapshot_never_overwrites_newer_echo(self, registry):
        vm = FileRegistryViewModel(registry, max_upload_bytes=100)
        real_snapshot = registry.snapshot
        first_read = asyncio.Event()
        release = asyncio.Event()
        calls = 0

        async def held_snapshot():
            # The first query reads the DB, then stalls before returning
            nonlocal calls
            calls += 1
            records = await real_snapshot()
            if calls == 1:
                first_read.set()
                await release.wait()
            return records

        with patch.object(registry, "snapshot", held_snapshot):
            subscribing = asyncio.create_task(vm.subscribe())
            await first_read.wait()
            adding = asyncio.create_task(
                vm.add(RawFileInput.from_bytes("a.txt", b"a", "text/plain"))
            )
            for _ in range(5):
                await asyncio.sleep(0)
            release.set()
            handle = await subscribing
            await adding

        assert [r.name for r in vm.files] == ["a.txt"]
        assert vm.files == tuple(await registry.snapshot())
        handle.unsubscribe()

    @pytest.mark.asyncio
    async def test_raising_initial_callback_still_returns_handle(self, registry):
        def broken(records):
            raise RuntimeError("subscriber bug")

        handle = await registry.subscribe(broken, lambda e: None)
        assert registry.subscriber_count == 1

        handle.unsubscribe()
        assert registry.subscriber_count == 0


class TestOrdering:
    @pytest.mark.asyncio
    async def test_newest_first(self, registry):
        for name in ("first", "second", "third"):
            await _create(registry, name)

        records = await registry.snapshot()
        assert [r.name for r in records] == ["third", "second", "first"]
        stamps = [r.created_at for r in records]
        assert stamps == sorted(stamps, reverse=True)

    @pytest.mark.asyncio
    async def test_timestamps_strictly_increase(self, registry):
        for i in range(20):
            await _create(registry, f"f{i}")
        stamps = [r.created_at for r in await registry.snapshot()]
        assert len(set(stamps)) == 20

    @pytest.mark.asyncio
    async def test_pending_timestamp_sorts_first(self, registry, session_factory):
        await _create(registry, "stamped")
        async with session_factory() as session:
            session.add(StoredFile(
                id="pending", app_id="test-app", name="pending", mime_type="",
                size_bytes=0, payload="", created_at=None,
            ))
            await session.commit()

        records = await registry.snapshot()
        assert [r.id for r in records][0] == "pending"
        assert records[0].created_at is None


class TestCreateDelete:
    @pytest.mark.asyncio
    async def test_create_assigns_unique_ids(self, registry):
        ids = {await _create(registry, "same.txt") for _ in range(5)}
        assert len(ids) == 5

    @pytest.mark.asyncio
    async def test_create_stores_fields(self, registry):
        file_id = await registry.create(
            name="a.txt", mime_type="text/plain", size_bytes=5,
            payload="data:text/plain;base64,aGVsbG8=",
        )
        (record,) = await registry.snapshot()
        assert record.id == file_id
        assert record.name == "a.txt"
        assert record.mime_type == "text/plain"
        assert record.size_bytes == 5
        assert record.payload == "data:text/plain;base64,aGVsbG8="

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_noop(self, registry):
        await _create(registry, "keep.txt")
        await registry.delete("does-not-exist")
        assert [r.name for r in await registry.snapshot()] == ["keep.txt"]

    @pytest.mark.asyncio
    async def test_app_ids_are_isolated(self, registry, session_factory):
        other = SqlFileRegistry(session_factory, app_id="other-app")
        await _create(registry, "mine.txt")
        other_id = await _create(other, "theirs.txt")

        assert [r.name for r in await registry.snapshot()] == ["mine.txt"]
        await registry.delete(other_id)
        assert [r.name for r in await other.snapshot()] == ["theirs.txt"]


class TestPublish:
    @pytest.mark.asyncio
    async def test_no_subscribers_skips_query(self, registry):
        with patch.object(registry, "snapshot", AsyncMock()) as snap:
            assert await registry.publish() is False
        snap.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_if_changed(self, registry, session_factory):
        rec = Recorder()
        await registry.subscribe(rec.on_snapshot, rec.on_error)
        await _create(registry, "a.txt")
        assert await registry.publish(only_if_changed=True) is False

        # Written behind the registry's back, e.g. by another worker
        async with session_factory() as session:
            session.add(StoredFile(
                id="outside", app_id="test-app", name="outside.txt", mime_type="",
                size_bytes=0, payload="",
            ))
            await session.commit()

        assert await registry.publish(only_if_changed=True) is True
        assert "outside.txt" in rec.last_names

    @pytest.mark.asyncio
    async def test_query_failure_goes_to_on_error(self, registry):
        rec = Recorder()
        await registry.subscribe(rec.on_snapshot, rec.on_error)
        with patch.object(
            registry, "snapshot", AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("locked")))
        ):
            assert await registry.publish() is False
        assert len(rec.errors) == 1
        assert len(rec.snapshots) == 1


def test_handle_release_called_once():
    calls = []
    handle = SubscriptionHandle(lambda: calls.append(1))
    handle.unsubscribe()
    handle.unsubscribe()
    assert calls == [1]


@pytest.mark.asyncio
async def test_equal_timestamps_put_later_insert_first(registry, session_factory):
    stamp = datetime(2026, 1, 1, 12, 0, 0)
    for file_id in ("aaa-first", "zzz-second"):
        async with session_factory() as session:
            session.add(StoredFile(
                id=file_id, app_id="test-app", name=file_id, mime_type="",
                size_bytes=0, payload="", created_at=stamp,
            ))
            await session.commit()

    assert [r.id for r in await registry.snapshot()] == ["zzz-second", "aaa-first"]
