"""Migration Store Tests

Both built-in stores are run through the same contract tests, followed by
FileStore specifics (document layout, lock file, error wrapping).
"""
import json
from datetime import datetime, timezone

import aiofiles.os
import pytest

from immigration.errors import ImmigrationError, LockRetryError
from immigration.models import ExecutionRecord, ListOptions
from immigration.stores import FileStore, MemoryStore, MigrationStore

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(params=["fs", "memory"])
def store(request, tmp_path):
    if request.param == "fs":
        return FileStore(tmp_path / ".migrate.json")
    return MemoryStore()


async def names(store, **options):
    return [record.name async for record in store.history(ListOptions(**options))]


class TestStoreContract:
    """Behaviour every store must share."""

    @pytest.mark.asyncio
    async def test_empty_history(self, store):
        assert await names(store) == []
        assert await store.show("001_a") is None

    @pytest.mark.asyncio
    async def test_update_and_show(self, store):
        await store.update("001_a", True, T0)

        record = await store.show("001_a")
        assert record == ExecutionRecord("001_a", True, T0)

    @pytest.mark.asyncio
    async def test_update_overwrites(self, store):
        await store.update("001_a", True, T0)
        await store.update("001_a", False, T0)

        assert (await store.show("001_a")).valid is False
        assert await names(store) == ["001_a"]

    @pytest.mark.asyncio
    async def test_remove(self, store):
        await store.update("001_a", True, T0)

        assert await store.remove("001_a") is True
        assert await store.remove("001_a") is False
        assert await store.show("001_a") is None

    @pytest.mark.asyncio
    async def test_history_order_and_window(self, store):
        for name in ["003_c", "001_a", "002_b"]:
            await store.update(name, True, T0)

        assert await names(store) == ["001_a", "002_b", "003_c"]
        assert await names(store, reverse=True) == ["003_c", "002_b", "001_a"]
        assert await names(store, count=1) == ["001_a"]
        assert await names(store, count=1, reverse=True) == ["003_c"]
        assert await names(store, gte="002_b") == ["002_b", "003_c"]
        assert await names(store, lte="002_b") == ["001_a", "002_b"]

    @pytest.mark.asyncio
    async def test_history_bounds_need_not_exist(self, store):
        for name in ["001_a", "003_c"]:
            await store.update(name, True, T0)

        assert await names(store, gte="002") == ["003_c"]

    @pytest.mark.asyncio
    async def test_lock_cycle(self, store):
        assert await store.is_locked() is False

        await store.lock()
        assert await store.is_locked() is True

        with pytest.raises(LockRetryError):
            await store.lock()

        await store.unlock()
        assert await store.is_locked() is False

    @pytest.mark.asyncio
    async def test_unlock_is_idempotent(self, store):
        await store.unlock()
        await store.unlock()
        assert await store.is_locked() is False

    def test_interface_version(self, store):
        assert isinstance(store, MigrationStore)
        assert store.interface_version == "1.0"


class TestFileStore:
    """FileStore specifics."""

    @pytest.mark.asyncio
    async def test_document_layout(self, tmp_path):
        path = tmp_path / ".migrate.json"
        store = FileStore(path)

        await store.update("001_a", True, T0)

        data = json.loads(path.read_text())
        assert data == {"001_a": {"valid": True, "date": T0.isoformat()}}

    @pytest.mark.asyncio
    async def test_reads_z_suffixed_dates(self, tmp_path):
        path = tmp_path / ".migrate.json"
        path.write_text(json.dumps({"001_a": {"valid": True, "date": "2024-01-01T12:00:00.000Z"}}))

        record = await FileStore(path).show("001_a")
        assert record.timestamp == T0

    @pytest.mark.asyncio
    async def test_lock_file_is_shared_between_instances(self, tmp_path):
        first = FileStore(tmp_path / ".migrate.json")
        second = FileStore(tmp_path / ".migrate.json")

        await first.lock()
        assert (tmp_path / ".migrate.json.lock").exists()
        assert await second.is_locked() is True

        with pytest.raises(LockRetryError) as exc_info:
            await second.lock()
        assert isinstance(exc_info.value.cause, FileExistsError)

        await first.unlock()
        await second.lock()
        await second.unlock()

    @pytest.mark.asyncio
    async def test_corrupt_document_raises(self, tmp_path):
        path = tmp_path / ".migrate.json"
        path.write_text("{not json")

        with pytest.raises(ImmigrationError) as exc_info:
            await FileStore(path).show("001_a")
        assert exc_info.value.path == str(path)
        assert isinstance(exc_info.value.cause, json.JSONDecodeError)

    @pytest.mark.asyncio
    async def test_empty_document_is_empty_history(self, tmp_path):
        path = tmp_path / ".migrate.json"
        path.write_text("")

        assert await names(FileStore(path)) == []

    def test_create_from_cwd(self, tmp_path):
        store = FileStore.create(tmp_path)
        assert store.path == tmp_path / ".migrate.json"
        assert store.lock_path == tmp_path / ".migrate.json.lock"

        custom = FileStore.create(tmp_path, path="state.json")
        assert custom.path == tmp_path / "state.json"

    def test_create_rejects_unknown_options(self, tmp_path):
        with pytest.raises(ImmigrationError):
            FileStore.create(tmp_path, bucket="nope")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("record, cause", [
        ({"valid": True}, KeyError),
        ({"date": T0.isoformat()}, KeyError),
        ({"valid": True, "date": "yesterday"}, ValueError),
        ({"valid": True, "date": 20240101}, AttributeError),
        ("valid", TypeError),
    ])
    async def test_malformed_record_raises(self, tmp_path, record, cause):
        path = tmp_path / ".migrate.json"
        path.write_text(json.dumps({"001_a": record}))
        store = FileStore(path)

        with pytest.raises(ImmigrationError, match="001_a") as exc_info:
            await store.show("001_a")
        assert exc_info.value.path == str(path)
        assert isinstance(exc_info.value.cause, cause)

        with pytest.raises(ImmigrationError, match="001_a"):
            await names(store)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document", ["[]", "42", '"state"', "null"])
    async def test_document_must_be_an_object(self, tmp_path, document):
        path = tmp_path / ".migrate.json"
        path.write_text(document)
        store = FileStore(path)

        with pytest.raises(ImmigrationError, match="JSON object") as exc_info:
            await store.update("001_a", True, T0)
        assert exc_info.value.path == str(path)
        assert path.read_text() == document

    @pytest.mark.asyncio
    async def test_unlock_wraps_os_errors(self, tmp_path, monkeypatch):
        store = FileStore(tmp_path / ".migrate.json")
        await store.lock()

        async def denied(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(aiofiles.os, "remove", denied)

        with pytest.raises(ImmigrationError) as exc_info:
            await store.unlock()
        assert exc_info.value.path == str(store.lock_path)
        assert isinstance(exc_info.value.cause, PermissionError)

    @pytest.mark.asyncio
    async def test_is_locked_wraps_os_errors(self, tmp_path, monkeypatch):
        store = FileStore(tmp_path / ".migrate.json")

        async def denied(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(aiofiles.os, "stat", denied)

        with pytest.raises(ImmigrationError) as exc_info:
            await store.is_locked()
        assert exc_info.value.path == str(store.lock_path)
        assert isinstance(exc_info.value.cause, PermissionError)


class TestMemoryStore:
    """MemoryStore specifics."""

    @pytest.mark.asyncio
    async def test_returns_copies(self):
        store = MemoryStore()
        await store.update("001_a", True, T0)

        shown = await store.show("001_a")
        shown.valid = False
        listed = [record async for record in store.history(ListOptions())]
        listed[0].valid = False

        assert (await store.show("001_a")).valid is True
