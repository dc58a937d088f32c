"""
Document stores: in-memory indices, snapshots and CAS; Mongo store against a mocked collection.
"""
import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import DuplicateKeyError

backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from safesign.errors import ConcurrentModificationError, NotFoundError
from safesign.models.documents import Document, DocumentStatus
from safesign.services import InMemoryDocumentStore, MongoDocumentStore, update_with_retry

NOW = datetime(2025, 7, 14, 10, 30, tzinfo=timezone.utc)


def _doc(**kwargs):
    data = {"title": "Quittance", "type": "rentReceipt", "created_by": "USR-1", "created_at": NOW}
    data.update(kwargs)
    return Document(**data)


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_insert_and_get_returns_copies(self):
        store = InMemoryDocumentStore()
        stored = await store.put(_doc())
        assert stored.version == 1
        fetched = await store.get(stored.id)
        fetched.title = "changed"
        assert (await store.get(stored.id)).title == "Quittance"

    @pytest.mark.asyncio
    async def test_insert_existing_id_conflicts(self):
        store = InMemoryDocumentStore()
        stored = await store.put(_doc())
        with pytest.raises(ConcurrentModificationError):
            await store.put(stored)

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self):
        store = InMemoryDocumentStore()
        stored = await store.put(_doc())
        await store.put(stored.model_copy(update={"title": "v2"}), expected_version=1)
        with pytest.raises(ConcurrentModificationError):
            await store.put(stored.model_copy(update={"title": "v2b"}), expected_version=1)

    @pytest.mark.asyncio
    async def test_indices_follow_updates(self):
        store = InMemoryDocumentStore()
        stored = await store.put(_doc())
        assert (await store.find_by_field("envelope_id", stored.envelope_id)).id == stored.id
        assert await store.find_by_field("share_link", "abc") is None

        linked = await store.put(stored.model_copy(update={"share_link": "abc"}), expected_version=1)
        assert (await store.find_by_field("share_link", "abc")).id == stored.id

        await store.delete(linked.id)
        assert await store.find_by_field("share_link", "abc") is None
        assert await store.find_by_field("envelope_id", stored.envelope_id) is None

    @pytest.mark.asyncio
    async def test_unindexed_field_rejected(self):
        with pytest.raises(ValueError):
            await InMemoryDocumentStore().find_by_field("title", "x")

    @pytest.mark.asyncio
    async def test_delete_checks_version(self):
        store = InMemoryDocumentStore()
        stored = await store.put(_doc(share_link="abc"))
        await store.put(stored.model_copy(update={"title": "v2"}), expected_version=1)
        with pytest.raises(ConcurrentModificationError):
            await store.delete(stored.id, expected_version=1)
        assert await store.get(stored.id) is not None
        assert await store.delete(stored.id, expected_version=2) is True
        assert await store.find_by_field("share_link", "abc") is None

    @pytest.mark.asyncio
    async def test_delete_missing(self):
        assert await InMemoryDocumentStore().delete("DOC-NOPE") is False

    @pytest.mark.asyncio
    async def test_snapshot_round_trip(self, tmp_path):
        store = InMemoryDocumentStore()
        first = await store.put(_doc(share_link="abc"))
        await store.put(_doc(created_by="USR-2"))
        path = tmp_path / "snapshots" / "documents.json"

        assert await store.save_snapshot(path) == 2
        assert len(json.loads(path.read_text(encoding="utf-8"))["documents"]) == 2

        restored = InMemoryDocumentStore()
        assert await restored.load_snapshot(path) == 2
        assert (await restored.find_by_field("share_link", "abc")).id == first.id
        assert len(await restored.list_by_owner("USR-1")) == 1

    @pytest.mark.asyncio
    async def test_missing_snapshot_loads_nothing(self, tmp_path):
        assert await InMemoryDocumentStore().load_snapshot(tmp_path / "none.json") == 0


class TestUpdateWithRetry:
    @pytest.mark.asyncio
    async def test_no_change_skips_write(self):
        store = InMemoryDocumentStore()
        stored = await store.put(_doc())
        result = await update_with_retry(store, lambda: store.get(stored.id), lambda d: d, lambda: NotFoundError("x"))
        assert result.version == 1

    @pytest.mark.asyncio
    async def test_missing_document(self):
        store = InMemoryDocumentStore()
        with pytest.raises(NotFoundError):
            await update_with_retry(store, lambda: store.get("DOC-NOPE"), lambda d: d, lambda: NotFoundError("x"))

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        store = InMemoryDocumentStore()
        stored = await store.put(_doc())

        def transition(current):
            return current.model_copy(update={"title": "never"})

        store.put = AsyncMock(side_effect=ConcurrentModificationError("busy"))
        with pytest.raises(ConcurrentModificationError):
            await update_with_retry(store, lambda: store.get(stored.id), transition, lambda: NotFoundError("x"), attempts=3)
        assert store.put.await_count == 3


class AsyncCursor:
    def __init__(self, items):
        self.items = list(items)
        self.sort_args = None

    def sort(self, *args):
        self.sort_args = args
        return self

    def __aiter__(self):
        self._iter = iter(self.items)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


def _mongo_store(collection):
    db = MagicMock()
    db.__getitem__.return_value = collection
    return MongoDocumentStore(db)


class TestMongoStore:
    @pytest.mark.asyncio
    async def test_insert_drops_null_share_link(self):
        collection = MagicMock()
        collection.insert_one = AsyncMock()
        store = _mongo_store(collection)

        stored = await store.put(_doc())
        assert stored.version == 1
        payload = collection.insert_one.await_args.args[0]
        assert "share_link" not in payload
        assert payload["status"] == "draft"
        assert payload["version"] == 1

    @pytest.mark.asyncio
    async def test_insert_duplicate_conflicts(self):
        collection = MagicMock()
        collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("dup"))
        with pytest.raises(ConcurrentModificationError):
            await _mongo_store(collection).put(_doc())

    @pytest.mark.asyncio
    async def test_update_is_filtered_on_version(self):
        collection = MagicMock()
        collection.replace_one = AsyncMock(return_value=MagicMock(matched_count=1))
        document = _doc(version=3)

        stored = await _mongo_store(collection).put(document, expected_version=3)
        assert stored.version == 4
        filter_doc, payload = collection.replace_one.await_args.args
        assert filter_doc == {"id": document.id, "version": 3}
        assert payload["version"] == 4

    @pytest.mark.asyncio
    async def test_update_conflict(self):
        collection = MagicMock()
        collection.replace_one = AsyncMock(return_value=MagicMock(matched_count=0))
        with pytest.raises(ConcurrentModificationError):
            await _mongo_store(collection).put(_doc(version=3), expected_version=3)

    @pytest.mark.asyncio
    async def test_get_and_find(self):
        raw = _doc(share_link="abc", status=DocumentStatus.ACTIVE).model_dump(mode="json")
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=raw)
        store = _mongo_store(collection)

        document = await store.find_by_field("share_link", "abc")
        assert document.status == DocumentStatus.ACTIVE
        collection.find_one.assert_awaited_with({"share_link": "abc"}, {"_id": 0})

        collection.find_one = AsyncMock(return_value=None)
        assert await store.get("DOC-NOPE") is None

        with pytest.raises(ValueError):
            await store.find_by_field("title", "x")

    @pytest.mark.asyncio
    async def test_list_by_owner_sorted_newest_first(self):
        older = _doc().model_dump(mode="json")
        newer = _doc(created_at=NOW + timedelta(days=1)).model_dump(mode="json")
        cursor = AsyncCursor([newer, older])
        collection = MagicMock()
        collection.find = MagicMock(return_value=cursor)

        listed = await _mongo_store(collection).list_by_owner("USR-1")
        assert [d.created_at for d in listed] == [NOW + timedelta(days=1), NOW]
        assert cursor.sort_args == ("created_at", -1)
        collection.find.assert_called_with({"created_by": "USR-1"}, {"_id": 0})

    @pytest.mark.asyncio
    async def test_delete(self):
        collection = MagicMock()
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
        assert await _mongo_store(collection).delete("DOC-1") is True

    @pytest.mark.asyncio
    async def test_delete_filtered_on_version(self):
        collection = MagicMock()
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
        assert await _mongo_store(collection).delete("DOC-1", expected_version=4) is True
        collection.delete_one.assert_awaited_with({"id": "DOC-1", "version": 4})

    @pytest.mark.asyncio
    async def test_delete_version_conflict(self):
        collection = MagicMock()
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))
        collection.count_documents = AsyncMock(return_value=1)
        with pytest.raises(ConcurrentModificationError):
            await _mongo_store(collection).delete("DOC-1", expected_version=4)

        collection.count_documents = AsyncMock(return_value=0)
        assert await _mongo_store(collection).delete("DOC-1", expected_version=4) is False

    @pytest.mark.asyncio
    async def test_ensure_indexes(self):
        collection = MagicMock()
        collection.create_index = AsyncMock()
        await _mongo_store(collection).ensure_indexes()
        assert collection.create_index.await_count == 5


class TestDatabaseHolder:
    def test_get_db_requires_connection(self):
        from database import Database

        with pytest.raises(RuntimeError):
            Database("mongodb://localhost:27017", "safesign_test").get_db()

    @pytest.mark.asyncio
    async def test_document_store_tolerates_index_errors(self):
        from database import Database

        holder = Database("mongodb://localhost:27017", "safesign_test")
        collection = MagicMock()
        collection.create_index = AsyncMock(side_effect=RuntimeError("index options differ"))
        holder.db = MagicMock()
        holder.db.__getitem__.return_value = collection

        store = await holder.document_store()
        assert isinstance(store, MongoDocumentStore)
        assert store.collection is collection
