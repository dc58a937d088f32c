"""MongoDB-backed document store (motor)."""

from typing import List, Optional
import logging

from pymongo.errors import DuplicateKeyError

from safesign.errors import ConcurrentModificationError
from safesign.models.documents import Document
from safesign.services.store import DocumentStore, INDEXED_FIELDS

logger = logging.getLogger(__name__)

COLLECTION = "safesign_documents"


class MongoDocumentStore(DocumentStore):
    """Store documents in one collection; CAS is a filtered ``replace_one`` on ``version``."""

    def __init__(self, db, collection_name: str = COLLECTION):
        self.db = db
        self.collection_name = collection_name

    @property
    def collection(self):
        return self.db[self.collection_name]

    async def ensure_indexes(self):
        await self.collection.create_index("id", unique=True)
        await self.collection.create_index("envelope_id", unique=True)
        await self.collection.create_index("share_link", unique=True, sparse=True)
        await self.collection.create_index([("created_by", 1), ("created_at", -1)])
        await self.collection.create_index([("status", 1), ("expires_at", 1)])
        logger.info("SafeSign document indexes created/verified")

    @staticmethod
    def _to_model(raw) -> Optional[Document]:
        if raw is None:
            return None
        return Document.model_validate(raw)

    async def get(self, document_id: str) -> Optional[Document]:
        raw = await self.collection.find_one({"id": document_id}, {"_id": 0})
        return self._to_model(raw)

    async def put(self, document: Document, expected_version: Optional[int] = None) -> Document:
        new_version = 1 if expected_version is None else expected_version + 1
        stored = document.model_copy(deep=True, update={"version": new_version})
        payload = stored.model_dump(mode="json")
        # A sparse unique index skips missing keys, not nulls
        if payload.get("share_link") is None:
            payload.pop("share_link", None)

        if expected_version is None:
            try:
                await self.collection.insert_one(payload)
            except DuplicateKeyError:
                raise ConcurrentModificationError(f"Document {document.id} already exists", document_id=document.id)
            return stored

        result = await self.collection.replace_one(
            {"id": document.id, "version": expected_version},
            payload,
        )
        if result.matched_count == 0:
            raise ConcurrentModificationError(
                f"Document {document.id} changed since it was read",
                document_id=document.id,
                expected_version=expected_version,
            )
        return stored

    async def delete(self, document_id: str, expected_version: Optional[int] = None) -> bool:
        query = {"id": document_id}
        if expected_version is not None:
            query["version"] = expected_version
        result = await self.collection.delete_one(query)
        if result.deleted_count > 0:
            return True
        if expected_version is not None and await self.collection.count_documents({"id": document_id}, limit=1):
            raise ConcurrentModificationError(
                f"Document {document_id} changed since it was read",
                document_id=document_id,
                expected_version=expected_version,
            )
        return False

    async def find_by_field(self, key: str, value: str) -> Optional[Document]:
        if key not in INDEXED_FIELDS:
            raise ValueError(f"Field '{key}' is not indexed")
        raw = await self.collection.find_one({key: value}, {"_id": 0})
        return self._to_model(raw)

    async def list_by_owner(self, owner_id: str) -> List[Document]:
        cursor = self.collection.find({"created_by": owner_id}, {"_id": 0}).sort("created_at", -1)
        return [self._to_model(raw) async for raw in cursor]

    async def list_all(self) -> List[Document]:
        cursor = self.collection.find({}, {"_id": 0})
        return [self._to_model(raw) async for raw in cursor]
