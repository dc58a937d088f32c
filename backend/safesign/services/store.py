"""Document persistence.

Every store offers compare-and-swap writes keyed on ``Document.version`` so
services can run read -> transition -> write loops without holding a lock
across I/O.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Union
import asyncio
import json
import logging
import os
import tempfile

from safesign.errors import ConcurrentModificationError
from safesign.models.documents import Document

logger = logging.getLogger(__name__)

# Secondary keys the stores can look documents up by.
INDEXED_FIELDS = ("envelope_id", "share_link")


class DocumentStore(ABC):
    """Persistence collaborator used by the document and signing services."""

    @abstractmethod
    async def get(self, document_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def put(self, document: Document, expected_version: Optional[int] = None) -> Document:
        """Write ``document``.

        ``expected_version=None`` means insert; the call fails if the id exists.
        Otherwise the stored version must equal ``expected_version``.
        Returns the stored copy with its bumped version.
        """

    @abstractmethod
    async def delete(self, document_id: str, expected_version: Optional[int] = None) -> bool:
        """Remove ``document_id``; False when it does not exist.

        With ``expected_version`` the delete only happens if the stored version
        still matches, otherwise ``ConcurrentModificationError`` is raised.
        """

    @abstractmethod
    async def find_by_field(self, key: str, value: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> List[Document]:
        ...

    @abstractmethod
    async def list_all(self) -> List[Document]:
        ...


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store with envelope/share-link indices and JSON snapshots.

    All mutations happen in a single synchronous step (no await between the
    version check and the write), so the primary map and the indices can never
    be observed out of sync.
    """

    def __init__(self):
        self._documents: Dict[str, Document] = {}
        self._indices: Dict[str, Dict[str, str]] = {key: {} for key in INDEXED_FIELDS}

    def _index(self, document: Document) -> None:
        for key in INDEXED_FIELDS:
            value = getattr(document, key)
            if value:
                self._indices[key][value] = document.id

    def _unindex(self, document: Document) -> None:
        for key in INDEXED_FIELDS:
            value = getattr(document, key)
            if value and self._indices[key].get(value) == document.id:
                del self._indices[key][value]

    async def get(self, document_id: str) -> Optional[Document]:
        document = self._documents.get(document_id)
        return document.model_copy(deep=True) if document else None

    async def put(self, document: Document, expected_version: Optional[int] = None) -> Document:
        current = self._documents.get(document.id)
        if expected_version is None:
            if current is not None:
                raise ConcurrentModificationError(f"Document {document.id} already exists", document_id=document.id)
        elif current is None or current.version != expected_version:
            raise ConcurrentModificationError(
                f"Document {document.id} changed since it was read",
                document_id=document.id,
                expected_version=expected_version,
            )

        stored = document.model_copy(deep=True, update={"version": (current.version + 1) if current else 1})
        if current is not None:
            self._unindex(current)
        self._documents[stored.id] = stored
        self._index(stored)
        return stored.model_copy(deep=True)

    async def delete(self, document_id: str, expected_version: Optional[int] = None) -> bool:
        current = self._documents.get(document_id)
        if current is None:
            return False
        if expected_version is not None and current.version != expected_version:
            raise ConcurrentModificationError(
                f"Document {document_id} changed since it was read",
                document_id=document_id,
                expected_version=expected_version,
            )
        del self._documents[document_id]
        self._unindex(current)
        return True

    async def find_by_field(self, key: str, value: str) -> Optional[Document]:
        if key not in self._indices:
            raise ValueError(f"Field '{key}' is not indexed")
        document_id = self._indices[key].get(value)
        return await self.get(document_id) if document_id else None

    async def list_by_owner(self, owner_id: str) -> List[Document]:
        owned = [d for d in self._documents.values() if d.created_by == owner_id]
        owned.sort(key=lambda d: d.created_at, reverse=True)
        return [d.model_copy(deep=True) for d in owned]

    async def list_all(self) -> List[Document]:
        return [d.model_copy(deep=True) for d in self._documents.values()]

    def __len__(self) -> int:
        return len(self._documents)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _dump(self) -> str:
        payload = {
            "documents": [d.model_dump(mode="json") for d in self._documents.values()],
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)

    @staticmethod
    def _write_atomic(path: Path, data: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def save_snapshot(self, path: Union[str, Path]) -> int:
        """Write every document to ``path`` (temp file + rename). Returns the count written."""
        path = Path(path)
        data = self._dump()
        count = len(self._documents)
        await asyncio.to_thread(self._write_atomic, path, data)
        logger.info(f"Saved snapshot of {count} documents to {path}")
        return count

    async def load_snapshot(self, path: Union[str, Path]) -> int:
        """Replace the store content with a snapshot. A missing file loads nothing."""
        path = Path(path)
        if not path.exists():
            logger.info(f"No snapshot at {path}, starting empty")
            return 0
        raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        payload = json.loads(raw)
        documents = [Document.model_validate(item) for item in payload.get("documents", [])]

        self._documents = {}
        self._indices = {key: {} for key in INDEXED_FIELDS}
        for document in documents:
            self._documents[document.id] = document
            self._index(document)
        logger.info(f"Loaded {len(documents)} documents from {path}")
        return len(documents)


MAX_CAS_ATTEMPTS = int(os.getenv("SAFESIGN_MAX_CAS_ATTEMPTS", "5"))


async def update_with_retry(
    store: DocumentStore,
    load: Callable[[], Awaitable[Optional[Document]]],
    transition: Callable[[Document], Document],
    not_found: Callable[[], Exception],
    attempts: int = MAX_CAS_ATTEMPTS,
) -> Document:
    """Read, apply ``transition``, compare-and-swap; on conflict re-read and re-check guards.

    ``transition`` may raise to abort (nothing is written). Returning the very
    same object means "no change" and skips the write.
    """
    for attempt in range(1, attempts + 1):
        current = await load()
        if current is None:
            raise not_found()
        updated = transition(current)
        if updated is current:
            return current
        try:
            return await store.put(updated, expected_version=current.version)
        except ConcurrentModificationError:
            logger.info(f"Version conflict on document {current.id} (attempt {attempt}/{attempts}), retrying")
    raise ConcurrentModificationError("Document is being modified concurrently, try again later")
