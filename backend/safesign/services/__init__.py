"""SafeSign Services"""

from .store import DocumentStore, InMemoryDocumentStore, update_with_retry
from .mongo_store import MongoDocumentStore
from .document_service import DocumentService
from .signing_service import SigningService
from .session_service import SessionRegistry

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "MongoDocumentStore",
    "update_with_retry",
    "DocumentService",
    "SigningService",
    "SessionRegistry",
]
