"""
Pytest configuration and shared fixtures for the SafeSign core tests.
"""
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Deterministic secret for token tests; must be set before auth is imported.
os.environ.setdefault("JWT_SECRET", "test-secret")

backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

import pytest

from safesign.models.user import Principal, UserRole
from safesign.services import DocumentService, InMemoryDocumentStore, SigningService
from safesign.templates import build_default_registry

OWNER_ID = "USR-OWNER"
OTHER_ID = "USR-OTHER"
ADMIN_ID = "USR-ADMIN"


class FixedClock:
    """Callable clock the tests can move forward explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class SequentialLinks:
    """Predictable share-link factory: link-1, link-2, ..."""

    def __init__(self):
        self.issued = 0

    def __call__(self) -> str:
        self.issued += 1
        return f"link-{self.issued}"


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 7, 14, 10, 30, tzinfo=timezone.utc))


@pytest.fixture
def links():
    return SequentialLinks()


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def documents(store, registry, clock, links):
    return DocumentService(store, registry, clock=clock, link_factory=links)


@pytest.fixture
def signing(store, documents, clock):
    return SigningService(store, documents, clock=clock)


@pytest.fixture
def owner():
    return Principal(caller_id=OWNER_ID)


@pytest.fixture
def other_user():
    return Principal(caller_id=OTHER_ID)


@pytest.fixture
def admin():
    return Principal(caller_id=ADMIN_ID, role=UserRole.ADMIN)
