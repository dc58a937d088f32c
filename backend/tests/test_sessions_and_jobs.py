"""
Auth helpers, the session registry and the scheduled maintenance jobs.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from auth import (
    decode_token,
    generate_signing_link,
    hash_password,
    issue_token,
    principal_from_claims,
    verify_password,
)
from job_runner import run_document_expiry_sweep, run_session_sweep, run_store_snapshot
from safesign.models.documents import DocumentPatch, DocumentStatus
from safesign.models.user import Principal, User, UserRole
from safesign.services import SessionRegistry


class TestAuthHelpers:
    def test_password_hashing(self):
        hashed = hash_password("s3cret")
        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_token_round_trip(self):
        token, session_id, expires_at = issue_token(Principal(caller_id="USR-1", role=UserRole.ADMIN))
        claims = decode_token(token)
        assert claims["sub"] == "USR-1"
        assert claims["jti"] == session_id
        assert expires_at > datetime.now(timezone.utc)
        principal = principal_from_claims(claims)
        assert principal.caller_id == "USR-1"
        assert principal.is_admin

    def test_invalid_token(self):
        assert decode_token("not-a-token") is None
        assert principal_from_claims(None) is None
        assert principal_from_claims({"sub": "USR-1", "role": "superuser"}) is None

    def test_expired_token(self):
        token, _, _ = issue_token(Principal(caller_id="USR-1"), expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_signing_links_are_unique(self):
        tokens = {generate_signing_link() for _ in range(20)}
        assert len(tokens) == 20
        assert all(len(t) >= 40 for t in tokens)


class TestSessionRegistry:
    def test_issue_resolve_revoke(self):
        sessions = SessionRegistry()
        token = sessions.issue(Principal(caller_id="USR-1"))
        assert sessions.resolve(token).caller_id == "USR-1"
        assert sessions.revoke(token)
        assert sessions.resolve(token) is None
        assert not sessions.revoke(token)

    def test_unregistered_token_not_resolved(self):
        token, _, _ = issue_token(Principal(caller_id="USR-1"))
        assert SessionRegistry().resolve(token) is None

    def test_login(self):
        sessions = SessionRegistry()
        user = User(email="owner@safesign.fr", password_hash=hash_password("pw"), role=UserRole.ADMIN)
        assert sessions.login(user, "bad") is None
        token = sessions.login(user, "pw")
        principal = sessions.resolve(token)
        assert principal.caller_id == user.id
        assert principal.is_admin

    def test_sweep_expired(self):
        sessions = SessionRegistry()
        sessions.issue(Principal(caller_id="USR-1"), expires_delta=timedelta(minutes=5))
        sessions.issue(Principal(caller_id="USR-2"), expires_delta=timedelta(hours=5))
        assert sessions.sweep_expired(datetime.now(timezone.utc) + timedelta(minutes=10)) == 1
        assert len(sessions) == 1


class TestJobRunner:
    @pytest.mark.asyncio
    async def test_session_sweep(self):
        sessions = SessionRegistry()
        sessions.issue(Principal(caller_id="USR-1"), expires_delta=timedelta(minutes=5))
        result = await run_session_sweep(sessions, now=datetime.now(timezone.utc) + timedelta(hours=1))
        assert result["count"] == 1

    @pytest.mark.asyncio
    async def test_document_expiry_sweep(self, documents, owner, clock):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        await documents.update_document(created.id, DocumentPatch(expires_at=clock() + timedelta(hours=1)), owner)
        await documents.activate_sharing(created.id, owner)

        result = await run_document_expiry_sweep(documents, now=clock() + timedelta(days=1))
        assert result["count"] == 1
        assert (await documents.get_document(created.id, owner)).status == DocumentStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_store_snapshot(self, documents, owner, store, tmp_path):
        await documents.create_document("rentReceipt", "Q", owner.caller_id)
        result = await run_store_snapshot(store, tmp_path / "snapshot.json")
        assert result["count"] == 1
        assert (tmp_path / "snapshot.json").exists()

    @pytest.mark.asyncio
    async def test_failures_propagate(self):
        documents = MagicMock()
        documents.expire_overdue = AsyncMock(side_effect=RuntimeError("store down"))
        with pytest.raises(RuntimeError):
            await run_document_expiry_sweep(documents)
