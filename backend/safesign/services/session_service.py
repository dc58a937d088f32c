"""Session registry.

Access tokens are JWTs; the registry remembers which ones are still live so
that logout (revoke) works and expired entries can be swept periodically.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import logging

from auth import decode_token, issue_token, principal_from_claims, verify_password
from safesign.models.user import Principal, User

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self):
        # jti -> expiry
        self._sessions: Dict[str, datetime] = {}

    def issue(self, principal: Principal, expires_delta: Optional[timedelta] = None) -> str:
        token, session_id, expires_at = issue_token(principal, expires_delta)
        self._sessions[session_id] = expires_at
        logger.info(f"Issued session for {principal.caller_id}")
        return token

    def login(self, user: User, password: str) -> Optional[str]:
        """Return a session token when ``password`` matches, else None."""
        if not user.password_hash or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {user.email}")
            return None
        return self.issue(Principal(caller_id=user.id, role=user.role))

    def resolve(self, token: str) -> Optional[Principal]:
        claims = decode_token(token)
        if claims is None or claims.get("jti") not in self._sessions:
            return None
        return principal_from_claims(claims)

    def revoke(self, token: str) -> bool:
        claims = decode_token(token)
        if claims is None:
            return False
        return self._sessions.pop(claims.get("jti"), None) is not None

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        expired = [jti for jti, expires_at in self._sessions.items() if expires_at <= now]
        for jti in expired:
            del self._sessions[jti]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
