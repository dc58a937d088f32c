"""
Caller identity for the SafeSign core: bcrypt password checks, JWT session
tokens carrying the principal, and the random share links handed to signers.
"""
from passlib.context import CryptContext
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Tuple
import os
import secrets
import uuid

from safesign.models.user import UserRole, Principal

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_SECRET = os.getenv("JWT_SECRET", "change-me-safesign-secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))

# 32 random bytes -> 43 url-safe characters
SIGNING_LINK_BYTES = 32


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def issue_token(principal: Principal, expires_delta: Optional[timedelta] = None) -> Tuple[str, str, datetime]:
    """Sign a session token for ``principal``.

    Returns ``(token, session_id, expires_at)``; the session id is the ``jti``
    claim the session registry keys on.
    """
    expires_at = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=JWT_EXPIRATION_HOURS))
    session_id = uuid.uuid4().hex
    claims = {
        "sub": principal.caller_id,
        "role": principal.role.value,
        "jti": session_id,
        "exp": expires_at,
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM), session_id, expires_at


def decode_token(token: str) -> Optional[Dict]:
    """Claims of a valid, unexpired token, else None."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def principal_from_claims(claims: Optional[Dict]) -> Optional[Principal]:
    if not claims or not claims.get("sub"):
        return None
    try:
        role = UserRole(claims.get("role", UserRole.USER.value))
    except ValueError:
        return None
    return Principal(caller_id=claims["sub"], role=role)


def generate_signing_link() -> str:
    """Unguessable share-link token for a document's signers."""
    return secrets.token_urlsafe(SIGNING_LINK_BYTES)
