"""Caller identity as seen by the document core."""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime, timezone
from enum import Enum
import uuid


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    id: str = Field(default_factory=lambda: f"USR-{uuid.uuid4().hex[:12].upper()}")
    email: EmailStr
    first_name: str = ""
    last_name: str = ""
    title: Optional[str] = None
    organization: Optional[str] = None
    address: Optional[str] = None
    role: UserRole = UserRole.USER
    password_hash: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Principal(BaseModel):
    """The authenticated caller. Only ownership and admin status are ever asked."""
    caller_id: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def owns(self, document) -> bool:
        return document.created_by == self.caller_id
