"""SafeSign Document Models

The document is the aggregate root: it owns its signers, fields and
signatures. Signatures are frozen once recorded.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List
from datetime import datetime, date, timezone
from enum import Enum
import uuid

from safesign.models.fields import MAX_AMOUNT, DocumentField


def _now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def new_document_id() -> str:
    return f"DOC-{uuid.uuid4().hex[:12].upper()}"


def new_envelope_id() -> str:
    return f"ENV-{uuid.uuid4().hex[:16].upper()}"


def new_signature_id() -> str:
    return f"SIG-{uuid.uuid4().hex[:12].upper()}"


class DocumentStatus(str, Enum):
    DRAFT = "draft"            # Owner still editing
    ACTIVE = "active"          # Shared, collecting signatures
    COMPLETED = "completed"    # Every signer signed
    CANCELLED = "cancelled"    # Withdrawn by the owner
    EXPIRED = "expired"        # Past its deadline

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.COMPLETED, DocumentStatus.CANCELLED, DocumentStatus.EXPIRED)


class DocumentSettings(BaseModel):
    require_signature_order: bool = False
    reminder_enabled: bool = False
    reminder_days: int = 7
    allow_print: bool = True
    allow_download: bool = True
    watermark_text: Optional[str] = None


class RentalSettings(BaseModel):
    """Commercial terms fed to the renderer (rent, charges, dates...)."""
    rental_type: str = "empty"  # empty | furnished
    duration: Optional[int] = None  # months
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    rent: Optional[float] = Field(default=None, ge=0, le=float(MAX_AMOUNT))
    charges: Optional[float] = Field(default=None, ge=0, le=float(MAX_AMOUNT))
    deposit: Optional[float] = Field(default=None, ge=0, le=float(MAX_AMOUNT))
    furnished: bool = False
    short_term: bool = False


class Signer(BaseModel):
    id: str
    role: str
    first_name: str = ""
    last_name: str = ""
    title: Optional[str] = None
    organization: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    order: int = 0


class Signature(BaseModel):
    """A recorded consent event. Never mutated after creation."""
    model_config = {"frozen": True}

    id: str = Field(default_factory=new_signature_id)
    signer_id: str
    document_id: str
    signed_at: datetime = Field(default_factory=_now)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    signature_data: Optional[str] = None
    field_values: Dict[str, Any] = Field(default_factory=dict)
    is_valid: bool = True


class Document(BaseModel):
    model_config = {"extra": "ignore"}

    id: str = Field(default_factory=new_document_id)
    envelope_id: str = Field(default_factory=new_envelope_id)
    title: str
    type: str
    status: DocumentStatus = DocumentStatus.DRAFT
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    created_by: str

    signers: List[Signer] = Field(default_factory=list)
    fields: List[DocumentField] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)
    settings: DocumentSettings = Field(default_factory=DocumentSettings)
    rental_terms: RentalSettings = Field(default_factory=RentalSettings)

    share_link: Optional[str] = None
    share_link_active: bool = False
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    signatures: List[Signature] = Field(default_factory=list)
    template_digest: str = ""

    # Bumped by the store on every successful write
    version: int = 0

    @field_validator("expires_at", "completed_at")
    @classmethod
    def _timestamps_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    def get_signer(self, signer_id: str) -> Optional[Signer]:
        return next((s for s in self.signers if s.id == signer_id), None)

    def get_field(self, field_id: str):
        return next((f for f in self.fields if f.id == field_id), None)

    def has_signed(self, signer_id: str) -> bool:
        return any(sig.signer_id == signer_id for sig in self.signatures)

    def field_values(self) -> Dict[str, Any]:
        return {f.id: f.value for f in self.fields}


class DocumentPatch(BaseModel):
    """Owner edits accepted while the document is a draft. Unset keys are left alone."""
    model_config = {"extra": "forbid"}

    title: Optional[str] = None
    signers: Optional[List[Signer]] = None
    fields: Optional[List[DocumentField]] = None
    field_values: Optional[Dict[str, Any]] = None
    options: Optional[Dict[str, Any]] = None
    settings: Optional[DocumentSettings] = None
    rental_terms: Optional[RentalSettings] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def _expiry_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class ShareLink(BaseModel):
    document_id: str
    share_link: str
    path: str


class PublicSigner(BaseModel):
    id: str
    role: str
    first_name: str
    last_name: str
    organization: Optional[str] = None


class PublicSignature(BaseModel):
    signer_id: str
    signed_at: datetime


class PublicDocumentView(BaseModel):
    """What an unauthenticated holder of a share link may see."""
    id: str
    envelope_id: str
    title: str
    type: str
    status: DocumentStatus
    signers: List[PublicSigner]
    fields: List[DocumentField]
    signatures: List[PublicSignature]
    template_outdated: bool = False


class SignResult(BaseModel):
    success: bool = True
    all_signed: bool
    redirect_url: Optional[str] = None


class TemplateStatus(BaseModel):
    doc_type: str
    stored_digest: str
    current_digest: str
    outdated: bool
