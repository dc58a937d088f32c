"""SafeSign error taxonomy.

Every failure raised by the core carries a stable ``kind`` (the category a
caller branches on), a specific ``code`` and an HTTP-equivalent status code.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_STATE = "invalid_state"
    ALREADY_DONE = "already_done"
    VALIDATION_ERROR = "validation_error"
    TEMPLATE_ERROR = "template_error"
    CONFLICT = "conflict"


class SafeSignError(Exception):
    """Base class for all SafeSign errors."""

    kind: ErrorKind = ErrorKind.INVALID_STATE
    code: str = "safesign_error"
    status_code: int = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(SafeSignError):
    kind = ErrorKind.NOT_FOUND
    code = "not_found"
    status_code = 404


class UnknownSignerError(NotFoundError):
    code = "unknown_signer"

    def __init__(self, signer_id: str):
        super().__init__(f"Signer {signer_id} is not part of this document", signer_id=signer_id)
        self.signer_id = signer_id


class ForbiddenError(SafeSignError):
    kind = ErrorKind.FORBIDDEN
    code = "forbidden"
    status_code = 403


class InvalidStateError(SafeSignError):
    kind = ErrorKind.INVALID_STATE
    code = "invalid_state"
    status_code = 409


class NotDraftError(InvalidStateError):
    code = "not_draft"

    def __init__(self, document_id: str, status: str):
        super().__init__(
            f"Document {document_id} can only be modified in draft (current status: {status})",
            document_id=document_id,
            status=status,
        )


class LinkInactiveError(InvalidStateError):
    code = "link_inactive"


class DocumentClosedError(InvalidStateError):
    """The document reached a terminal state and is no longer open for signing."""
    code = "document_closed"


class NotAvailableForSigningError(InvalidStateError):
    code = "not_available_for_signing"


class SignatureOrderError(InvalidStateError):
    code = "signature_order"


class AlreadySignedError(SafeSignError):
    kind = ErrorKind.ALREADY_DONE
    code = "already_signed"
    status_code = 409

    def __init__(self, signer_id: str):
        super().__init__(f"Signer {signer_id} has already signed this document", signer_id=signer_id)
        self.signer_id = signer_id


class ValidationError(SafeSignError):
    kind = ErrorKind.VALIDATION_ERROR
    code = "validation_error"
    status_code = 422

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None, **details: Any):
        super().__init__(message, **details)
        self.errors = errors or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class FieldOwnershipError(ValidationError):
    code = "field_ownership"


class TemplateError(SafeSignError):
    kind = ErrorKind.TEMPLATE_ERROR
    code = "template_error"
    status_code = 422


class UnknownTemplateTypeError(TemplateError):
    code = "unknown_template_type"
    status_code = 404

    def __init__(self, doc_type: str):
        super().__init__(f"Unknown document type: {doc_type}", doc_type=doc_type)
        self.doc_type = doc_type


class MissingRequiredSignerError(TemplateError):
    code = "missing_required_signer"

    def __init__(self, role: str):
        super().__init__(f"A signer with role '{role}' is required to render this document", role=role)
        self.role = role


class DuplicateTemplateError(TemplateError):
    code = "duplicate_template"
    status_code = 500

    def __init__(self, doc_type: str):
        super().__init__(f"A template is already registered for type '{doc_type}'", doc_type=doc_type)
        self.doc_type = doc_type


class ConcurrentModificationError(SafeSignError):
    kind = ErrorKind.CONFLICT
    code = "concurrent_modification"
    status_code = 409
