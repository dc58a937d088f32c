"""Document lifecycle: guards and transitions.

Pure functions over ``Document`` values. Each transition either raises a
``SafeSignError`` or returns a new document; inputs are never mutated, so a
failed transition leaves nothing half-written.

    draft --activate--> active --sign (last signer)--> completed
                        active --cancel--> cancelled
                        active --expire--> expired
"""

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from safesign.errors import (
    AlreadySignedError,
    DocumentClosedError,
    FieldOwnershipError,
    ForbiddenError,
    InvalidStateError,
    LinkInactiveError,
    NotAvailableForSigningError,
    NotDraftError,
    SignatureOrderError,
    UnknownSignerError,
    ValidationError,
)
from safesign.models.document_types import DocumentTypeConfig, FieldDefinition
from safesign.models.documents import (
    Document,
    DocumentPatch,
    DocumentStatus,
    Signature,
    Signer,
    as_utc,
)
from safesign.models.fields import BaseField, DateField, DynaField, parse_field, shape_for_type, validate_field_value
from safesign.models.user import Principal

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    DocumentStatus.DRAFT: {DocumentStatus.ACTIVE},
    DocumentStatus.ACTIVE: {DocumentStatus.COMPLETED, DocumentStatus.CANCELLED, DocumentStatus.EXPIRED},
    DocumentStatus.COMPLETED: set(),
    DocumentStatus.CANCELLED: set(),
    DocumentStatus.EXPIRED: set(),
}

SHAPE_ATTRIBUTES = {
    "TextField": ("placeholder", "max_length", "regex"),
    "NumField": ("min", "max", "currency"),
    "DateField": ("default_to_current",),
}


def can_transition(current: DocumentStatus, target: DocumentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(document: Document, target: DocumentStatus) -> None:
    if not can_transition(document.status, target):
        raise InvalidStateError(
            f"Document {document.id} cannot go from {document.status.value} to {target.value}",
            document_id=document.id,
            status=document.status.value,
        )


# ---------------------------------------------------------------------------
# Ownership & integrity
# ---------------------------------------------------------------------------

def ensure_owner(document: Document, principal: Principal, allow_admin: bool = False) -> None:
    if principal.owns(document):
        return
    if allow_admin and principal.is_admin:
        return
    logger.warning(f"Caller {principal.caller_id} denied access to document {document.id}")
    raise ForbiddenError("Access denied", document_id=document.id)


def ensure_draft(document: Document) -> None:
    if document.status != DocumentStatus.DRAFT:
        raise NotDraftError(document.id, document.status.value)


def check_integrity(document: Document) -> None:
    """Signer and field ids are unique; every signer reference resolves."""
    errors: Dict[str, List[str]] = {}
    signer_ids = [s.id for s in document.signers]
    if len(set(signer_ids)) != len(signer_ids):
        errors.setdefault("signers", []).append("signer ids must be unique")
    field_ids = [f.id for f in document.fields]
    if len(set(field_ids)) != len(field_ids):
        errors.setdefault("fields", []).append("field ids must be unique")
    known = set(signer_ids)
    for field in document.fields:
        if field.signer_id and field.signer_id not in known:
            errors.setdefault(field.id, []).append(f"unknown signer '{field.signer_id}'")
    for signature in document.signatures:
        if signature.signer_id not in known:
            errors.setdefault("signatures", []).append(f"unknown signer '{signature.signer_id}'")
    if errors:
        raise ValidationError("Document is inconsistent", errors=errors)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def field_from_definition(definition: FieldDefinition, signer_id: Optional[str]) -> BaseField:
    shape = shape_for_type(definition.type)
    data: Dict[str, Any] = {
        "id": definition.id,
        "type": definition.type,
        "label": definition.label,
        "required": definition.required,
        "signer_id": signer_id,
    }
    if definition.unit:
        data["unit"] = definition.unit
    for attribute in SHAPE_ATTRIBUTES.get(shape.__name__, ()):
        value = getattr(definition, attribute)
        if value is not None:
            data[attribute] = value
    return parse_field(data)


def seed_document(
    config: DocumentTypeConfig,
    title: str,
    owner_id: str,
    template_digest: str,
    now: datetime,
) -> Document:
    """New draft with signers, fields and options taken from the type configuration."""
    signers = [Signer(id=s.id, role=s.role, order=s.order) for s in config.default_signers]
    role_to_signer = {s.role: s.id for s in config.default_signers}
    fields = [
        field_from_definition(definition, role_to_signer.get(definition.signer_role))
        for definition in config.field_definitions
    ]
    return Document(
        title=title or config.title,
        type=config.type,
        status=DocumentStatus.DRAFT,
        created_at=now,
        updated_at=now,
        created_by=owner_id,
        signers=signers,
        fields=fields,
        options=config.default_options(),
        template_digest=template_digest,
    )


# ---------------------------------------------------------------------------
# Draft editing
# ---------------------------------------------------------------------------

def _validate_options(options: Dict[str, Any], config: Optional[DocumentTypeConfig]) -> None:
    if config is None:
        return
    declared = {option.id: option for option in config.options}
    errors: Dict[str, List[str]] = {}
    for option_id, selected in options.items():
        option = declared.get(option_id)
        if option is None:
            errors.setdefault(option_id, []).append("unknown option")
            continue
        allowed = {choice.value for choice in option.options}
        values = selected if isinstance(selected, list) else [selected]
        bad = [v for v in values if v is not None and v not in allowed]
        if bad:
            errors.setdefault(option_id, []).append(f"invalid choice(s): {', '.join(map(str, bad))}")
    if errors:
        raise ValidationError("Invalid document options", errors=errors)


def apply_patch(
    document: Document,
    patch: DocumentPatch,
    now: datetime,
    config: Optional[DocumentTypeConfig] = None,
) -> Document:
    ensure_draft(document)
    update: Dict[str, Any] = {"updated_at": now}
    for name in ("title", "signers", "fields", "settings", "rental_terms", "expires_at"):
        value = getattr(patch, name)
        if value is not None:
            update[name] = value

    if patch.options is not None:
        _validate_options(patch.options, config)
        update["options"] = {**document.options, **patch.options}

    updated = document.model_copy(update=update)

    if patch.fields is not None:
        errors: Dict[str, List[str]] = {}
        for field in patch.fields:
            if field.value is None or (isinstance(field.value, str) and not field.value.strip()):
                continue
            problems = validate_field_value(field, field.value)
            if problems:
                errors[field.id] = problems
        if errors:
            raise ValidationError("Invalid field values", errors=errors)

    if patch.field_values:
        errors = {}
        by_id = {f.id: f for f in updated.fields}
        for field_id, value in patch.field_values.items():
            field = by_id.get(field_id)
            if field is None:
                errors.setdefault(field_id, []).append("unknown field")
                continue
            if value is None:
                continue
            problems = validate_field_value(field, value)
            if problems:
                errors[field_id] = problems
        if errors:
            raise ValidationError("Invalid field values", errors=errors)
        updated = updated.model_copy(update={
            "fields": [
                f.model_copy(update={"value": patch.field_values[f.id]}) if f.id in patch.field_values else f
                for f in updated.fields
            ],
        })

    check_integrity(updated)
    return updated


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

def activate(
    document: Document,
    make_link: Callable[[], str],
    now: datetime,
    config: Optional[DocumentTypeConfig] = None,
) -> Document:
    """Share the document. Re-sharing an active document keeps its link."""
    if document.status.is_terminal:
        raise InvalidStateError(
            f"Document {document.id} is {document.status.value} and cannot be shared",
            document_id=document.id,
            status=document.status.value,
        )
    if not document.signers:
        raise ValidationError("A document needs at least one signer before it can be shared")
    if config is not None:
        present = {s.role for s in document.signers}
        missing = [role for role in config.required_roles() if role not in present]
        if missing:
            raise ValidationError(
                "Required signers are missing",
                errors={"signers": [f"missing role '{role}'" for role in missing]},
            )
    check_integrity(document)

    if document.status == DocumentStatus.ACTIVE and document.share_link_active:
        return document
    return document.model_copy(update={
        "status": DocumentStatus.ACTIVE,
        "share_link": document.share_link or make_link(),
        "share_link_active": True,
        "updated_at": now,
    })


def cancel(document: Document, now: datetime) -> Document:
    ensure_transition(document, DocumentStatus.CANCELLED)
    return document.model_copy(update={
        "status": DocumentStatus.CANCELLED,
        "share_link_active": False,
        "updated_at": now,
    })


def expire(document: Document, now: datetime) -> Document:
    ensure_transition(document, DocumentStatus.EXPIRED)
    return document.model_copy(update={
        "status": DocumentStatus.EXPIRED,
        "share_link_active": False,
        "updated_at": now,
    })


def is_overdue(document: Document, now: datetime) -> bool:
    return (
        document.status == DocumentStatus.ACTIVE
        and document.expires_at is not None
        and as_utc(document.expires_at) <= as_utc(now)
    )


def ensure_deletable(document: Document) -> None:
    if document.status == DocumentStatus.COMPLETED:
        raise InvalidStateError(
            f"Completed document {document.id} cannot be deleted",
            document_id=document.id,
            status=document.status.value,
        )


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

def ensure_viewable(document: Document) -> None:
    """Guard for the public signing view."""
    if document.status.is_terminal:
        raise DocumentClosedError(
            f"Document {document.id} is {document.status.value}",
            document_id=document.id,
            status=document.status.value,
        )
    if not document.share_link_active or document.status != DocumentStatus.ACTIVE:
        raise LinkInactiveError("This signing link is not active", document_id=document.id)


def all_signed(document: Document) -> bool:
    signed = {s.signer_id for s in document.signatures}
    return bool(document.signers) and all(s.id in signed for s in document.signers)


def _check_order(document: Document, signer: Signer) -> None:
    if not document.settings.require_signature_order:
        return
    pending = [
        s.id for s in document.signers
        if s.order < signer.order and not document.has_signed(s.id)
    ]
    if pending:
        raise SignatureOrderError(
            f"Signer {signer.id} must wait for {', '.join(pending)}",
            signer_id=signer.id,
            waiting_for=pending,
        )


def _merge_values(
    document: Document,
    signer_id: str,
    field_values: Dict[str, Any],
    signature_data: Optional[str],
    signed_on: date,
) -> Tuple[List[BaseField], Dict[str, Any]]:
    errors: Dict[str, List[str]] = {}
    foreign = []
    for field_id, value in field_values.items():
        field = document.get_field(field_id)
        if field is None:
            errors.setdefault(field_id, []).append("unknown field")
        elif field.signer_id != signer_id:
            foreign.append(field_id)
        elif field.readonly:
            errors.setdefault(field_id, []).append("field is read-only")
        else:
            problems = validate_field_value(field, value)
            if problems:
                errors[field_id] = problems
    if foreign:
        raise FieldOwnershipError(
            f"Signer {signer_id} cannot fill fields owned by another signer",
            errors={field_id: ["owned by another signer"] for field_id in foreign},
        )
    if errors:
        raise ValidationError("Invalid field values", errors=errors)

    applied = dict(field_values)
    for field in document.fields:
        if field.signer_id != signer_id or field.id in applied:
            continue
        if isinstance(field, DynaField) and field.type == "signature" and signature_data:
            applied[field.id] = signature_data
        elif isinstance(field, DateField) and field.type == "signatureDate" and field.default_to_current:
            applied[field.id] = signed_on.isoformat()

    merged = [
        f.model_copy(update={"value": applied[f.id]}) if f.id in applied else f
        for f in document.fields
    ]
    missing = [
        f.id for f in merged
        if f.signer_id == signer_id and f.required and not f.is_filled()
    ]
    if missing:
        raise ValidationError(
            "Required fields are missing",
            errors={field_id: ["required"] for field_id in missing},
        )
    return merged, applied


def record_signature(
    document: Document,
    signer_id: str,
    field_values: Dict[str, Any],
    signature_data: Optional[str],
    now: datetime,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Document:
    """Append the signer's signature, merge their field values, complete when everyone signed."""
    if document.status in (DocumentStatus.CANCELLED, DocumentStatus.EXPIRED):
        raise NotAvailableForSigningError(
            f"Document {document.id} is {document.status.value}",
            document_id=document.id,
            status=document.status.value,
        )
    signer = document.get_signer(signer_id)
    if signer is None:
        raise UnknownSignerError(signer_id)
    if document.has_signed(signer_id):
        raise AlreadySignedError(signer_id)
    if document.status != DocumentStatus.ACTIVE or not document.share_link_active:
        raise LinkInactiveError("This signing link is not active", document_id=document.id)
    _check_order(document, signer)

    fields, applied = _merge_values(document, signer_id, field_values or {}, signature_data, now.date())
    signature = Signature(
        signer_id=signer_id,
        document_id=document.id,
        signed_at=now,
        ip_address=ip_address,
        user_agent=user_agent,
        signature_data=signature_data,
        field_values=applied,
    )
    signed = document.model_copy(update={
        "fields": fields,
        "signatures": [*document.signatures, signature],
        "updated_at": now,
    })
    if all_signed(signed):
        signed = signed.model_copy(update={
            "status": DocumentStatus.COMPLETED,
            "completed_at": now,
            "share_link_active": False,
        })
    return signed
