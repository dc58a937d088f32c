"""SafeSign Data Models"""

from .fields import (
    FieldType,
    Unit,
    Currency,
    SelectOption,
    BaseField,
    TextField,
    NumField,
    DateField,
    SelectField,
    DynaField,
    DocumentField,
    parse_field,
    shape_for_type,
    validate_field_value,
)
from .documents import (
    DocumentStatus,
    DocumentSettings,
    RentalSettings,
    Signer,
    Signature,
    Document,
    DocumentPatch,
    ShareLink,
    PublicSigner,
    PublicSignature,
    PublicDocumentView,
    SignResult,
    TemplateStatus,
)
from .document_types import (
    DocumentOption,
    DocumentOptionChoice,
    FieldDefinition,
    DefaultSigner,
    DocumentTypeConfig,
    DocumentTypeSummary,
)
from .user import User, UserRole, Principal

__all__ = [
    "FieldType",
    "Unit",
    "Currency",
    "SelectOption",
    "BaseField",
    "TextField",
    "NumField",
    "DateField",
    "SelectField",
    "DynaField",
    "DocumentField",
    "parse_field",
    "shape_for_type",
    "validate_field_value",
    "DocumentStatus",
    "DocumentSettings",
    "RentalSettings",
    "Signer",
    "Signature",
    "Document",
    "DocumentPatch",
    "ShareLink",
    "PublicSigner",
    "PublicSignature",
    "PublicDocumentView",
    "SignResult",
    "TemplateStatus",
    "DocumentOption",
    "DocumentOptionChoice",
    "FieldDefinition",
    "DefaultSigner",
    "DocumentTypeConfig",
    "DocumentTypeSummary",
    "User",
    "UserRole",
    "Principal",
]
