"""Document field model.

A field is a closed tagged union keyed on ``type``: five shapes (text,
numeric, date, selection, dynamic) each owning a fixed set of field types and
its own shape-specific attributes.
"""

from pydantic import BaseModel, Field, TypeAdapter
from typing import Optional, Any, List, Literal, Union, Callable, Dict, Type, Annotated, get_args
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
import re


class FieldType(str, Enum):
    # Text family
    TEXT = "text"
    EMAIL = "email"
    ADDRESS = "address"
    SIGNER_NAME = "signerName"
    SIGNER_FIRST_NAME = "signerFirstName"
    SIGNER_TITLE = "signerTitle"
    SIGNER_EMAIL = "signerEmail"
    SIGNER_ORG = "signerOrg"
    SIGNER_ADDRESS = "signerAddress"
    # Numeric / identifier family
    PHONE = "phone"
    NUMBER = "number"
    AMOUNT = "amount"
    COORDINATES = "coordinates"
    TAX_ID = "taxId"
    BUSINESS_REG = "businessReg"
    VAT_NUMBER = "vatNumber"
    IBAN = "iban"
    BIC = "bic"
    ACTIVITY_CODE = "activityCode"
    SSN = "ssn"
    PASSPORT = "passport"
    DRIVERS_LICENSE = "driversLicense"
    # Date family
    DATE = "date"
    SIGNATURE_DATE = "signatureDate"
    # Selection family
    MULTI_SELECT = "multiSelect"
    TOGGLE = "toggle"
    # Dynamic family
    FREE_FIELD = "freeField"
    SIGNATURE = "signature"
    FUNCTION = "function"


class Unit(str, Enum):
    SQUARE_METER = "m²"
    METER = "m"
    PERCENT = "%"
    EURO = "€"
    MONTH = "mois"
    YEAR = "ans"
    KWH = "kWh"
    CUBIC_METER = "m³"


class Currency(str, Enum):
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"
    CHF = "CHF"


class Position(BaseModel):
    x: float = 0
    y: float = 0


class Size(BaseModel):
    width: float = 0
    height: float = 0


class SelectOption(BaseModel):
    id: str
    label: str
    value: str
    selected: bool = False


class BaseField(BaseModel):
    """Attributes shared by every field shape."""
    model_config = {"extra": "forbid"}

    id: str
    label: str = ""
    required: bool = False
    readonly: bool = False
    rounding: Optional[int] = None
    unit: Optional[Unit] = None
    value: Any = None
    position: Optional[Position] = None
    size: Optional[Size] = None
    signer_id: Optional[str] = None

    def is_filled(self) -> bool:
        if self.value is None:
            return False
        if isinstance(self.value, str):
            return bool(self.value.strip())
        if isinstance(self.value, (list, tuple)):
            return len(self.value) > 0
        return True


class TextField(BaseField):
    type: Literal[
        "text", "email", "address", "signerName", "signerFirstName",
        "signerTitle", "signerEmail", "signerOrg", "signerAddress",
    ]
    max_length: Optional[int] = None
    placeholder: Optional[str] = None
    regex: Optional[str] = None


class NumField(BaseField):
    type: Literal[
        "phone", "number", "amount", "coordinates", "taxId", "businessReg",
        "vatNumber", "iban", "bic", "activityCode", "ssn", "passport", "driversLicense",
    ]
    min: Optional[float] = None
    max: Optional[float] = None
    currency: Optional[Currency] = None
    country_code: Optional[str] = None
    step: Optional[float] = None


class DateField(BaseField):
    type: Literal["date", "signatureDate"]
    min_date: Optional[date] = None
    max_date: Optional[date] = None
    format: str = "DD/MM/YYYY"
    default_to_current: bool = False


class SelectField(BaseField):
    type: Literal["multiSelect", "toggle"]
    options: List[SelectOption] = Field(default_factory=list)
    max_selections: Optional[int] = None
    min_selections: Optional[int] = None


class DynaField(BaseField):
    type: Literal["freeField", "signature", "function"]
    data_type: Literal["text", "drawing", "image"] = "text"
    function_expression: Optional[str] = None
    depends_on: List[str] = Field(default_factory=list)


DocumentField = Annotated[
    Union[TextField, NumField, DateField, SelectField, DynaField],
    Field(discriminator="type"),
]

document_field_adapter = TypeAdapter(DocumentField)

FIELD_SHAPES: Dict[str, Type[BaseField]] = {
    field_type: shape
    for shape in (TextField, NumField, DateField, SelectField, DynaField)
    for field_type in get_args(shape.model_fields["type"].annotation)
}


def shape_for_type(field_type: str) -> Type[BaseField]:
    try:
        return FIELD_SHAPES[field_type]
    except KeyError:
        raise ValueError(f"Unknown field type: {field_type}")


def parse_field(data: Dict[str, Any]) -> BaseField:
    """Build the concrete field shape from a raw mapping."""
    return document_field_adapter.validate_python(data)


# ---------------------------------------------------------------------------
# Value validation
# ---------------------------------------------------------------------------

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^(?:(?:\+|00)33|0)\s*[1-9](?:[\s.-]*\d{2}){4}$")
IBAN_RE = re.compile(r"^[A-Z]{2}\d{2}[A-Z0-9]{11,30}$")
BIC_RE = re.compile(r"^[A-Z]{6}[A-Z0-9]{2}(?:[A-Z0-9]{3})?$")

# Largest amount the templates can spell out in words
MAX_AMOUNT = Decimal("999999999999.99")


def _to_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    try:
        return Decimal(str(value).replace(" ", "").replace(",", "."))
    except InvalidOperation:
        return None


def _to_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _validate_text(field: TextField, value: Any) -> List[str]:
    if not isinstance(value, str):
        return [f"{field.label or field.id} must be text"]
    errors = []
    if field.max_length is not None and len(value) > field.max_length:
        errors.append(f"{field.label or field.id} exceeds {field.max_length} characters")
    if field.type in ("email", "signerEmail") and not EMAIL_RE.match(value):
        errors.append(f"{field.label or field.id} is not a valid email address")
    if field.regex and not re.fullmatch(field.regex, value):
        errors.append(f"{field.label or field.id} has an invalid format")
    return errors


def _validate_num(field: NumField, value: Any) -> List[str]:
    name = field.label or field.id
    if field.type == "phone":
        return [] if isinstance(value, str) and PHONE_RE.match(value.strip()) else [f"{name} is not a valid phone number"]
    if field.type == "iban":
        compact = str(value).replace(" ", "").upper()
        return [] if IBAN_RE.match(compact) else [f"{name} is not a valid IBAN"]
    if field.type == "bic":
        return [] if BIC_RE.match(str(value).strip().upper()) else [f"{name} is not a valid BIC"]
    if field.type in ("number", "amount"):
        number = _to_decimal(value)
        if number is None or not number.is_finite():
            return [f"{name} must be a number"]
        errors = []
        if field.min is not None and number < Decimal(str(field.min)):
            errors.append(f"{name} must be at least {field.min}")
        if field.max is not None and number > Decimal(str(field.max)):
            errors.append(f"{name} must be at most {field.max}")
        if field.type == "amount" and abs(number) > MAX_AMOUNT:
            errors.append(f"{name} must not exceed {MAX_AMOUNT}")
        return errors
    if not isinstance(value, (str, int)) or isinstance(value, bool) or not str(value).strip():
        return [f"{name} must not be empty"]
    return []


def _validate_date(field: DateField, value: Any) -> List[str]:
    name = field.label or field.id
    parsed = _to_date(value)
    if parsed is None:
        return [f"{name} must be a date (YYYY-MM-DD)"]
    errors = []
    if field.min_date and parsed < field.min_date:
        errors.append(f"{name} must not be before {field.min_date.isoformat()}")
    if field.max_date and parsed > field.max_date:
        errors.append(f"{name} must not be after {field.max_date.isoformat()}")
    return errors


def _validate_select(field: SelectField, value: Any) -> List[str]:
    name = field.label or field.id
    if field.type == "toggle":
        return [] if isinstance(value, bool) else [f"{name} must be true or false"]
    if not isinstance(value, list):
        return [f"{name} must be a list of options"]
    allowed = {option.value for option in field.options}
    errors = [f"{name}: unknown option '{v}'" for v in value if v not in allowed]
    if field.min_selections is not None and len(value) < field.min_selections:
        errors.append(f"{name} needs at least {field.min_selections} selections")
    if field.max_selections is not None and len(value) > field.max_selections:
        errors.append(f"{name} allows at most {field.max_selections} selections")
    return errors


def _validate_dyna(field: DynaField, value: Any) -> List[str]:
    name = field.label or field.id
    if field.type == "function":
        return [f"{name} is computed and cannot be set"]
    if field.type == "signature" and not (isinstance(value, str) and value.strip()):
        return [f"{name} requires a signature"]
    return []


FIELD_VALIDATORS: Dict[Type[BaseField], Callable[[Any, Any], List[str]]] = {
    TextField: _validate_text,
    NumField: _validate_num,
    DateField: _validate_date,
    SelectField: _validate_select,
    DynaField: _validate_dyna,
}


def validate_field_value(field: BaseField, value: Any) -> List[str]:
    """Return the list of problems with ``value`` for ``field`` (empty when valid).

    ``None`` is accepted for optional fields and rejected for required ones.
    """
    validator = FIELD_VALIDATORS.get(type(field))
    if validator is None:
        raise TypeError(f"No validator for field shape {type(field).__name__}")
    if value is None or (isinstance(value, str) and not value.strip()):
        if field.required:
            return [f"{field.label or field.id} is required"]
        return []
    return validator(field, value)
