"""Static per-type configuration exposed by every document template."""

from pydantic import BaseModel, Field
from typing import Optional, Any, List, Literal


class DocumentOptionChoice(BaseModel):
    value: str
    label: str


class DocumentOption(BaseModel):
    """A legal variant selectable by the document owner (rendered as ticked boxes)."""
    id: str
    label: str
    type: Literal["radio", "checkbox", "select"] = "checkbox"
    required: bool = False
    options: List[DocumentOptionChoice] = Field(default_factory=list)
    default_value: Any = None


class FieldDefinition(BaseModel):
    """Blueprint for a field seeded into every new document of the type."""
    id: str
    label: str
    type: str = "text"
    required: bool = False
    signer_role: Optional[str] = None
    placeholder: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    max_length: Optional[int] = None
    regex: Optional[str] = None
    unit: Optional[str] = None
    currency: Optional[str] = None
    default_to_current: bool = False


class DefaultSigner(BaseModel):
    id: str
    role: str
    label: str
    required: bool = True
    order: int = 0


class DocumentTypeConfig(BaseModel):
    type: str
    title: str
    description: str
    options: List[DocumentOption] = Field(default_factory=list)
    field_definitions: List[FieldDefinition] = Field(default_factory=list)
    default_signers: List[DefaultSigner] = Field(default_factory=list)

    def default_options(self) -> dict:
        return {option.id: option.default_value for option in self.options}

    def required_roles(self) -> List[str]:
        return [signer.role for signer in self.default_signers if signer.required]


class DocumentTypeSummary(BaseModel):
    type: str
    title: str
    description: str
