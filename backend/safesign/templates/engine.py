"""Template interface.

A document template is a value: a type key, human metadata, its static
configuration and a pure render function. Templates do not subclass anything;
they share behaviour through ``safesign.templates.helpers``.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional
import hashlib

from pydantic import BaseModel, Field

from safesign.models.documents import Document, RentalSettings, Signer
from safesign.models.document_types import DocumentTypeConfig

DIGEST_LENGTH = 16


class TemplateContext(BaseModel):
    """Everything a renderer may read. The renderer never reads the clock."""
    document: Document
    settings: RentalSettings = Field(default_factory=RentalSettings)
    fields: Dict[str, Any] = Field(default_factory=dict)
    signers: List[Signer] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)
    current_date: date

    @classmethod
    def for_document(
        cls,
        document: Document,
        current_date: date,
        settings: Optional[RentalSettings] = None,
    ) -> "TemplateContext":
        return cls(
            document=document,
            settings=settings or document.rental_terms,
            fields=document.field_values(),
            signers=list(document.signers),
            options=dict(document.options),
            current_date=current_date,
        )

    def field(self, field_id: str, default: Any = None) -> Any:
        value = self.fields.get(field_id)
        if value is None or (isinstance(value, str) and not value.strip()):
            return default
        return value

    def option(self, option_id: str, default: Any = None) -> Any:
        return self.options.get(option_id, default)


RenderFn = Callable[[TemplateContext], str]


@dataclass(frozen=True)
class DocumentTemplate:
    type: str
    title: str
    description: str
    render_fn: RenderFn = field(repr=False)
    config: DocumentTypeConfig = field(repr=False)
    # Bump when the legal text of a template changes.
    revision: int = 1

    @property
    def name(self) -> str:
        return f"{self.render_fn.__module__}.{self.render_fn.__qualname__}"

    def render(self, context: TemplateContext) -> str:
        return self.render_fn(context)

    def digest(self) -> str:
        """Change detector for the template identity, not an integrity proof."""
        content = f"{self.name}:{self.type}:{self.title}:{self.revision}"
        return hashlib.sha256(content.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]
