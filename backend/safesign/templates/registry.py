"""Template registry: document type key -> template."""

import logging
from typing import Dict, List

from safesign.errors import DuplicateTemplateError, NotFoundError, UnknownTemplateTypeError
from safesign.models.document_types import DocumentTypeConfig, DocumentTypeSummary
from safesign.templates.engine import DocumentTemplate

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """Explicit registry built once at startup and injected into the services."""

    def __init__(self):
        self._templates: Dict[str, DocumentTemplate] = {}

    def register(self, doc_type: str, template: DocumentTemplate) -> None:
        if doc_type in self._templates:
            raise DuplicateTemplateError(doc_type)
        self._templates[doc_type] = template
        logger.debug(f"Registered template {doc_type} (digest {template.digest()})")

    def get(self, doc_type: str) -> DocumentTemplate:
        template = self._templates.get(doc_type)
        if template is None:
            raise UnknownTemplateTypeError(doc_type)
        return template

    def has(self, doc_type: str) -> bool:
        return doc_type in self._templates

    def list_all(self) -> List[DocumentTypeSummary]:
        return [
            DocumentTypeSummary(type=doc_type, title=t.title, description=t.description)
            for doc_type, t in self._templates.items()
        ]

    def get_config(self, doc_type: str) -> DocumentTypeConfig:
        template = self._templates.get(doc_type)
        if template is None or template.config is None:
            raise NotFoundError(f"No configuration for document type: {doc_type}", doc_type=doc_type)
        return template.config

    def __len__(self) -> int:
        return len(self._templates)
