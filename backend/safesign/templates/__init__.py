"""SafeSign document templates"""

from .engine import DocumentTemplate, TemplateContext
from .registry import TemplateRegistry
from . import (
    rental_contract,
    sublease_contract,
    guarantee_act,
    inventory,
    rent_receipt,
    residence_certificate,
)

DEFAULT_TEMPLATES = [
    rental_contract.TEMPLATE,
    sublease_contract.TEMPLATE,
    guarantee_act.TEMPLATE,
    inventory.TEMPLATE,
    rent_receipt.TEMPLATE,
    residence_certificate.TEMPLATE,
]


def build_default_registry() -> TemplateRegistry:
    """Registry holding the six built-in French templates, in display order."""
    registry = TemplateRegistry()
    for template in DEFAULT_TEMPLATES:
        registry.register(template.type, template)
    return registry


__all__ = [
    "DocumentTemplate",
    "TemplateContext",
    "TemplateRegistry",
    "DEFAULT_TEMPLATES",
    "build_default_registry",
]
