"""
SafeSign - French legal document generation and e-signature core
=================================================================

Template-driven rendering of rental paperwork (bail, sous-location, acte de
cautionnement, état des lieux, quittance, attestation d'hébergement) plus the
draft -> active -> completed signing state machine.

Layers:
- models: pydantic schema (fields, documents, document types, callers)
- templates: registry, shared helpers and the six document templates
- services: persistence stores, lifecycle guards, document and signing services
"""

__version__ = "1.0.0"
__product__ = "SafeSign"
