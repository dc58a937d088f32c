"""SafeSign Document Service

Owner-side operations: create, edit while draft, share, cancel, expire,
delete and preview. Every mutation is a CAS loop over the injected store.
"""

from datetime import date, datetime, timezone
from typing import Callable, List, Optional
import logging
import os

from auth import generate_signing_link
from safesign.errors import ConcurrentModificationError, NotFoundError
from safesign.models.document_types import DocumentTypeConfig, DocumentTypeSummary
from safesign.models.documents import (
    Document,
    DocumentPatch,
    DocumentStatus,
    RentalSettings,
    ShareLink,
    TemplateStatus,
)
from safesign.models.user import Principal
from safesign.services import lifecycle
from safesign.services.store import MAX_CAS_ATTEMPTS, DocumentStore, update_with_retry
from safesign.templates.engine import TemplateContext
from safesign.templates.registry import TemplateRegistry

logger = logging.getLogger(__name__)

SIGNING_BASE_PATH = os.getenv("SIGNING_BASE_PATH", "/sign")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentService:
    """Document lifecycle management for document owners."""

    def __init__(
        self,
        store: DocumentStore,
        registry: TemplateRegistry,
        clock: Callable[[], datetime] = utc_now,
        link_factory: Callable[[], str] = generate_signing_link,
    ):
        self.store = store
        self.registry = registry
        self.clock = clock
        self.link_factory = link_factory

    def _not_found(self, document_id: str) -> Callable[[], NotFoundError]:
        return lambda: NotFoundError(f"Document {document_id} not found", document_id=document_id)

    async def _load_owned(self, document_id: str, principal: Principal, allow_admin: bool = False) -> Document:
        document = await self.store.get(document_id)
        if document is None:
            raise self._not_found(document_id)()
        lifecycle.ensure_owner(document, principal, allow_admin=allow_admin)
        return document

    async def _mutate(self, document_id: str, principal: Optional[Principal], transition) -> Document:
        def guarded(current: Document) -> Document:
            if principal is not None:
                lifecycle.ensure_owner(current, principal)
            return transition(current)

        return await update_with_retry(
            self.store,
            lambda: self.store.get(document_id),
            guarded,
            self._not_found(document_id),
        )

    # ------------------------------------------------------------------
    # Template catalogue
    # ------------------------------------------------------------------

    def list_template_types(self) -> List[DocumentTypeSummary]:
        return self.registry.list_all()

    def get_template_config(self, doc_type: str) -> DocumentTypeConfig:
        return self.registry.get_config(doc_type)

    def template_status(self, document: Document) -> TemplateStatus:
        """Compare the digest captured at creation with the registry's current one."""
        current = self.registry.get(document.type).digest()
        return TemplateStatus(
            doc_type=document.type,
            stored_digest=document.template_digest,
            current_digest=current,
            outdated=current != document.template_digest,
        )

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_document(self, doc_type: str, title: str, owner_id: str) -> Document:
        template = self.registry.get(doc_type)
        document = lifecycle.seed_document(
            config=template.config,
            title=title,
            owner_id=owner_id,
            template_digest=template.digest(),
            now=self.clock(),
        )
        stored = await self.store.put(document)
        logger.info(f"Created {doc_type} document {stored.id} for {owner_id}")
        return stored

    async def get_document(self, document_id: str, principal: Principal) -> Document:
        return await self._load_owned(document_id, principal, allow_admin=True)

    async def list_documents(self, owner_id: str) -> List[Document]:
        return await self.store.list_by_owner(owner_id)

    async def update_document(self, document_id: str, patch: DocumentPatch, principal: Principal) -> Document:
        def transition(current: Document) -> Document:
            config = self.registry.get_config(current.type) if self.registry.has(current.type) else None
            return lifecycle.apply_patch(current, patch, self.clock(), config)

        updated = await self._mutate(document_id, principal, transition)
        logger.info(f"Updated draft document {document_id}")
        return updated

    async def activate_sharing(self, document_id: str, principal: Principal) -> ShareLink:
        def transition(current: Document) -> Document:
            config = self.registry.get_config(current.type) if self.registry.has(current.type) else None
            return lifecycle.activate(current, self.link_factory, self.clock(), config)

        document = await self._mutate(document_id, principal, transition)
        logger.info(f"Document {document_id} shared for signing")
        return ShareLink(
            document_id=document.id,
            share_link=document.share_link,
            path=f"{SIGNING_BASE_PATH}/{document.share_link}",
        )

    async def cancel_document(self, document_id: str, principal: Principal) -> Document:
        def transition(current: Document) -> Document:
            return lifecycle.cancel(current, self.clock())

        document = await update_with_retry(
            self.store,
            lambda: self._load_owned(document_id, principal, allow_admin=True),
            transition,
            self._not_found(document_id),
        )
        logger.info(f"Document {document_id} cancelled by {principal.caller_id}")
        return document

    async def expire_document(self, document_id: str) -> Document:
        """Expire an active document (external trigger; no ownership check)."""
        document = await self._mutate(document_id, None, lambda current: lifecycle.expire(current, self.clock()))
        logger.info(f"Document {document_id} expired")
        return document

    async def expire_overdue(self, now: Optional[datetime] = None) -> int:
        """Expire every active document whose ``expires_at`` is in the past."""
        now = now or self.clock()
        expired = 0
        for document in await self.store.list_all():
            if not lifecycle.is_overdue(document, now):
                continue

            def transition(current: Document) -> Document:
                # Someone may have completed or cancelled it meanwhile.
                if not lifecycle.is_overdue(current, now):
                    return current
                return lifecycle.expire(current, now)

            try:
                updated = await self._mutate(document.id, None, transition)
            except NotFoundError:
                logger.info(f"Document {document.id} vanished before it could be expired")
                continue
            if updated.status == DocumentStatus.EXPIRED:
                expired += 1
        return expired

    async def delete_document(self, document_id: str, principal: Principal) -> None:
        for attempt in range(1, MAX_CAS_ATTEMPTS + 1):
            document = await self._load_owned(document_id, principal)
            lifecycle.ensure_deletable(document)
            try:
                # Version-checked so a signature landing meanwhile is re-evaluated
                deleted = await self.store.delete(document_id, expected_version=document.version)
            except ConcurrentModificationError:
                logger.info(f"Version conflict deleting document {document_id} (attempt {attempt}/{MAX_CAS_ATTEMPTS}), retrying")
                continue
            if not deleted:
                raise self._not_found(document_id)()
            logger.info(f"Deleted document {document_id}")
            return
        raise ConcurrentModificationError("Document is being modified concurrently, try again later")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, document: Document, settings: Optional[RentalSettings] = None, current_date: Optional[date] = None) -> str:
        template = self.registry.get(document.type)
        context = TemplateContext.for_document(
            document,
            current_date=current_date or self.clock().date(),
            settings=settings,
        )
        return template.render(context)

    async def render_preview(
        self,
        document_id: str,
        principal: Principal,
        override_settings: Optional[RentalSettings] = None,
    ) -> str:
        document = await self._load_owned(document_id, principal)
        return self.render(document, settings=override_settings)
