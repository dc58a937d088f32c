"""SafeSign Signing Service

Public side of the lifecycle: a signer holding the share link views the
document and signs it; anyone holding the envelope id views the final render.
"""

from datetime import date, datetime
from typing import Any, Callable, Dict, Optional
import logging

from safesign.errors import NotFoundError
from safesign.models.documents import (
    Document,
    DocumentStatus,
    PublicDocumentView,
    PublicSignature,
    PublicSigner,
    SignResult,
)
from safesign.services import lifecycle
from safesign.services.document_service import DocumentService, utc_now
from safesign.services.store import DocumentStore, update_with_retry

logger = logging.getLogger(__name__)

VIEW_BASE_PATH = "/view"


class SigningService:
    def __init__(
        self,
        store: DocumentStore,
        documents: DocumentService,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.documents = documents
        self.clock = clock

    @staticmethod
    def _link_not_found() -> NotFoundError:
        return NotFoundError("Signing link not found")

    async def _by_link(self, token: str) -> Optional[Document]:
        return await self.store.find_by_field("share_link", token)

    def _public_view(self, document: Document) -> PublicDocumentView:
        outdated = False
        if self.documents.registry.has(document.type):
            outdated = self.documents.template_status(document).outdated
        return PublicDocumentView(
            id=document.id,
            envelope_id=document.envelope_id,
            title=document.title,
            type=document.type,
            status=document.status,
            signers=[
                PublicSigner(
                    id=s.id,
                    role=s.role,
                    first_name=s.first_name,
                    last_name=s.last_name,
                    organization=s.organization,
                )
                for s in document.signers
            ],
            fields=[f for f in document.fields if not f.readonly],
            signatures=[PublicSignature(signer_id=s.signer_id, signed_at=s.signed_at) for s in document.signatures],
            template_outdated=outdated,
        )

    async def get_for_signing(self, token: str) -> PublicDocumentView:
        document = await self._by_link(token)
        if document is None:
            raise self._link_not_found()
        lifecycle.ensure_viewable(document)
        return self._public_view(document)

    async def submit_signature(
        self,
        token: str,
        signer_id: str,
        field_values: Optional[Dict[str, Any]] = None,
        signature_data: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SignResult:
        def transition(current: Document) -> Document:
            return lifecycle.record_signature(
                current,
                signer_id=signer_id,
                field_values=field_values or {},
                signature_data=signature_data,
                now=self.clock(),
                ip_address=ip_address,
                user_agent=user_agent,
            )

        document = await update_with_retry(
            self.store,
            lambda: self._by_link(token),
            transition,
            self._link_not_found,
        )
        completed = document.status == DocumentStatus.COMPLETED
        logger.info(f"Signer {signer_id} signed document {document.id}")
        if completed:
            logger.info(f"Document {document.id} completed")
        return SignResult(
            all_signed=completed,
            redirect_url=f"{VIEW_BASE_PATH}/{document.envelope_id}" if completed else None,
        )

    async def render_final(self, envelope_id: str, current_date: Optional[date] = None) -> str:
        document = await self.store.find_by_field("envelope_id", envelope_id)
        if document is None:
            raise NotFoundError(f"Envelope {envelope_id} not found", envelope_id=envelope_id)
        if current_date is None:
            # Completed documents are dated by their completion, so re-renders are stable.
            current_date = (document.completed_at or self.clock()).date()
        return self.documents.render(document, current_date=current_date)
