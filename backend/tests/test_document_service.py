"""
Owner-side document operations through DocumentService and the in-memory store.
"""
import sys
from datetime import timedelta
from pathlib import Path

import pytest

backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from safesign.errors import (
    ConcurrentModificationError,
    ForbiddenError,
    InvalidStateError,
    NotDraftError,
    NotFoundError,
    UnknownTemplateTypeError,
    ValidationError,
)
from safesign.models.documents import DocumentPatch, DocumentStatus, RentalSettings
from safesign.services import DocumentService, InMemoryDocumentStore


class VanishingStore(InMemoryDocumentStore):
    """Drops one document right after it has been listed."""

    vanish = None

    async def list_all(self):
        listed = await super().list_all()
        if self.vanish:
            await super().delete(self.vanish)
        return listed


class CompletingStore(InMemoryDocumentStore):
    """Lets the last signer complete the document just before a delete lands."""

    async def delete(self, document_id, expected_version=None):
        current = await self.get(document_id)
        if current is not None and current.status == DocumentStatus.ACTIVE:
            completed = current.model_copy(update={"status": DocumentStatus.COMPLETED, "share_link_active": False})
            await self.put(completed, expected_version=current.version)
        return await super().delete(document_id, expected_version=expected_version)


class TestTemplateCatalogue:
    def test_list_and_config(self, documents):
        types = documents.list_template_types()
        assert len(types) == 6
        assert types[0].type == "rentalContract"
        config = documents.get_template_config("inventory")
        assert [o.id for o in config.options] == ["inventory_type"]


class TestCreateDocument:
    @pytest.mark.asyncio
    async def test_create_seeds_from_template(self, documents, owner, registry):
        document = await documents.create_document("rentReceipt", "Quittance juillet", owner.caller_id)
        assert document.status == DocumentStatus.DRAFT
        assert document.version == 1
        assert document.title == "Quittance juillet"
        assert document.id.startswith("DOC-")
        assert document.envelope_id.startswith("ENV-")
        assert document.template_digest == registry.get("rentReceipt").digest()
        assert {s.role for s in document.signers} == {"lessor", "tenant"}

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, documents, owner, store):
        with pytest.raises(UnknownTemplateTypeError):
            await documents.create_document("leaseOption", "x", owner.caller_id)
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_empty_title_uses_template_title(self, documents, owner):
        document = await documents.create_document("inventory", "", owner.caller_id)
        assert document.title == "État des Lieux"


class TestReadAccess:
    @pytest.mark.asyncio
    async def test_owner_and_admin_can_read(self, documents, owner, admin, other_user):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        assert (await documents.get_document(created.id, owner)).id == created.id
        assert (await documents.get_document(created.id, admin)).id == created.id
        with pytest.raises(ForbiddenError):
            await documents.get_document(created.id, other_user)

    @pytest.mark.asyncio
    async def test_missing_document(self, documents, owner):
        with pytest.raises(NotFoundError):
            await documents.get_document("DOC-NOPE", owner)

    @pytest.mark.asyncio
    async def test_list_newest_first(self, documents, owner, other_user, clock):
        first = await documents.create_document("rentReceipt", "A", owner.caller_id)
        clock.advance(minutes=5)
        second = await documents.create_document("inventory", "B", owner.caller_id)
        await documents.create_document("inventory", "C", other_user.caller_id)
        listed = await documents.list_documents(owner.caller_id)
        assert [d.id for d in listed] == [second.id, first.id]


class TestUpdateDocument:
    @pytest.mark.asyncio
    async def test_update_draft(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        patch = DocumentPatch(
            title="Quittance août",
            field_values={"loyer": 700},
            rental_terms=RentalSettings(rent=700, charges=40),
        )
        updated = await documents.update_document(created.id, patch, owner)
        assert updated.title == "Quittance août"
        assert updated.get_field("loyer").value == 700
        assert updated.rental_terms.charges == 40
        assert updated.version == created.version + 1

    @pytest.mark.asyncio
    async def test_update_by_other_user_forbidden(self, documents, owner, other_user):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        with pytest.raises(ForbiddenError):
            await documents.update_document(created.id, DocumentPatch(title="x"), other_user)

    @pytest.mark.asyncio
    async def test_update_after_sharing_rejected(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        await documents.activate_sharing(created.id, owner)
        with pytest.raises(NotDraftError):
            await documents.update_document(created.id, DocumentPatch(title="x"), owner)

    @pytest.mark.asyncio
    async def test_invalid_values_leave_document_untouched(self, documents, owner, store):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        with pytest.raises(ValidationError):
            await documents.update_document(created.id, DocumentPatch(title="x", field_values={"loyer": -1}), owner)
        stored = await store.get(created.id)
        assert stored.title == "Q"
        assert stored.version == created.version


class TestSharing:
    @pytest.mark.asyncio
    async def test_share_returns_link(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        share = await documents.activate_sharing(created.id, owner)
        assert share.share_link == "link-1"
        assert share.path == "/sign/link-1"
        stored = await documents.get_document(created.id, owner)
        assert stored.status == DocumentStatus.ACTIVE
        assert stored.share_link_active

    @pytest.mark.asyncio
    async def test_share_is_idempotent(self, documents, owner, links, store):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        first = await documents.activate_sharing(created.id, owner)
        version = (await store.get(created.id)).version
        second = await documents.activate_sharing(created.id, owner)
        assert first.share_link == second.share_link
        assert links.issued == 1
        assert (await store.get(created.id)).version == version

    @pytest.mark.asyncio
    async def test_share_by_other_user_forbidden(self, documents, owner, other_user):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        with pytest.raises(ForbiddenError):
            await documents.activate_sharing(created.id, other_user)

    @pytest.mark.asyncio
    async def test_share_without_signers_rejected(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        await documents.update_document(created.id, DocumentPatch(signers=[], fields=[]), owner)
        with pytest.raises(ValidationError):
            await documents.activate_sharing(created.id, owner)


class TestCancelExpireDelete:
    @pytest.mark.asyncio
    async def test_cancel_active(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        await documents.activate_sharing(created.id, owner)
        cancelled = await documents.cancel_document(created.id, owner)
        assert cancelled.status == DocumentStatus.CANCELLED
        assert not cancelled.share_link_active

    @pytest.mark.asyncio
    async def test_admin_may_cancel(self, documents, owner, admin, other_user):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        await documents.activate_sharing(created.id, owner)
        with pytest.raises(ForbiddenError):
            await documents.cancel_document(created.id, other_user)
        assert (await documents.cancel_document(created.id, admin)).status == DocumentStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_draft_rejected(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        with pytest.raises(InvalidStateError):
            await documents.cancel_document(created.id, owner)

    @pytest.mark.asyncio
    async def test_expire_overdue(self, documents, owner, clock):
        due = await documents.create_document("rentReceipt", "due", owner.caller_id)
        await documents.update_document(due.id, DocumentPatch(expires_at=clock() + timedelta(days=1)), owner)
        await documents.activate_sharing(due.id, owner)
        later = await documents.create_document("rentReceipt", "later", owner.caller_id)
        await documents.update_document(later.id, DocumentPatch(expires_at=clock() + timedelta(days=30)), owner)
        await documents.activate_sharing(later.id, owner)

        clock.advance(days=2)
        assert await documents.expire_overdue() == 1
        assert (await documents.get_document(due.id, owner)).status == DocumentStatus.EXPIRED
        assert (await documents.get_document(later.id, owner)).status == DocumentStatus.ACTIVE
        assert await documents.expire_overdue() == 0

    @pytest.mark.asyncio
    async def test_expire_overdue_with_naive_expiry(self, documents, owner, clock):
        due = await documents.create_document("rentReceipt", "due", owner.caller_id)
        naive = (clock() - timedelta(days=1)).replace(tzinfo=None).isoformat()
        await documents.update_document(due.id, DocumentPatch(expires_at=naive), owner)
        await documents.activate_sharing(due.id, owner)
        assert await documents.expire_overdue() == 1
        assert (await documents.get_document(due.id, owner)).status == DocumentStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_expire_overdue_skips_vanished_documents(self, registry, clock, links, owner):
        store = VanishingStore()
        documents = DocumentService(store, registry, clock=clock, link_factory=links)
        ids = []
        for title in ("a", "b"):
            created = await documents.create_document("rentReceipt", title, owner.caller_id)
            await documents.update_document(created.id, DocumentPatch(expires_at=clock() - timedelta(hours=1)), owner)
            await documents.activate_sharing(created.id, owner)
            ids.append(created.id)
        store.vanish = ids[0]

        assert await documents.expire_overdue() == 1
        assert (await store.get(ids[1])).status == DocumentStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_expire_document(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        await documents.activate_sharing(created.id, owner)
        assert (await documents.expire_document(created.id)).status == DocumentStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_delete_draft(self, documents, owner, other_user):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        with pytest.raises(ForbiddenError):
            await documents.delete_document(created.id, other_user)
        await documents.delete_document(created.id, owner)
        with pytest.raises(NotFoundError):
            await documents.get_document(created.id, owner)

    @pytest.mark.asyncio
    async def test_delete_completed_rejected(self, documents, owner, store):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        current = await store.get(created.id)
        await store.put(current.model_copy(update={"status": DocumentStatus.COMPLETED}), expected_version=current.version)
        with pytest.raises(InvalidStateError):
            await documents.delete_document(created.id, owner)
        assert await store.get(created.id) is not None


    @pytest.mark.asyncio
    async def test_delete_loses_race_with_completion(self, registry, clock, links, owner):
        store = CompletingStore()
        documents = DocumentService(store, registry, clock=clock, link_factory=links)
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        await documents.activate_sharing(created.id, owner)

        with pytest.raises(InvalidStateError):
            await documents.delete_document(created.id, owner)
        assert (await store.get(created.id)).status == DocumentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_delete_gives_up_under_constant_writes(self, documents, owner, store):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)

        async def always_conflicting(document_id, expected_version=None):
            raise ConcurrentModificationError("busy")

        store.delete = always_conflicting
        with pytest.raises(ConcurrentModificationError):
            await documents.delete_document(created.id, owner)


class TestPreviewAndTemplateStatus:
    @pytest.mark.asyncio
    async def test_preview_owner_only(self, documents, owner, admin):
        created = await documents.create_document("rentReceipt", "Quittance <juillet>", owner.caller_id)
        html = await documents.render_preview(created.id, owner)
        assert "<title>Quittance &lt;juillet&gt;</title>" in html
        assert "14/07/2025" in html
        with pytest.raises(ForbiddenError):
            await documents.render_preview(created.id, admin)

    @pytest.mark.asyncio
    async def test_preview_with_override_settings(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        html = await documents.render_preview(created.id, owner, RentalSettings(rent=500))
        assert "cinq cents euros" in html

    @pytest.mark.asyncio
    async def test_unspellable_amount_rejected_before_render(self, documents, owner):
        created = await documents.create_document("guaranteeAct", "Caution", owner.caller_id)
        with pytest.raises(ValidationError) as exc:
            await documents.update_document(created.id, DocumentPatch(field_values={"engagement_max": "1000000000000"}), owner)
        assert "engagement_max" in exc.value.errors
        await documents.update_document(created.id, DocumentPatch(field_values={"engagement_max": "999999999999"}), owner)
        html = await documents.render_preview(created.id, owner)
        assert "neuf cent quatre-vingt-dix-neuf milliards" in html

    @pytest.mark.asyncio
    async def test_template_status(self, documents, owner):
        created = await documents.create_document("rentReceipt", "Q", owner.caller_id)
        assert not documents.template_status(created).outdated
        drifted = created.model_copy(update={"template_digest": "0000000000000000"})
        status = documents.template_status(drifted)
        assert status.outdated
        assert status.stored_digest == "0000000000000000"
