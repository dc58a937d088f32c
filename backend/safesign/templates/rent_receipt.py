"""Quittance de loyer (article 21 de la loi du 6 juillet 1989)."""

from safesign.models.document_types import DefaultSigner, DocumentTypeConfig, FieldDefinition
from safesign.templates.engine import DocumentTemplate, TemplateContext
from safesign.templates.helpers import (
    amount_in_words,
    currency_or_placeholder,
    date_or_placeholder,
    escape_html,
    format_address,
    format_date,
    placeholder,
    require_signer,
    signature_block,
    signer_full_name,
    to_decimal,
    value_or_placeholder,
    wrap_document,
)

LESSOR = "lessor"
TENANT = "tenant"

CONFIG = DocumentTypeConfig(
    type="rentReceipt",
    title="Quittance de Loyer",
    description="Quittance de loyer mensuelle (France)",
    field_definitions=[
        FieldDefinition(id="mois", label="Mois de la quittance", required=True, signer_role=LESSOR, placeholder="Juillet 2025"),
        FieldDefinition(id="periode_debut", label="Début de la période", type="date", required=True, signer_role=LESSOR),
        FieldDefinition(id="periode_fin", label="Fin de la période", type="date", required=True, signer_role=LESSOR),
        FieldDefinition(id="date_paiement", label="Date du paiement", type="date", required=True, signer_role=LESSOR),
        FieldDefinition(id="loyer", label="Loyer hors charges", type="amount", signer_role=LESSOR, min=0, currency="EUR"),
        FieldDefinition(id="charges", label="Provision pour charges", type="amount", signer_role=LESSOR, min=0, currency="EUR"),
        FieldDefinition(id="lot", label="Numéro de lot", signer_role=LESSOR),
        FieldDefinition(id="logement_address", label="Adresse de la location", type="address", required=True, signer_role=LESSOR),
        FieldDefinition(id="ville", label="Ville", signer_role=LESSOR),
        FieldDefinition(id="signature_bailleur", label="Signature du bailleur", type="signature", signer_role=LESSOR),
    ],
    default_signers=[
        DefaultSigner(id=LESSOR, role=LESSOR, label="Bailleur", order=1),
        DefaultSigner(id=TENANT, role=TENANT, label="Locataire", order=2),
    ],
)


def _amount(ctx: TemplateContext, field_id: str, fallback):
    value = ctx.field(field_id, fallback)
    return None if value is None else to_decimal(value)


def render(ctx: TemplateContext) -> str:
    lessor = require_signer(ctx.signers, LESSOR)
    tenant = require_signer(ctx.signers, TENANT)

    rent = _amount(ctx, "loyer", ctx.settings.rent)
    charges = _amount(ctx, "charges", ctx.settings.charges)
    total = None
    if rent is not None:
        total = rent + (charges or 0)

    if total is None:
        received = placeholder("montant reçu")
    else:
        received = f"{escape_html(amount_in_words(total))}, soit {currency_or_placeholder(total, 'total')}"

    payer = escape_html(tenant.organization) if tenant.organization else escape_html(signer_full_name(tenant))
    address = ctx.field("logement_address")
    lot = ctx.field("lot")
    lot_text = f"lot {escape_html(lot)} du " if lot else ""

    content = f"""
      <div class="quittance-container">
        <div class="header-box">
          <strong>Quittance de loyer</strong><br>
          <small>(Loi n° 89-462 du 6 juillet 1989, article 21)</small>
        </div>

        <div class="title-box">
          <h1 class="title">Quittance du mois de {value_or_placeholder(ctx.field("mois"), "mois")}</h1>
        </div>

        <div class="recipient">
          <strong>Locataire</strong><br><br>
          <strong>{escape_html(signer_full_name(tenant)) or placeholder("nom du locataire")}</strong><br>
          {format_address(tenant.address) or format_address(address) or placeholder("adresse du locataire")}
        </div>

        <div class="section">
          <p>Je soussigné(e) {escape_html(signer_full_name(lessor)) or placeholder("nom du bailleur")}, propriétaire bailleur
          du logement {lot_text}{value_or_placeholder(address, "adresse de la location")}, déclare avoir reçu de
          {payer or placeholder("nom du locataire")} la somme de {received}, au titre du paiement du loyer et des charges
          pour la période de location du {date_or_placeholder(ctx.field("periode_debut"), "début de période")}
          au {date_or_placeholder(ctx.field("periode_fin"), "fin de période")} et lui en donne quittance,
          sous réserve de tous mes droits.</p>
        </div>

        <div class="detail-section">
          <p><strong>Détail du règlement</strong></p>
          <p>
            Adresse de la location : {value_or_placeholder(address, "adresse de la location")}<br>
            Loyer : {currency_or_placeholder(rent, "loyer")}<br>
            Provision pour charges : {currency_or_placeholder(charges if charges is not None else 0, "charges")}<br>
            Total : {currency_or_placeholder(total, "total")}<br>
            Date du paiement : {date_or_placeholder(ctx.field("date_paiement"), "date du paiement")}
          </p>
        </div>

        <div class="signature-section">
          <p><strong>Bailleur</strong></p>
          <p>{format_address(lessor.address) or placeholder("adresse du bailleur")}</p>
          <p>Fait à {value_or_placeholder(ctx.field("ville"), "ville")}, le {format_date(ctx.current_date)}</p>
          {signature_block("Le Bailleur", lessor, ctx.document)}
        </div>

        <div class="footer-note">
          Cette quittance annule tous les reçus qui auraient pu être établis précédemment en cas de paiement
          partiel du montant du présent terme. Elle est à conserver pendant trois ans par le locataire
          (loi n° 89-462 du 6 juillet 1989 : art. 7-1).
        </div>
      </div>
    """
    return wrap_document(content, ctx.document.title or CONFIG.title, ctx.document.settings.watermark_text)


TEMPLATE = DocumentTemplate(
    type=CONFIG.type,
    title=CONFIG.title,
    description=CONFIG.description,
    render_fn=render,
    config=CONFIG,
)
