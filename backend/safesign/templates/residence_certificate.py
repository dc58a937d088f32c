"""Attestation d'hébergement ou de location (justificatif de domicile)."""

from safesign.models.document_types import (
    DefaultSigner,
    DocumentOption,
    DocumentOptionChoice,
    DocumentTypeConfig,
    FieldDefinition,
)
from safesign.templates.engine import DocumentTemplate, TemplateContext
from safesign.templates.helpers import (
    date_or_placeholder,
    escape_html,
    format_address,
    format_date,
    placeholder,
    require_signer,
    signature_block,
    signer_full_name,
    value_or_placeholder,
    wrap_document,
)

HOST = "host"
RESIDENT = "resident"

CERTIFICATE_TYPE = DocumentOption(
    id="certificate_type",
    label="Type d'attestation",
    type="radio",
    required=True,
    options=[
        DocumentOptionChoice(value="hosting", label="Attestation d'hébergement"),
        DocumentOptionChoice(value="landlord", label="Attestation de location"),
    ],
    default_value="hosting",
)

CONFIG = DocumentTypeConfig(
    type="residenceCertificate",
    title="Attestation d'Hébergement",
    description="Justificatif de domicile / Attestation d'hébergement",
    options=[CERTIFICATE_TYPE],
    field_definitions=[
        FieldDefinition(id="hebergeur_date_naissance", label="Date de naissance de l'hébergeur", type="date", required=True, signer_role=HOST),
        FieldDefinition(id="hebergeur_lieu_naissance", label="Lieu de naissance de l'hébergeur", required=True, signer_role=HOST),
        FieldDefinition(id="logement_address", label="Adresse du bien", type="address", signer_role=HOST),
        FieldDefinition(id="heberge_date_naissance", label="Date de naissance de l'hébergé", type="date", signer_role=HOST),
        FieldDefinition(id="heberge_lieu_naissance", label="Lieu de naissance de l'hébergé", signer_role=HOST),
        FieldDefinition(id="date_debut", label="Date de début de l'hébergement ou du bail", type="date", required=True, signer_role=HOST),
        FieldDefinition(id="type_bail", label="Type de bail", signer_role=HOST),
        FieldDefinition(id="ville", label="Ville", required=True, signer_role=HOST),
        FieldDefinition(id="signature_hebergeur", label="Signature de l'hébergeur", type="signature", signer_role=HOST),
    ],
    default_signers=[
        DefaultSigner(id=HOST, role=HOST, label="Hébergeur", order=1),
        DefaultSigner(id=RESIDENT, role=RESIDENT, label="Hébergé", order=2),
    ],
)


def render(ctx: TemplateContext) -> str:
    # Landlord certificates are often issued on rental documents whose parties are lessor/tenant.
    host = require_signer(ctx.signers, HOST, "lessor")
    resident = require_signer(ctx.signers, RESIDENT, "tenant")
    is_landlord = ctx.option("certificate_type", CERTIFICATE_TYPE.default_value) == "landlord"
    start = date_or_placeholder(ctx.field("date_debut"), "date de début")

    if is_landlord:
        capacity = f"""<p>agissant en qualité de <strong>propriétaire bailleur</strong> du logement situé :<br>
        <strong>{format_address(ctx.field("logement_address")) or placeholder("adresse du bien")}</strong></p>
        <p>atteste par la présente que :</p>"""
        tenure = f"""<p>est locataire du logement susmentionné depuis le <strong>{start}</strong>
        en vertu d'un bail de location {escape_html(ctx.field("type_bail", ""))}.</p>
        <p>Cette attestation est établie pour servir et valoir ce que de droit, notamment comme justificatif de domicile.</p>"""
        previous_address = ""
    else:
        capacity = "<p>atteste sur l'honneur héberger à mon domicile situé à l'adresse ci-dessus :</p>"
        tenure = f"""<p>depuis le <strong>{start}</strong>.</p>
        <p>Cette attestation est établie pour servir et valoir ce que de droit.</p>"""
        previous_address = f"Ancienne adresse : {escape_html(resident.address)}<br>" if resident.address else ""

    resident_birth = ""
    if ctx.field("heberge_date_naissance"):
        resident_birth = f"Né(e) le {format_date(ctx.field('heberge_date_naissance'))}"
        if ctx.field("heberge_lieu_naissance"):
            resident_birth += f" à {escape_html(ctx.field('heberge_lieu_naissance'))}"

    lease_attachment = "<li>Copie du bail de location</li>" if is_landlord else ""
    content = f"""
      <h1>ATTESTATION {"DE LOCATION" if is_landlord else "D'HÉBERGEMENT"}</h1>

      <div class="section">
        <p>Je soussigné(e),</p>
        <p>
          <strong>{escape_html(signer_full_name(host)) or placeholder("nom de l'hébergeur")}</strong><br>
          Né(e) le {date_or_placeholder(ctx.field("hebergeur_date_naissance"), "date de naissance")}
          à {value_or_placeholder(ctx.field("hebergeur_lieu_naissance"), "lieu de naissance")}<br>
          Demeurant : {format_address(host.address) or placeholder("adresse")}
        </p>
        {capacity}
        <p class="resident">
          <strong>{escape_html(signer_full_name(resident)) or placeholder("nom de l'hébergé")}</strong><br>
          {previous_address}{resident_birth}
        </p>
        {tenure}
      </div>

      <div class="attachments">
        <p><strong>PIÈCES JOINTES :</strong></p>
        <ul>
          <li>Copie de ma pièce d'identité</li>
          <li>Copie d'un justificatif de domicile à mon nom</li>
          {lease_attachment}
        </ul>
      </div>

      <p class="small-text">J'ai connaissance que toute fausse déclaration de ma part m'expose à des sanctions
      pénales conformément à l'article 441-7 du Code pénal.</p>

      <div class="signature-section">
        <p>Fait à {value_or_placeholder(ctx.field("ville"), "ville")}, le {format_date(ctx.current_date)}</p>
        {signature_block("Le Bailleur" if is_landlord else "L'Hébergeur", host, ctx.document)}
      </div>

      <div class="legal-quote">
        <p><strong>Article 441-7 du Code pénal :</strong></p>
        <p>« Est puni d'un an d'emprisonnement et de 15 000 euros d'amende le fait d'établir une attestation
        ou un certificat faisant état de faits matériellement inexacts. »</p>
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
