"""Contrat de sous-location (article 8 de la loi du 6 juillet 1989)."""

from safesign.models.document_types import DefaultSigner, DocumentTypeConfig, FieldDefinition
from safesign.templates.engine import DocumentTemplate, TemplateContext
from safesign.templates.helpers import (
    currency_or_placeholder,
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

SUBLESSOR = "sublessor"
SUBTENANT = "subtenant"

CONFIG = DocumentTypeConfig(
    type="subleaseContract",
    title="Contrat de Sous-location",
    description="Contrat de sous-location d'habitation",
    field_definitions=[
        FieldDefinition(id="bailleur_principal", label="Nom du bailleur principal", required=True, signer_role=SUBLESSOR),
        FieldDefinition(id="logement_address", label="Adresse du bien", type="address", required=True, signer_role=SUBLESSOR),
        FieldDefinition(id="logement_type", label="Type de logement", signer_role=SUBLESSOR),
        FieldDefinition(id="surface", label="Surface sous-louée", type="number", signer_role=SUBLESSOR, min=1, unit="m²"),
        FieldDefinition(id="pieces_sous_louees", label="Pièces concernées", signer_role=SUBLESSOR),
        FieldDefinition(id="ville", label="Ville", required=True, signer_role=SUBLESSOR),
        FieldDefinition(id="signature_sous_bailleur", label="Signature du sous-bailleur", type="signature", signer_role=SUBLESSOR),
        FieldDefinition(id="signature_sous_locataire", label="Signature du sous-locataire", type="signature", signer_role=SUBTENANT),
    ],
    default_signers=[
        DefaultSigner(id=SUBLESSOR, role=SUBLESSOR, label="Sous-bailleur", order=1),
        DefaultSigner(id=SUBTENANT, role=SUBTENANT, label="Sous-locataire", order=2),
    ],
)


def _party(signer) -> str:
    lines = [escape_html(signer_full_name(signer)) or placeholder("nom")]
    if signer.address:
        lines.append(format_address(signer.address))
    if signer.email:
        lines.append(f"Email : {escape_html(signer.email)}")
    return "<br>\n      ".join(lines)


def render(ctx: TemplateContext) -> str:
    sublessor = require_signer(ctx.signers, SUBLESSOR)
    subtenant = require_signer(ctx.signers, SUBTENANT)
    terms = ctx.settings
    total = None
    if terms.rent is not None:
        total = terms.rent + (terms.charges or 0)
    duration = f"{terms.duration} mois" if terms.duration else placeholder("durée")

    content = f"""
      <div class="header-info">
        Fait à {value_or_placeholder(ctx.field("ville"), "ville")}, le {format_date(ctx.current_date)}
      </div>

      <h1>CONTRAT DE SOUS-LOCATION</h1>
      <p class="article-ref">(Article 8 de la loi n°89-462 du 6 juillet 1989)</p>

      <h2>ENTRE LES SOUSSIGNÉS</h2>
      <p><strong>Le sous-bailleur (locataire principal) :</strong><br>
      {_party(sublessor)}
      </p>
      <p><strong>Le sous-locataire :</strong><br>
      {_party(subtenant)}
      </p>
      <p>Il a été convenu et arrêté ce qui suit :</p>

      <h2>ARTICLE 1 - AUTORISATION DE SOUS-LOCATION</h2>
      <p>Le sous-bailleur déclare avoir obtenu l'accord écrit du bailleur principal,
      {value_or_placeholder(ctx.field("bailleur_principal"), "nom du bailleur principal")}, pour sous-louer le logement objet du présent contrat.</p>
      <p>Une copie de cette autorisation est annexée au présent contrat.</p>

      <h2>ARTICLE 2 - OBJET DE LA SOUS-LOCATION</h2>
      <p>
        <strong>Adresse :</strong> {format_address(ctx.field("logement_address")) or placeholder("adresse du bien")}<br>
        <strong>Type :</strong> {value_or_placeholder(ctx.field("logement_type"), "type de logement")}<br>
        <strong>Surface sous-louée :</strong> {value_or_placeholder(ctx.field("surface"), "surface")} m²<br>
        <strong>Pièces sous-louées :</strong> {value_or_placeholder(ctx.field("pieces_sous_louees"), "pièces concernées")}
      </p>

      <h2>ARTICLE 3 - DURÉE</h2>
      <p>La présente sous-location est consentie pour une durée de <strong>{duration}</strong>,
      du <strong>{date_or_placeholder(terms.start_date, "date de début")}</strong> au <strong>{date_or_placeholder(terms.end_date, "date de fin")}</strong>.</p>
      <p class="article-ref">La durée de la sous-location ne peut excéder celle du bail principal.</p>

      <h2>ARTICLE 4 - LOYER</h2>
      <p>
        <strong>Loyer :</strong> {currency_or_placeholder(terms.rent, "loyer")}<br>
        <strong>Charges :</strong> {currency_or_placeholder(terms.charges, "charges")}<br>
        <strong>Total :</strong> {currency_or_placeholder(total, "total")}
      </p>
      <p class="article-ref">Le loyer de la sous-location ne peut être supérieur au loyer principal au prorata de la surface sous-louée.</p>

      <h2>ARTICLE 5 - DÉPÔT DE GARANTIE</h2>
      <p>Un dépôt de garantie de <strong>{currency_or_placeholder(terms.deposit, "dépôt de garantie")}</strong> est versé par le sous-locataire.</p>

      <h2>ARTICLE 6 - OBLIGATIONS</h2>
      <p>Le sous-locataire s'engage à respecter toutes les clauses et conditions du bail principal,
      dont il reconnaît avoir pris connaissance.</p>
      <p>Le sous-bailleur reste responsable vis-à-vis du bailleur principal de toutes les obligations du bail principal.</p>

      <h2>ARTICLE 7 - FIN DE LA SOUS-LOCATION</h2>
      <ul>
        <li>À la date prévue ci-dessus</li>
        <li>En cas de résiliation du bail principal</li>
        <li>En cas de congé donné par l'une des parties selon les modalités légales</li>
      </ul>

      <div class="signatures">
        {signature_block("Le Sous-bailleur, lu et approuvé", sublessor, ctx.document)}
        {signature_block("Le Sous-locataire, lu et approuvé", subtenant, ctx.document)}
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
