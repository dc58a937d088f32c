"""État des lieux d'entrée ou de sortie (article 3-2 de la loi du 6 juillet 1989)."""

from safesign.models.document_types import (
    DefaultSigner,
    DocumentOption,
    DocumentOptionChoice,
    DocumentTypeConfig,
    FieldDefinition,
)
from safesign.templates.engine import DocumentTemplate, TemplateContext
from safesign.templates.helpers import (
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

LESSOR = "lessor"
TENANT = "tenant"

# (room key, heading, [(element key, label), ...])
ROOMS = [
    ("entree", "ENTRÉE", [("sol", "Sol"), ("murs", "Murs"), ("plafond", "Plafond"), ("eclairage", "Éclairage")]),
    ("sejour", "SÉJOUR", [("sol", "Sol"), ("murs", "Murs"), ("plafond", "Plafond"), ("fenetres", "Fenêtres")]),
    ("cuisine", "CUISINE", [("sol", "Sol"), ("murs", "Murs/Crédence"), ("meubles", "Meubles"), ("equipements", "Équipements")]),
    ("sdb", "SALLE DE BAIN", [("sol", "Sol"), ("murs", "Murs/Faïence"), ("sanitaires", "Sanitaires"), ("robinetterie", "Robinetterie")]),
]

METERS = [
    ("releve_electricite", "Électricité", "kWh"),
    ("releve_gaz", "Gaz", "m³"),
    ("releve_eau", "Eau", "m³"),
]

KEYS = [
    ("cles_entree", "Porte d'entrée"),
    ("cles_boite_lettres", "Boîte aux lettres"),
    ("cles_annexes", "Cave/Garage"),
]


def _room_field_definitions():
    definitions = []
    for room, heading, elements in ROOMS:
        for element, label in elements:
            definitions.append(FieldDefinition(
                id=f"{room}_{element}_etat", label=f"{heading.capitalize()} - {label} (état)", signer_role=LESSOR,
            ))
            definitions.append(FieldDefinition(
                id=f"{room}_{element}_obs", label=f"{heading.capitalize()} - {label} (observations)", signer_role=LESSOR,
            ))
    return definitions


INVENTORY_TYPE = DocumentOption(
    id="inventory_type",
    label="Type d'état des lieux",
    type="radio",
    required=True,
    options=[
        DocumentOptionChoice(value="entry", label="Entrée"),
        DocumentOptionChoice(value="exit", label="Sortie"),
    ],
    default_value="entry",
)

CONFIG = DocumentTypeConfig(
    type="inventory",
    title="État des Lieux",
    description="État des lieux d'entrée ou de sortie",
    options=[INVENTORY_TYPE],
    field_definitions=[
        FieldDefinition(id="logement_address", label="Adresse du bien", type="address", required=True, signer_role=LESSOR),
        FieldDefinition(id="logement_type", label="Type de logement", signer_role=LESSOR),
        FieldDefinition(id="surface", label="Surface", type="number", signer_role=LESSOR, min=1, unit="m²"),
        *[FieldDefinition(id=key, label=f"Relevé {label}", type="number", signer_role=LESSOR, min=0, unit=unit) for key, label, unit in METERS],
        *[FieldDefinition(id=key, label=f"Clés {label}", type="number", signer_role=LESSOR, min=0) for key, label in KEYS],
        FieldDefinition(id="cles_autres", label="Autres clés", signer_role=LESSOR),
        *_room_field_definitions(),
        FieldDefinition(id="observations", label="Observations générales", signer_role=TENANT),
        FieldDefinition(id="ville", label="Ville", required=True, signer_role=LESSOR),
        FieldDefinition(id="signature_bailleur", label="Signature du bailleur", type="signature", signer_role=LESSOR),
        FieldDefinition(id="signature_locataire", label="Signature du locataire", type="signature", signer_role=TENANT),
    ],
    default_signers=[
        DefaultSigner(id=LESSOR, role=LESSOR, label="Bailleur", order=1),
        DefaultSigner(id=TENANT, role=TENANT, label="Locataire", order=2),
    ],
)


def _room_table(ctx: TemplateContext, room: str, heading: str, elements) -> str:
    rows = []
    for element, label in elements:
        state = value_or_placeholder(ctx.field(f"{room}_{element}_etat"), "état")
        notes = escape_html(ctx.field(f"{room}_{element}_obs", "-"))
        rows.append(f"<tr><td>{escape_html(label)}</td><td>{state}</td><td>{notes}</td></tr>")
    body = "\n          ".join(rows)
    return f"""<h3>{escape_html(heading)}</h3>
      <table class="table">
        <tr><th>Élément</th><th>État</th><th>Observations</th></tr>
          {body}
      </table>"""


def render(ctx: TemplateContext) -> str:
    lessor = require_signer(ctx.signers, LESSOR)
    tenant = require_signer(ctx.signers, TENANT)
    is_entry = ctx.option("inventory_type", INVENTORY_TYPE.default_value) != "exit"

    meters = "<br>\n        ".join(
        f"<strong>{escape_html(label)} :</strong> {value_or_placeholder(ctx.field(key), 'relevé')} {unit}"
        for key, label, unit in METERS
    )
    keys = "<br>\n        ".join(
        f"<strong>{escape_html(label)} :</strong> {escape_html(ctx.field(key, 0))} clé(s)"
        for key, label in KEYS
    )
    rooms = "\n\n      ".join(_room_table(ctx, room, heading, elements) for room, heading, elements in ROOMS)

    content = f"""
      <div class="header-info">
        Fait à {value_or_placeholder(ctx.field("ville"), "ville")}, le {format_date(ctx.current_date)}
      </div>

      <h1>ÉTAT DES LIEUX {"D'ENTRÉE" if is_entry else "DE SORTIE"}</h1>
      <p class="article-ref">(Article 3-2 de la loi n°89-462 du 6 juillet 1989)</p>

      <h2>PARTIES PRÉSENTES</h2>
      <p><strong>Bailleur :</strong> {escape_html(signer_full_name(lessor)) or placeholder("nom du bailleur")}</p>
      <p><strong>Locataire :</strong> {escape_html(signer_full_name(tenant)) or placeholder("nom du locataire")}</p>

      <h2>LOGEMENT</h2>
      <p>
        <strong>Adresse :</strong> {format_address(ctx.field("logement_address")) or placeholder("adresse du bien")}<br>
        <strong>Type :</strong> {value_or_placeholder(ctx.field("logement_type"), "type")}<br>
        <strong>Surface :</strong> {value_or_placeholder(ctx.field("surface"), "surface")} m²
      </p>

      <h2>RELEVÉS DES COMPTEURS</h2>
      <p>
        {meters}
      </p>

      <h2>CLÉS REMISES</h2>
      <p>
        {keys}<br>
        <strong>Autres :</strong> {escape_html(ctx.field("cles_autres", "Néant"))}
      </p>

      <h2>ÉTAT DÉTAILLÉ PAR PIÈCE</h2>
      {rooms}

      <h2>OBSERVATIONS GÉNÉRALES</h2>
      <p class="observations">{escape_html(ctx.field("observations", "Néant"))}</p>

      <h2>SIGNATURES</h2>
      <p>Les parties reconnaissent l'exactitude de l'état des lieux et en ont reçu un exemplaire.</p>
      <div class="signatures">
        {signature_block("Le Bailleur", lessor, ctx.document)}
        {signature_block("Le Locataire", tenant, ctx.document)}
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
