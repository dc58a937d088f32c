"""Contrat de location (bail d'habitation, loi du 6 juillet 1989)."""

from safesign.models.document_types import (
    DefaultSigner,
    DocumentOption,
    DocumentOptionChoice as Choice,
    DocumentTypeConfig,
    FieldDefinition,
)
from safesign.templates.engine import DocumentTemplate, TemplateContext
from safesign.templates.helpers import (
    amount_in_words,
    currency_or_placeholder,
    date_or_placeholder,
    escape_html,
    field_row,
    format_address,
    format_date,
    option_boxes,
    placeholder,
    require_signer,
    signature_block,
    signer_full_name,
    value_or_placeholder,
    wrap_document,
)

LESSOR = "lessor"
TENANT = "tenant"

OPTIONS = [
    DocumentOption(
        id="logement_type", label="Type de logement", type="radio", required=True,
        options=[Choice(value="meuble", label="Logement meublé"), Choice(value="non_meuble", label="Logement non meublé")],
        default_value="meuble",
    ),
    DocumentOption(
        id="bailleur_qualite", label="Qualité du bailleur", type="radio", required=True,
        options=[Choice(value="physique", label="Personne physique"), Choice(value="morale", label="Personne morale")],
        default_value="physique",
    ),
    DocumentOption(
        id="habitat_type", label="Type d'habitat", type="checkbox", required=True,
        options=[Choice(value="collectif", label="Collectif"), Choice(value="individuel", label="Individuel")],
        default_value=[],
    ),
    DocumentOption(
        id="habitat_propriete", label="Type de propriété", type="checkbox", required=True,
        options=[Choice(value="mono", label="Mono propriété"), Choice(value="copro", label="Copropriété")],
        default_value=[],
    ),
    DocumentOption(
        id="construction_periode", label="Période de construction", type="radio", required=True,
        options=[
            Choice(value="<1949", label="Avant 1949"),
            Choice(value="1949-1974", label="De 1949 à 1974"),
            Choice(value="1975-1989", label="De 1975 à 1989"),
            Choice(value="1989-2005", label="De 1989 à 2005"),
            Choice(value=">2005", label="Depuis 2005"),
        ],
    ),
    DocumentOption(
        id="chauffage_mode", label="Modalité de chauffage", type="radio", required=True,
        options=[Choice(value="individuel", label="Individuel"), Choice(value="collectif", label="Collectif")],
        default_value="individuel",
    ),
    DocumentOption(
        id="eau_chaude_mode", label="Modalité d'eau chaude sanitaire", type="radio", required=True,
        options=[Choice(value="individuel", label="Individuel"), Choice(value="collectif", label="Collectif")],
        default_value="individuel",
    ),
    DocumentOption(
        id="destination_locaux", label="Destination des locaux", type="radio", required=True,
        options=[
            Choice(value="habitation", label="Usage d'habitation"),
            Choice(value="mixte", label="Usage mixte professionnel et d'habitation"),
        ],
        default_value="habitation",
    ),
]

CONFIG = DocumentTypeConfig(
    type="rentalContract",
    title="Contrat de Location",
    description="Contrat de location de logement à usage d'habitation (France)",
    options=OPTIONS,
    field_definitions=[
        FieldDefinition(id="logement_address", label="Adresse du logement", type="address", required=True, signer_role=LESSOR),
        FieldDefinition(id="logement_fiscal_id", label="Identifiant fiscal du logement", required=True, signer_role=LESSOR),
        FieldDefinition(id="surface_privative", label="Surface habitable privative", type="number", required=True, signer_role=LESSOR, min=1, unit="m²"),
        FieldDefinition(id="surface_collective", label="Surface habitable collective", type="number", signer_role=LESSOR, min=0, unit="m²"),
        FieldDefinition(id="pieces_principales", label="Nombre de pièces principales", type="number", required=True, signer_role=LESSOR, min=1),
        FieldDefinition(id="autres_parties", label="Autres parties du logement", signer_role=LESSOR),
        FieldDefinition(id="equip_privatif", label="Équipements de la partie privative", signer_role=LESSOR),
        FieldDefinition(id="equip_collectif", label="Équipements de la partie collective", signer_role=LESSOR),
        FieldDefinition(id="dpe_classe", label="Classe DPE", required=True, signer_role=LESSOR, regex="[A-G]"),
        FieldDefinition(id="irl_reference", label="Trimestre de référence de l'IRL", signer_role=LESSOR),
        FieldDefinition(id="jour_paiement", label="Jour de paiement", type="number", signer_role=LESSOR, min=1, max=31),
        FieldDefinition(id="mode_paiement", label="Mode de paiement", signer_role=LESSOR),
        FieldDefinition(id="travaux_recents", label="Travaux d'amélioration récents", signer_role=LESSOR),
        FieldDefinition(id="majoration_travaux", label="Majoration du loyer consécutive à des travaux", signer_role=LESSOR),
        FieldDefinition(id="lieu_signature", label="Lieu de signature", required=True, signer_role=LESSOR),
        FieldDefinition(id="signature_bailleur", label="Signature du bailleur", type="signature", signer_role=LESSOR),
        FieldDefinition(id="signature_locataire", label="Signature du locataire", type="signature", signer_role=TENANT),
        FieldDefinition(id="date_signature_locataire", label="Date de signature du locataire", type="signatureDate", signer_role=TENANT, default_to_current=True),
    ],
    default_signers=[
        DefaultSigner(id=LESSOR, role=LESSOR, label="Bailleur", order=1),
        DefaultSigner(id=TENANT, role=TENANT, label="Locataire", order=2),
    ],
)

_OPTIONS_BY_ID = {option.id: option for option in OPTIONS}


def _boxes(ctx: TemplateContext, option_id: str) -> str:
    option = _OPTIONS_BY_ID[option_id]
    return option_boxes(option, ctx.option(option_id, option.default_value))


def _amount_with_words(amount) -> str:
    if amount is None:
        return placeholder("montant")
    return f"{currency_or_placeholder(amount, 'montant')} ({escape_html(amount_in_words(amount))})"


def render(ctx: TemplateContext) -> str:
    lessor = require_signer(ctx.signers, LESSOR)
    tenant = require_signer(ctx.signers, TENANT)
    terms = ctx.settings
    furnished = ctx.option("logement_type", "meuble") == "meuble" or terms.furnished
    heading = "LOCAUX MEUBLÉS À USAGE D'HABITATION" if furnished else "LOCAUX VIDES À USAGE D'HABITATION"

    organization = ""
    if lessor.organization:
        organization = field_row("Dénomination (si personne morale) :", escape_html(lessor.organization))

    duration = f"{terms.duration} mois" if terms.duration else placeholder("durée")
    first_due = None
    if terms.rent is not None:
        first_due = terms.rent + (terms.charges or 0)

    content = f"""
      <div class="container">
        <div class="header-box">
          <strong>Contrat de location</strong><br>
          <small>(Soumis au titre Ier bis de la loi du 6 juillet 1989 et portant modification de la
          loi n° 86-1290 du 23 décembre 1986, bail type conforme au décret du 29 mai 2015)</small><br>
          <strong>{heading}</strong>
        </div>

        <h2>I. Désignation des parties</h2>
        <p>Le présent contrat est conclu entre les soussignés :</p>
        {field_row("Qualité du bailleur :", _boxes(ctx, "bailleur_qualite"))}
        {field_row("Nom et prénom du bailleur :", escape_html(signer_full_name(lessor)) or placeholder("nom du bailleur"))}
        {organization}
        {field_row("Adresse :", format_address(lessor.address) or placeholder("adresse du bailleur"))}
        {field_row("Adresse email (facultatif) :", escape_html(lessor.email))}
        <p>désigné ci-après « le bailleur » ;</p>
        {field_row("Nom et prénom du locataire :", escape_html(signer_full_name(tenant)) or placeholder("nom du locataire"))}
        {field_row("Adresse email (facultatif) :", escape_html(tenant.email))}
        <p>désigné ci-après « le locataire » ;</p>
        <p>Il a été convenu ce qui suit :</p>

        <h2>II. Objet du contrat</h2>
        <h3>A. Consistance du logement</h3>
        {field_row("Type de logement :", _boxes(ctx, "logement_type"))}
        {field_row("Adresse du logement :", format_address(ctx.field("logement_address")) or placeholder("adresse du logement"))}
        {field_row("Identifiant fiscal du logement :", value_or_placeholder(ctx.field("logement_fiscal_id"), "identifiant fiscal"))}
        {field_row("Type d'habitat :", _boxes(ctx, "habitat_type") + " / " + _boxes(ctx, "habitat_propriete"))}
        {field_row("Période de construction :", _boxes(ctx, "construction_periode"))}
        {field_row("Surface habitable privative :", value_or_placeholder(ctx.field("surface_privative"), "surface") + " m²")}
        {field_row("Surface habitable collective :", value_or_placeholder(ctx.field("surface_collective"), "surface collective") + " m²")}
        {field_row("Nombre de pièces principales :", value_or_placeholder(ctx.field("pieces_principales"), "nombre") + " pièces")}
        {field_row("Autres parties du logement :", escape_html(ctx.field("autres_parties", "Aucune")))}
        {field_row("Équipements de la partie privative :", value_or_placeholder(ctx.field("equip_privatif"), "équipements privatifs"))}
        {field_row("Équipements de la partie collective :", value_or_placeholder(ctx.field("equip_collectif"), "équipements collectifs"))}
        {field_row("Modalité de production de chauffage :", _boxes(ctx, "chauffage_mode"))}
        {field_row("Modalité de production d'eau chaude sanitaire :", _boxes(ctx, "eau_chaude_mode"))}
        {field_row("Niveau de performance du logement [classe DPE] :", value_or_placeholder(ctx.field("dpe_classe"), "classe DPE"))}

        <h3>B. Destination des locaux</h3>
        <p>{_boxes(ctx, "destination_locaux")}</p>

        <h2>III. Date de prise d'effet et durée du contrat</h2>
        {field_row("A. Date de prise d'effet du contrat :", date_or_placeholder(terms.start_date, "date de prise d'effet"))}
        {field_row("B. Durée du contrat :", duration)}
        <div class="small-text">
          <p>Le locataire peut mettre fin au bail à tout moment, après avoir donné congé. Le bailleur peut
            mettre fin au bail à son échéance et après avoir donné congé, soit pour reprendre le logement,
            soit pour le vendre, soit pour un motif sérieux et légitime.</p>
        </div>

        <h2>IV. Conditions financières</h2>
        <h3>A. Loyer initial</h3>
        {field_row("1. Montant du loyer mensuel :", _amount_with_words(terms.rent))}
        <h3>B. Modalités de révision</h3>
        {field_row("1. Date de révision :", date_or_placeholder(terms.start_date, "date de révision"))}
        {field_row("2. Trimestre de référence de l'IRL :", value_or_placeholder(ctx.field("irl_reference"), "trimestre IRL"))}
        <h3>C. Charges récupérables</h3>
        {field_row("Montant des provisions sur charges :", currency_or_placeholder(terms.charges, "charges") + " / mois")}
        <h3>D. Modalités de paiement</h3>
        {field_row("Périodicité du paiement :", "mensuel")}
        {field_row("Date de paiement :", value_or_placeholder(ctx.field("jour_paiement"), "jour") + " de chaque mois")}
        {field_row("Mode de paiement :", value_or_placeholder(ctx.field("mode_paiement"), "mode de paiement"))}
        {field_row("Montant total dû à la première échéance :", currency_or_placeholder(first_due, "montant total"))}

        <h2>V. Travaux</h2>
        {field_row("A. Travaux d'amélioration récents :", escape_html(ctx.field("travaux_recents", "Aucun")))}
        {field_row("B. Majoration du loyer consécutive à des travaux :", escape_html(ctx.field("majoration_travaux", "Aucune")))}

        <h2>VI. Garanties</h2>
        {field_row("Montant du dépôt de garantie :", _amount_with_words(terms.deposit))}

        <h2>VII. Clause résolutoire</h2>
        <div class="small-text">
          <p>Le bail sera résilié de plein droit en cas de défaut de paiement des loyers et des charges
            locatives au terme convenu, de non-versement du dépôt de garantie, de défaut d'assurance du
            locataire contre les risques locatifs ou de troubles de voisinage constatés par une décision
            de justice passée en force de chose jugée.</p>
        </div>

        <h2>VIII. Annexes</h2>
        <ul>
          <li>Un dossier de diagnostic technique (DPE, constat de risque d'exposition au plomb, état des risques)</li>
          <li>Une notice d'information relative aux droits et obligations des locataires et des bailleurs</li>
          <li>Un état des lieux{", un inventaire et un état détaillé du mobilier" if furnished else ""}</li>
        </ul>

        <div class="signatures">
          {field_row("Fait le :", format_date(ctx.current_date))}
          {field_row("à :", value_or_placeholder(ctx.field("lieu_signature"), "ville"))}
          {signature_block("Signature du bailleur", lessor, ctx.document)}
          {signature_block("Signature du locataire", tenant, ctx.document)}
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
