"""Acte de cautionnement solidaire (article 22-1 de la loi du 6 juillet 1989)."""

from safesign.models.document_types import DefaultSigner, DocumentTypeConfig, FieldDefinition
from safesign.templates.engine import DocumentTemplate, TemplateContext
from safesign.templates.helpers import (
    amount_in_words,
    date_or_placeholder,
    escape_html,
    format_currency,
    format_date,
    number_to_words,
    placeholder,
    require_signer,
    signature_block,
    signer_full_name,
    to_decimal,
    value_or_placeholder,
    wrap_document,
)

GUARANTOR = "guarantor"
TENANT = "tenant"
LESSOR = "lessor"

CONFIG = DocumentTypeConfig(
    type="guaranteeAct",
    title="Acte de Cautionnement",
    description="Acte de cautionnement solidaire pour location (France)",
    field_definitions=[
        FieldDefinition(id="caution_date_naissance", label="Date de naissance de la caution", type="date", required=True, signer_role=GUARANTOR),
        FieldDefinition(id="caution_lieu_naissance", label="Lieu de naissance de la caution", required=True, signer_role=GUARANTOR),
        FieldDefinition(id="logement_address", label="Adresse du logement", type="address", required=True, signer_role=LESSOR),
        FieldDefinition(id="engagement_max", label="Montant maximal de l'engagement", type="amount", required=True, signer_role=LESSOR, min=0, currency="EUR"),
        FieldDefinition(id="date_revision", label="Date de révision annuelle", signer_role=LESSOR, placeholder="5 octobre"),
        FieldDefinition(id="irl_reference", label="Trimestre de référence de l'IRL", signer_role=LESSOR),
        FieldDefinition(id="duree_engagement", label="Durée de l'engagement", required=True, signer_role=LESSOR, placeholder="12 mois"),
        FieldDefinition(id="ville", label="Lieu de signature", signer_role=GUARANTOR),
        FieldDefinition(id="signature_caution", label="Signature de la caution", type="signature", signer_role=GUARANTOR),
    ],
    default_signers=[
        DefaultSigner(id=GUARANTOR, role=GUARANTOR, label="Caution", order=1),
        DefaultSigner(id=TENANT, role=TENANT, label="Locataire", order=2),
        DefaultSigner(id=LESSOR, role=LESSOR, label="Bailleur", order=3),
    ],
)


def _engagement(value) -> str:
    if value is None:
        return placeholder("montant de l'engagement")
    amount = to_decimal(value)
    return f"{escape_html(number_to_words(int(amount)))}, soit {format_currency(amount)}"


def render(ctx: TemplateContext) -> str:
    guarantor = require_signer(ctx.signers, GUARANTOR)
    tenant = require_signer(ctx.signers, TENANT)
    lessor = require_signer(ctx.signers, LESSOR)
    rent = ctx.settings.rent
    address = value_or_placeholder(ctx.field("logement_address"), "adresse du logement")

    if rent is None:
        rent_text = placeholder("loyer")
    else:
        rent_text = f"{escape_html(amount_in_words(rent))}, soit {format_currency(rent)} hors charges par mois"

    signing_place = ctx.field("ville")
    content = f"""
      <div class="cautionnement-container">
        <div class="header-box">
          <strong>Acte de cautionnement solidaire</strong><br>
          <small>(Article 22-1 de la loi n° 89-462 du 6 juillet 1989)</small>
        </div>

        <div class="section">
          <p>Je soussigné(e) {escape_html(signer_full_name(guarantor)) or placeholder("nom de la caution")},
          né(e) le {date_or_placeholder(ctx.field("caution_date_naissance"), "date de naissance")}
          à {value_or_placeholder(ctx.field("caution_lieu_naissance"), "lieu de naissance")},
          résidant au {value_or_placeholder(guarantor.address, "adresse de la caution")},
          déclare me porter caution solidaire de {escape_html(signer_full_name(tenant)) or placeholder("nom du locataire")}
          pour les obligations résultant du bail qui a été consenti par le bailleur
          {escape_html(signer_full_name(lessor)) or placeholder("nom du bailleur")},
          demeurant {value_or_placeholder(lessor.address, "adresse du bailleur")},
          pour la location du logement situé {address}.</p>

          <p>J'ai pris connaissance du montant du loyer de {rent_text}. Il sera révisé annuellement le
          {value_or_placeholder(ctx.field("date_revision"), "date de révision")} selon la variation de l'indice
          de référence des loyers publié par l'INSEE ({value_or_placeholder(ctx.field("irl_reference"), "trimestre IRL")}).</p>

          <p>Cet engagement vaut pour le paiement, en cas de défaillance du locataire, des loyers, des
          indemnités d'occupation, des charges, des réparations et des dégradations locatives pouvant
          excéder le dépôt de garantie, des impôts et taxes, des frais et dépens de procédure, des coûts
          des actes dus, soit un total maximum de {_engagement(ctx.field("engagement_max"))}, en principal et accessoires.</p>

          <p>Cet engagement est valable pour une durée déterminée
          ({value_or_placeholder(ctx.field("duree_engagement"), "durée")}), définie par le contrat de location ci-joint.</p>

          <p>Je reconnais avoir pris connaissance de l'avant-dernier alinéa de l'article 22-1 de la loi du 6 juillet 1989, selon lequel :</p>
          <div class="legal-quote">
            <p>« Lorsque le cautionnement d'obligations résultant d'un contrat de location conclu en application
            du présent titre ne comporte aucune indication de durée ou lorsque la durée du cautionnement est
            stipulée indéterminée, la caution peut le résilier unilatéralement. La résiliation prend effet au
            terme du contrat de location, qu'il s'agisse du contrat initial ou d'un contrat reconduit ou
            renouvelé au cours duquel le bailleur reçoit notification de la résiliation. »</p>
          </div>

          <p>Je reconnais également avoir pris connaissance de l'article 2297 du code civil, selon lequel :</p>
          <div class="legal-quote">
            <p>« Si la caution est privée des bénéfices de discussion ou de division, elle reconnaît ne pouvoir
            exiger du créancier qu'il poursuive d'abord le débiteur ou qu'il divise ses poursuites entre les
            cautions. À défaut, elle conserve le droit de se prévaloir de ces bénéfices. »</p>
          </div>
        </div>

        <div class="signature-section">
          <p>Fait à {value_or_placeholder(signing_place, "ville")}, le {format_date(ctx.current_date)}</p>
          {signature_block("Signature de la caution", guarantor, ctx.document)}
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
