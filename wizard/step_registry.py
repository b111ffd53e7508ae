"""Registry for wizard steps, bilingual metadata, and canonical order."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from wizard.flow import IN_PERSON_FLOW


@dataclass(frozen=True)
class StepField:
    """A free-text input collected when the step is submitted with ``next``."""

    key: str
    label: tuple[str, str]


@dataclass(frozen=True)
class StepDefinition:
    """Metadata for one state of the in-person flow.

    Bilingual values are ``(english, french)`` tuples, rendered with
    :func:`utils.i18n.tr`.
    """

    key: str
    label: tuple[str, str]
    panel_header: tuple[str, str]
    panel_intro: tuple[str, str]
    fields: tuple[StepField, ...] = ()


WIZARD_STEPS: Final[tuple[StepDefinition, ...]] = (
    StepDefinition(
        key="start",
        label=("Start", "Début"),
        panel_header=("In-person SIN application", "Demande de NAS en personne"),
        panel_intro=(
            "Start a new application for this browser tab.",
            "Commencez une nouvelle demande pour cet onglet.",
        ),
    ),
    StepDefinition(
        key="privacy-statement",
        label=("Privacy statement", "Déclaration de confidentialité"),
        panel_header=("Privacy statement", "Déclaration de confidentialité"),
        panel_intro=(
            "Read the privacy statement with the applicant before continuing.",
            "Lisez la déclaration de confidentialité avec le demandeur avant de continuer.",
        ),
    ),
    StepDefinition(
        key="request-details",
        label=("Request details", "Détails de la demande"),
        panel_header=("Request details", "Détails de la demande"),
        panel_intro=(
            "Record the type of request and the applicant's situation.",
            "Indiquez le type de demande et la situation du demandeur.",
        ),
        fields=(
            StepField("requestType", ("Request type", "Type de demande")),
            StepField("situationType", ("Situation", "Situation")),
        ),
    ),
    StepDefinition(
        key="primary-docs",
        label=("Primary document", "Document principal"),
        panel_header=("Primary identity document", "Document d'identité principal"),
        panel_intro=(
            "Enter the details of the primary document presented.",
            "Saisissez les détails du document principal présenté.",
        ),
        fields=(StepField("primaryDocumentType", ("Document type", "Type de document")),),
    ),
    StepDefinition(
        key="secondary-docs",
        label=("Secondary document", "Document secondaire"),
        panel_header=("Secondary identity document", "Document d'identité secondaire"),
        panel_intro=(
            "Enter the details of the secondary document, if any.",
            "Saisissez les détails du document secondaire, le cas échéant.",
        ),
        fields=(StepField("secondaryDocumentType", ("Document type", "Type de document")),),
    ),
    StepDefinition(
        key="current-name",
        label=("Current name", "Nom actuel"),
        panel_header=("Current name", "Nom actuel"),
        panel_intro=(
            "Confirm the name that will appear on the SIN record.",
            "Confirmez le nom qui figurera au dossier du NAS.",
        ),
        fields=(
            StepField("firstName", ("First name", "Prénom")),
            StepField("lastName", ("Last name", "Nom de famille")),
        ),
    ),
    StepDefinition(
        key="personal-info",
        label=("Personal information", "Renseignements personnels"),
        panel_header=("Personal information", "Renseignements personnels"),
        panel_intro=(
            "Collect the applicant's personal information.",
            "Recueillez les renseignements personnels du demandeur.",
        ),
        fields=(StepField("gender", ("Gender", "Genre")),),
    ),
    StepDefinition(
        key="birth-details",
        label=("Birth details", "Détails de naissance"),
        panel_header=("Birth details", "Détails de naissance"),
        panel_intro=(
            "Record where and when the applicant was born.",
            "Indiquez le lieu et la date de naissance du demandeur.",
        ),
        fields=(
            StepField("birthCountry", ("Country of birth", "Pays de naissance")),
            StepField("birthDate", ("Date of birth", "Date de naissance")),
        ),
    ),
    StepDefinition(
        key="parent-details",
        label=("Parent details", "Détails des parents"),
        panel_header=("Parent details", "Détails des parents"),
        panel_intro=(
            "Enter what is known about the applicant's parents.",
            "Saisissez ce qui est connu des parents du demandeur.",
        ),
    ),
    StepDefinition(
        key="previous-sin",
        label=("Previous SIN", "NAS antérieur"),
        panel_header=("Previous SIN", "NAS antérieur"),
        panel_intro=(
            "Has the applicant ever had a social insurance number?",
            "Le demandeur a-t-il déjà eu un numéro d'assurance sociale?",
        ),
        fields=(StepField("previousSin", ("Previous SIN", "NAS antérieur")),),
    ),
    StepDefinition(
        key="contact-information",
        label=("Contact information", "Coordonnées"),
        panel_header=("Contact information", "Coordonnées"),
        panel_intro=(
            "How can we reach the applicant?",
            "Comment pouvons-nous joindre le demandeur?",
        ),
        fields=(
            StepField("email", ("Email address", "Adresse courriel")),
            StepField("phone", ("Phone number", "Numéro de téléphone")),
        ),
    ),
    StepDefinition(
        key="review",
        label=("Review", "Révision"),
        panel_header=("Review and submit", "Réviser et soumettre"),
        panel_intro=(
            "Check the information collected before submitting.",
            "Vérifiez les renseignements recueillis avant de soumettre.",
        ),
    ),
)


def step_keys() -> tuple[str, ...]:
    """Return wizard step keys in canonical order."""

    return tuple(step.key for step in WIZARD_STEPS)


def get_step(key: str) -> StepDefinition | None:
    """Lookup step metadata by key."""

    return next((step for step in WIZARD_STEPS if step.key == key), None)


def missing_step_metadata() -> tuple[str, ...]:
    """Return flow states that have no registry entry."""

    return tuple(state for state in IN_PERSON_FLOW.ordered_states() if get_step(state) is None)
