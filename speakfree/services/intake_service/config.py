"""Intake configuration: keyword tables and conversation limits.

Keyword entries are regular expression fragments matched at the start of a
word, case-insensitively. Tables are ordered: the first matching row wins.
"""
import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from speakfree.shared.models import IntakeCategory, ReportCategory, Urgency


@dataclass(frozen=True)
class IntakeConfig:
    """Limits and defaults of the guided intake."""
    assistant_name: str = "Haniel"
    school_search_limit: int = 5
    location_max_length: int = 50
    summary_description_length: int = 100
    default_user_type: str = "eleve"

    @classmethod
    def from_env(cls) -> "IntakeConfig":
        defaults = cls()
        return cls(
            school_search_limit=int(os.getenv(
                "INTAKE_SCHOOL_SEARCH_LIMIT", defaults.school_search_limit
            )),
        )


# (category, urgency implied by the category, keywords)
CATEGORY_KEYWORDS: Tuple[Tuple[IntakeCategory, Optional[Urgency], Tuple[str, ...]], ...] = (
    (IntakeCategory.WEAPON, Urgency.CRITICAL, ("arme", "couteau", "pistolet")),
    (IntakeCategory.SEXUAL_ASSAULT, Urgency.CRITICAL, ("sexuel", "attouchement")),
    (IntakeCategory.CYBERHARASSMENT, None, ("cyber", "internet", "réseau", "photo", "vidéo")),
    (IntakeCategory.HARASSMENT, None, ("harcèle", "harcele", "insulte", "moque")),
    (IntakeCategory.VIOLENCE, None, ("violen", "frappe", "bagarre", r"coups?\b", r"agress(?!ion)")),
    (IntakeCategory.DRUGS, None, ("drogue", "stupéfiant")),
    (IntakeCategory.THEFT, None, (r"vol(?:s|é|ée|és|ées|e|er|ent)?\b", "racket")),
    (IntakeCategory.DISCRIMINATION, None, ("discrimin", "racis", "sexis", "homophob")),
    (IntakeCategory.ADULT, Urgency.HIGH, ("professeur", r"profs?\b", "enseignant", "adulte")),
    # a bare "agression" is only read as sexual assault once the violence terms missed
    (IntakeCategory.SEXUAL_ASSAULT, Urgency.CRITICAL, ("agression",)),
)

# Urgency inferred from the description when the category implied none
URGENCY_KEYWORDS: Tuple[Tuple[Urgency, Tuple[str, ...]], ...] = (
    (Urgency.CRITICAL, ("maintenant", "en ce moment", "urgen", "danger")),
    (Urgency.HIGH, ("souvent", "tous les jours", "réguli", "chaque jour")),
)

# couloir is listed before cour
LOCATION_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Salle de classe", ("classe", "salle")),
    ("Couloirs", ("couloir",)),
    ("Cour de récréation", (r"cour\b", "récré")),
    ("Toilettes", ("toilette",)),
    ("Cantine", ("cantine",)),
    ("Entrée/Sortie", ("entrée", "sortie")),
    ("Vestiaires", ("vestiaire",)),
    ("Transport scolaire", (r"bus\b",)),
)

# Witness answers, checked in this order
WITNESS_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("incertain", ("ne sais pas", "sais pas", "pas sûr")),
    ("non", (r"non\b", "pas de témoin", "aucun témoin", "personne n'a", "personne ne")),
    ("oui", (r"oui\b", "témoin")),
)

CONTACT_DECLINE_KEYWORDS: Tuple[str, ...] = (r"non\b", "anonyme", "ne veux pas", "préfère pas")
CONTACT_ACCEPT_KEYWORDS: Tuple[str, ...] = (r"oui\b", "coordonnées", "contact")

# Answers meaning "I don't know the code" on the school slot
UNKNOWN_CODE_KEYWORDS: Tuple[str, ...] = ("ne connais pas", "ne sais pas", "s'appelle")

# School codes are three letters followed by digits, e.g. ECO3847
SCHOOL_CODE_PATTERN = r"[A-Z]{3}\d+"
SCHOOL_NAME_PATTERN = r"s'appelle\s+(.+)"

# Ready-state commands
CREATE_KEYWORDS: Tuple[str, ...] = ("crée", "créer", "creer", "finalise")
SUMMARY_KEYWORDS: Tuple[str, ...] = ("résumé", "resume", "récap", "recap")
MODIFY_KEYWORDS: Tuple[str, ...] = ("modifier", "changer")
HELP_KEYWORDS: Tuple[str, ...] = ("aide", "conseil")

# Intake categories mapped onto the categories the reports table accepts
CATEGORY_NORMALIZATION: Dict[str, str] = {
    IntakeCategory.CYBERHARASSMENT.value: ReportCategory.HARASSMENT.value,
    IntakeCategory.THEFT.value: ReportCategory.FRAUD.value,
    IntakeCategory.WEAPON.value: ReportCategory.VIOLENCE.value,
    IntakeCategory.ADULT.value: ReportCategory.ABUSE.value,
    IntakeCategory.SEXUAL_ASSAULT.value: ReportCategory.ABUSE.value,
}

# Report defaults applied by the finalizer
DEFAULT_LOCATION = "Non précisé"
DEFAULT_WITNESSES = "incertain"
DEFAULT_URGENCY = Urgency.MEDIUM.value
DEFAULT_MESSAGE = "Signalement créé via l'assistant IA Haniel"
