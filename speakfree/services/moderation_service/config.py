"""Moderation Service configuration: forbidden phrases, patterns and scores.

Lists are French: discussions are held between students of French-speaking
schools.
"""
import re
from dataclasses import dataclass
from typing import Dict, Pattern, Tuple

from speakfree.shared.models import ContentSeverity, ContentType


@dataclass(frozen=True)
class ModerationThresholds:
    """Scores of the toxicity heuristics."""
    BLOCK_AT: int = 10              # Blocked at or above this score
    WARN_ABOVE: int = 5             # Soft warning above this score

    forbidden_phrase_score: int = 10
    pattern_score: int = 8
    shouting_score: int = 3
    shouting_ratio: float = 0.5
    shouting_min_length: int = 10
    exclamation_score: int = 2
    exclamation_max: int = 3
    stretched_word_score: int = 2


FORBIDDEN_PHRASES: Tuple[str, ...] = (
    # Serious insults
    "connard", "salope", "pute", "enculé", "fils de pute", "fdp",
    "ta mère", "ta race", "nique", "fils de", "batard", "bâtard",

    # Violence
    "je vais te tuer", "je te tue", "crève", "mort", "suicid",
    "je vais te frapper", "je vais te massacrer", "je vais te défoncer",

    # Threats
    "attends moi", "je te retrouve", "tu vas voir", "tu vas payer",
    "on se voit après", "fais gaffe",

    # Discrimination
    "sale noir", "sale blanc", "sale arabe", "sale juif", "pédé", "tarlouze",

    # Cyber-harassment
    "balance", "cafard", "balancer", "snitch", "on sait où tu habites",

    # Inappropriate sexual content
    "nude", "nudes", "envoie moi", "montre moi", "sexe", "dick pic",
)

SUSPICIOUS_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(r"\b(tu|vous)\s+(va|vas|allez)\s+(mourir|crever|souffrir)\b", re.IGNORECASE),
    re.compile(r"\b(je|on)\s+(vais|va|allons)\s+(te|vous)\s+(tuer|frapper|massacrer)\b", re.IGNORECASE),
    re.compile(r"\b(sale|putain\s+de)\s+[a-z]+\b", re.IGNORECASE),
    re.compile(r"\b(ta|ton)\s+(mère|mere|race|gueule)\b", re.IGNORECASE),
    re.compile(r"\bfils\s+de\s+\w+\b", re.IGNORECASE),
    re.compile(r"\b(merde|putain|bordel)\s+de\s+\w+\b", re.IGNORECASE),
    re.compile(r"\b\d{10}\b"),                      # phone numbers
    re.compile(r"\b\d{1,3}\s+rue\b", re.IGNORECASE),  # street addresses
)

STRETCHED_CHARACTER = re.compile(r"(.)\1{4,}")

# Content classification, checked in order: first match wins
CONTENT_TYPE_RULES: Tuple[Tuple[ContentType, Tuple[Pattern, ...]], ...] = (
    (ContentType.VIOLENCE, (
        re.compile(r"\b(tuer|mort|suicide|crever)\b", re.IGNORECASE),
    )),
    (ContentType.DISCRIMINATION, (
        re.compile(r"\b(sale|putain)\s+(noir|blanc|arabe|juif|pédé)\b", re.IGNORECASE),
    )),
    (ContentType.INSULT, (
        re.compile(r"\b(ta mère|ta race|fils de)\b", re.IGNORECASE),
    )),
    (ContentType.SEXUAL, (
        re.compile(r"\b(nudes?|dick|sexe)\b", re.IGNORECASE),
    )),
    (ContentType.PERSONAL_INFO, (
        re.compile(r"\d{10}"),
        re.compile(r"\d{1,3}\s+rue", re.IGNORECASE),
    )),
)

CONTENT_SEVERITY: Dict[ContentType, ContentSeverity] = {
    ContentType.VIOLENCE: ContentSeverity.HIGH,
    ContentType.DISCRIMINATION: ContentSeverity.HIGH,
    ContentType.INSULT: ContentSeverity.MEDIUM,
    ContentType.SEXUAL: ContentSeverity.HIGH,
    ContentType.PERSONAL_INFO: ContentSeverity.MEDIUM,
    ContentType.UNKNOWN: ContentSeverity.LOW,
}

REJECTION_PREFIX = "Message bloqué : "

REJECTION_REASONS: Dict[ContentType, str] = {
    ContentType.VIOLENCE:
        "contient des menaces de violence. Les menaces sont interdites.",
    ContentType.DISCRIMINATION:
        "contient des propos discriminatoires. Le respect de tous est obligatoire.",
    ContentType.INSULT:
        "contient des insultes graves. Reste respectueux dans tes échanges.",
    ContentType.SEXUAL:
        "contient du contenu sexuel inapproprié. Ce type de contenu est interdit.",
    ContentType.PERSONAL_INFO:
        "contient des informations personnelles (téléphone, adresse). "
        "Ne partage pas ces informations publiquement.",
    ContentType.UNKNOWN:
        "contenu inapproprié détecté. Reformule ton message de manière respectueuse.",
}

EMPTY_MESSAGE_REASON = "Le message ne peut pas être vide"
TONE_WARNING = "Attention au ton de ton message"
