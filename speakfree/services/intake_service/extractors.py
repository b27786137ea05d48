"""Slot extraction from free-text student messages.

All functions are pure. Keyword tables live in config.py.
"""
import re
from functools import lru_cache
from typing import Dict, Iterable, Optional, Pattern, Tuple

from speakfree.shared.models import IntakeCategory, ReportCategory, Urgency
from .config import (
    CATEGORY_KEYWORDS,
    CATEGORY_NORMALIZATION,
    CONTACT_ACCEPT_KEYWORDS,
    CONTACT_DECLINE_KEYWORDS,
    LOCATION_KEYWORDS,
    SCHOOL_CODE_PATTERN,
    SCHOOL_NAME_PATTERN,
    UNKNOWN_CODE_KEYWORDS,
    URGENCY_KEYWORDS,
    WITNESS_KEYWORDS,
)

_VALID_REPORT_CATEGORIES = frozenset(c.value for c in ReportCategory)
_SCHOOL_CODE_RE = re.compile(SCHOOL_CODE_PATTERN)
_SCHOOL_NAME_RE = re.compile(SCHOOL_NAME_PATTERN, re.IGNORECASE)


def normalize_text(message: Optional[str]) -> str:
    """Trim and unify typographic apostrophes."""
    return (message or "").replace("’", "'").strip()


@lru_cache(maxsize=None)
def _keyword_pattern(keywords: Tuple[str, ...]) -> Pattern:
    alternatives = "|".join(keywords)
    return re.compile(rf"(?<!\w)(?:{alternatives})", re.IGNORECASE)


def contains_keyword(message: str, keywords: Iterable[str]) -> bool:
    """True if any keyword starts a word of the message."""
    return _keyword_pattern(tuple(keywords)).search(normalize_text(message)) is not None


def infer_category(message: str) -> Tuple[Optional[IntakeCategory], Optional[Urgency]]:
    """Category of a message and the urgency that category implies.

    Returns:
        (category, urgency); both None when no keyword matched
    """
    for category, urgency, keywords in CATEGORY_KEYWORDS:
        if contains_keyword(message, keywords):
            return category, urgency
    return None, None


def infer_urgency(message: str) -> Optional[Urgency]:
    """Urgency expressed by the wording of a message, if any."""
    for urgency, keywords in URGENCY_KEYWORDS:
        if contains_keyword(message, keywords):
            return urgency
    return None


def extract_location(message: str, max_length: int = 50) -> str:
    """Known place of the school, or the start of the raw answer."""
    for location, keywords in LOCATION_KEYWORDS:
        if contains_keyword(message, keywords):
            return location
    return normalize_text(message)[:max_length]


def extract_witnesses(message: str) -> str:
    """Witness answer: ``oui``, ``non`` or ``incertain``."""
    for answer, keywords in WITNESS_KEYWORDS:
        if contains_keyword(message, keywords):
            return answer
    return "incertain"


def extract_school_code(message: str) -> Optional[str]:
    """Find a school code such as ``ECO3847`` anywhere in the message.

    Whitespace is ignored, so "eco 3847" is read as ECO3847.
    """
    compact = re.sub(r"\s+", "", normalize_text(message).upper())
    match = _SCHOOL_CODE_RE.search(compact)
    return match.group(0) if match else None


def mentions_unknown_code(message: str) -> bool:
    return contains_keyword(message, UNKNOWN_CODE_KEYWORDS)


def extract_school_name(message: str) -> Optional[str]:
    """Name following "s'appelle", e.g. "mon école s'appelle Jean Moulin"."""
    match = _SCHOOL_NAME_RE.search(normalize_text(message))
    if not match:
        return None
    name = match.group(1).strip().rstrip(".!")
    return name or None


def extract_contact_decision(message: str) -> str:
    """``yes`` if the student agrees to leave contact details, else ``no``."""
    if contains_keyword(message, CONTACT_DECLINE_KEYWORDS):
        return "no"
    if contains_keyword(message, CONTACT_ACCEPT_KEYWORDS):
        return "yes"
    return "no"


def extract_contact_info(message: str) -> Dict[str, str]:
    """Parse "Prénom - téléphone"; anything else is kept raw."""
    text = normalize_text(message)
    separator = " - " if " - " in text else "-"
    if separator in text:
        name, phone = text.split(separator, 1)
        return {"name": name.strip(), "phone": phone.strip()}
    return {"raw": text}


def normalize_category(category: Optional[str]) -> str:
    """Map an intake category onto a category the reports table accepts.

    Already-valid report categories are returned unchanged, anything
    unknown becomes ``autre``.
    """
    if category in _VALID_REPORT_CATEGORIES:
        return category
    return CATEGORY_NORMALIZATION.get(category, ReportCategory.OTHER.value)
