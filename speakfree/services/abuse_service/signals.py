"""Content-level suspicion signals for report text.

Pure functions: no I/O, no clock. Each detector answers one question about
a message; ``analyze_content`` turns the answers into trust issues and the
matching penalty.
"""
import math
from dataclasses import dataclass, field
from typing import List

from speakfree.shared.models import Severity, TrustIssue
from .config import (
    DetectionRules,
    EXCESSIVE_PUNCTUATION,
    REPETITIVE_PATTERN,
    SUSPICIOUS_KEYWORDS,
)


def match_suspicious_keywords(text: str, keywords=SUSPICIOUS_KEYWORDS) -> List[str]:
    """Return the keywords contained in text, case-insensitively, in list order."""
    lowered = text.lower()
    return [keyword for keyword in keywords if keyword.lower() in lowered]


def has_repetitive_pattern(text: str) -> bool:
    return REPETITIVE_PATTERN.search(text) is not None


def is_all_caps(text: str, min_length: int = 20) -> bool:
    """True for text longer than min_length that is unchanged by upper-casing."""
    return len(text) > min_length and text == text.upper()


def has_excessive_punctuation(text: str) -> bool:
    return EXCESSIVE_PUNCTUATION.search(text) is not None


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def text_similarity(text_a: str, text_b: str) -> int:
    """Bag-of-words overlap between two texts, 0-100.

    Identical texts (ignoring case and whitespace) score 100. Otherwise the
    number of words of ``text_a`` longer than three characters that also
    appear in ``text_b`` is divided by the word count of the longer text.
    This is not an edit distance and is not symmetric for repeated words.
    """
    normalized_a = _normalize(text_a or "")
    normalized_b = _normalize(text_b or "")

    if normalized_a == normalized_b:
        return 100
    if not normalized_a or not normalized_b:
        return 0

    words_a = normalized_a.split(" ")
    words_b = normalized_b.split(" ")
    vocabulary_b = set(words_b)

    common = sum(1 for word in words_a if len(word) > 3 and word in vocabulary_b)
    ratio = common / max(len(words_a), len(words_b)) * 100

    # Half-up rounding, not banker's rounding
    return int(math.floor(ratio + 0.5))


@dataclass
class ContentAnalysis:
    """Issues raised by the content detectors and their total penalty."""
    issues: List[TrustIssue] = field(default_factory=list)
    penalty: int = 0
    severity: Severity = Severity.NORMAL

    @property
    def is_suspicious(self) -> bool:
        return bool(self.issues)

    def add(self, issue: TrustIssue, penalty: int) -> None:
        self.issues.append(issue)
        self.penalty += penalty
        self.severity = self.severity.escalate(issue.severity)


def analyze_content(text: str, rules: DetectionRules = DetectionRules()) -> ContentAnalysis:
    """Run all content detectors over a report message."""
    analysis = ContentAnalysis()

    keywords = match_suspicious_keywords(text)
    if keywords:
        analysis.add(
            TrustIssue(
                type="suspicious_keywords",
                message=f"Mots suspects détectés: {', '.join(keywords)}",
                severity=Severity.WARNING,
            ),
            rules.keyword_penalty * len(keywords),
        )

    if has_repetitive_pattern(text):
        analysis.add(
            TrustIssue(
                type="repetitive_pattern",
                message="Texte répétitif détecté (possible spam)",
                severity=Severity.CRITICAL,
            ),
            rules.repetition_penalty,
        )

    if is_all_caps(text, rules.all_caps_min_length):
        analysis.add(
            TrustIssue(
                type="all_caps",
                message="Message entièrement en majuscules",
                severity=Severity.WARNING,
            ),
            rules.all_caps_penalty,
        )

    if has_excessive_punctuation(text):
        analysis.add(
            TrustIssue(
                type="excessive_punctuation",
                message="Ponctuation excessive détectée",
                severity=Severity.WARNING,
            ),
            rules.punctuation_penalty,
        )

    return analysis
