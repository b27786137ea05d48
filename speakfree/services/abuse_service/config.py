"""Abuse detection configuration: penalties, windows and keyword lists.

Every penalty below is subtracted from the baseline trust score of a new
report. Penalties are cumulative; the final score is clamped to 0-100.
"""
import os
import re
from dataclasses import dataclass
from typing import FrozenSet, Pattern


@dataclass(frozen=True)
class TrustThresholds:
    """Score bands used for blocking and review decisions."""
    BASELINE: int = 75          # Starting score of every new report
    BLOCK_BELOW: int = 25       # Blocked below this score
    REVIEW_BELOW: int = 50      # Sent to manual review below this score


@dataclass(frozen=True)
class DetectionRules:
    """Windows, limits and penalties of the anti-abuse analysis."""

    # Submitter frequency (same IP)
    submitter_window_hours: int = 24
    submitter_max_reports: int = 5
    submitter_penalty: int = 30

    # Organization frequency (same school)
    organization_window_hours: int = 1
    organization_max_reports: int = 10
    organization_penalty: int = 15

    # Near-duplicate detection
    similarity_window_minutes: int = 30
    similarity_threshold: int = 85
    similarity_penalty: int = 20

    # Content signals
    keyword_penalty: int = 15           # per matched keyword
    repetition_penalty: int = 30
    all_caps_penalty: int = 10
    all_caps_min_length: int = 20
    punctuation_penalty: int = 5
    short_message_penalty: int = 10
    short_message_min_length: int = 20

    @classmethod
    def from_env(cls) -> "DetectionRules":
        """Build rules from environment, falling back to defaults."""
        defaults = cls()
        return cls(
            submitter_max_reports=int(os.getenv(
                "ABUSE_SUBMITTER_MAX_REPORTS", defaults.submitter_max_reports
            )),
            organization_max_reports=int(os.getenv(
                "ABUSE_ORGANIZATION_MAX_REPORTS", defaults.organization_max_reports
            )),
            similarity_threshold=int(os.getenv(
                "ABUSE_SIMILARITY_THRESHOLD", defaults.similarity_threshold
            )),
        )


# Statuses ignored by the near-duplicate lookup
SIMILARITY_EXCLUDED_STATUSES: FrozenSet[str] = frozenset({"archived"})

# Words and expressions typical of joke or test submissions
SUSPICIOUS_KEYWORDS = (
    "test",
    "blabla",
    "aaaa",
    "zzzz",
    "lol",
    "fake",
    "faux",
    "pour rire",
    "c'est bidon",
)

# A chunk of 3+ characters followed by at least 3 more copies of itself
REPETITIVE_PATTERN: Pattern = re.compile(r"(.{3,})\1{3,}", re.IGNORECASE)

EXCESSIVE_PUNCTUATION: Pattern = re.compile(r"[!?]{5,}")
