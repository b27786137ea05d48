"""Trust assessment domain models.

A TrustAssessment is the outcome of the anti-abuse analysis of one report
submission: a bounded score, a severity that only ever escalates, and the
itemized list of issues that produced it.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Severity(Enum):
    """Escalation level of an assessment or of a single issue."""
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def escalate(self, other: "Severity") -> "Severity":
        """Return the higher of the two severities.

        Severity never regresses: escalating CRITICAL with WARNING stays
        CRITICAL.
        """
        return other if other.rank > self.rank else self


_SEVERITY_RANK = {
    Severity.NORMAL: 0,
    Severity.WARNING: 1,
    Severity.CRITICAL: 2,
}


@dataclass(frozen=True)
class TrustScores:
    """Reference points of the 0-100 trust scale."""
    VERY_LOW: int = 0      # Very suspicious
    LOW: int = 25          # Suspicious, blocked below this
    MEDIUM: int = 50       # Neutral, needs review below this
    HIGH: int = 75         # Reliable, baseline for new reports
    VERY_HIGH: int = 100   # Very reliable


TRUST_SCORES = TrustScores()


@dataclass(frozen=True)
class TrustIssue:
    """One suspicion signal that fired during an assessment."""
    type: str
    message: str
    severity: Severity
    details: Optional[List[Dict[str, Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "message": self.message,
            "severity": self.severity.value,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


@dataclass(frozen=True)
class TrustAssessment:
    """Result of the anti-abuse analysis of a report.

    Immutable - created once per submission and never mutated afterwards.
    """
    score: int
    severity: Severity
    issues: Tuple[TrustIssue, ...] = ()
    assessed_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not TRUST_SCORES.VERY_LOW <= self.score <= TRUST_SCORES.VERY_HIGH:
            raise ValueError(f"Trust score must be 0-100, got {self.score}")

    @property
    def is_blocked(self) -> bool:
        return self.score < TRUST_SCORES.LOW

    @property
    def needs_review(self) -> bool:
        return self.score < TRUST_SCORES.MEDIUM or self.severity != Severity.NORMAL

    @property
    def issue_types(self) -> List[str]:
        return [issue.type for issue in self.issues]

    def abuse_flags(self) -> Optional[List[Dict[str, Any]]]:
        """Issues in the shape stored on the report row (None when clean)."""
        if not self.issues:
            return None
        return [issue.to_dict() for issue in self.issues]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "trust_score": self.score,
            "severity": self.severity.value,
            "issues": [issue.to_dict() for issue in self.issues],
            "is_blocked": self.is_blocked,
            "needs_review": self.needs_review,
            "timestamp": self.assessed_at.isoformat(),
        }
