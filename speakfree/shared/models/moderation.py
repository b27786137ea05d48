"""Moderation verdict domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ContentType(Enum):
    """Category of objectionable content, listed in detection priority."""
    VIOLENCE = "violence"
    DISCRIMINATION = "discrimination"
    INSULT = "insult"
    SEXUAL = "sexual"
    PERSONAL_INFO = "personal_info"
    UNKNOWN = "unknown"


class ContentSeverity(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ModerationVerdict:
    """Allow/block decision for a single discussion message.

    ``score`` is None when the message was rejected before scoring
    (empty or whitespace-only input).
    """
    allowed: bool
    score: Optional[int] = None
    content_type: Optional[ContentType] = None
    content_severity: Optional[ContentSeverity] = None
    reason: Optional[str] = None
    warning: Optional[str] = None
    checked_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if self.score is not None and self.score < 0:
            raise ValueError(f"Moderation score must be >= 0, got {self.score}")

    @property
    def action(self) -> str:
        return "allowed" if self.allowed else "blocked"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"allowed": self.allowed}
        if self.reason is not None:
            result["reason"] = self.reason
        if self.score is not None:
            result["score"] = self.score
        if not self.allowed and self.content_type is not None:
            result["contentType"] = self.content_type.value
        if self.allowed:
            result["warning"] = self.warning
        return result
