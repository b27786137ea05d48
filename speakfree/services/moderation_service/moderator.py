"""Moderation gate for discussion messages.

Deterministic toxicity heuristics: forbidden phrases, threat/slur/personal
data patterns, shouting, exclamation marks and stretched words. A message
scoring at or above the block threshold is rejected with a reason tailored
to the detected content type. Blocking is a normal verdict, not an error.
"""
import logging
from typing import Any, Dict, Optional

from speakfree.shared.models import ContentSeverity, ContentType, ModerationVerdict
from speakfree.shared.utils import hash_text_for_audit
from .config import (
    CONTENT_SEVERITY,
    CONTENT_TYPE_RULES,
    EMPTY_MESSAGE_REASON,
    FORBIDDEN_PHRASES,
    REJECTION_PREFIX,
    REJECTION_REASONS,
    STRETCHED_CHARACTER,
    SUSPICIOUS_PATTERNS,
    TONE_WARNING,
    ModerationThresholds,
)

logger = logging.getLogger(__name__)


def _uppercase_ratio(text: str) -> float:
    if not text:
        return 0.0
    return sum(1 for char in text if char.isupper()) / len(text)


class ModerationGate:
    """Allow/block decisions for discussion messages.

    ``check`` is a pure decision. ``moderate`` additionally records the
    decision in the moderation log, best-effort.
    """

    def __init__(
        self,
        thresholds: Optional[ModerationThresholds] = None,
        moderation_log=None,
    ):
        """Initialize gate.

        Args:
            thresholds: Scores of each heuristic
            moderation_log: Optional ModerationLogRepository
        """
        self.thresholds = thresholds or ModerationThresholds()
        self.moderation_log = moderation_log

    def toxicity_score(self, text: str) -> int:
        """Unbounded toxicity score of a message."""
        t = self.thresholds
        score = 0
        lowered = text.lower()

        for phrase in FORBIDDEN_PHRASES:
            if phrase in lowered:
                score += t.forbidden_phrase_score

        for pattern in SUSPICIOUS_PATTERNS:
            if pattern.search(text):
                score += t.pattern_score

        if len(text) > t.shouting_min_length and _uppercase_ratio(text) > t.shouting_ratio:
            score += t.shouting_score

        if text.count("!") > t.exclamation_max:
            score += t.exclamation_score

        if STRETCHED_CHARACTER.search(text):
            score += t.stretched_word_score

        return score

    def detect_content_type(self, text: str) -> ContentType:
        """Classify a message; the first matching type by priority wins."""
        for content_type, patterns in CONTENT_TYPE_RULES:
            if any(pattern.search(text) for pattern in patterns):
                return content_type
        return ContentType.UNKNOWN

    def check(self, text: Optional[str]) -> ModerationVerdict:
        """Decide whether a discussion message may be posted."""
        if not text or not text.strip():
            return ModerationVerdict(allowed=False, reason=EMPTY_MESSAGE_REASON)

        score = self.toxicity_score(text)
        content_type = self.detect_content_type(text)
        severity = CONTENT_SEVERITY[content_type]

        if score >= self.thresholds.BLOCK_AT:
            return ModerationVerdict(
                allowed=False,
                score=score,
                content_type=content_type,
                content_severity=severity,
                reason=REJECTION_PREFIX + REJECTION_REASONS[content_type],
            )

        return ModerationVerdict(
            allowed=True,
            score=score,
            content_type=content_type,
            content_severity=severity,
            warning=TONE_WARNING if score > self.thresholds.WARN_ABOVE else None,
        )

    def moderate(self, text: Optional[str]) -> ModerationVerdict:
        """Check a message and record the decision.

        Logs:
            - MODERATION_MESSAGE_BLOCKED: Blocked message (warning)
            - MODERATION_MESSAGE_ALLOWED: Allowed message
        """
        verdict = self.check(text)
        if verdict.score is None:
            return verdict

        log_extra = {
            "message_hash": hash_text_for_audit(text),
            "score": verdict.score,
            "content_type": verdict.content_type.value,
            "severity": verdict.content_severity.value,
        }
        if verdict.allowed:
            logger.info("MODERATION_MESSAGE_ALLOWED", extra=log_extra)
        else:
            logger.warning("MODERATION_MESSAGE_BLOCKED", extra=log_extra)

        if self.moderation_log is not None:
            self.moderation_log.record(text, verdict)

        return verdict

    def analyze(self, text: Optional[str]) -> Dict[str, Any]:
        """Score and classify a text without recording anything."""
        text = text or ""
        score = self.toxicity_score(text)
        content_type = self.detect_content_type(text)
        severity: ContentSeverity = CONTENT_SEVERITY[content_type]
        return {
            "score": score,
            "contentType": content_type.value,
            "severity": severity.value,
            "allowed": score < self.thresholds.BLOCK_AT,
        }
