"""Abuse Service: trust scoring of report submissions.

Components:
- signals.py: Pure content signals and text similarity
- frequency.py: Time-windowed submitter/school counts, near-duplicates
- scorer.py: TrustScorer combining both into a TrustAssessment
- background.py: ScoringQueue running the scorer off the request path
- review_publisher.py: Kinesis review events for flagged reports
- report_repository.py / abuse_log_repository.py: PostgreSQL storage
- handler.py: Flask HTTP endpoints

Usage:
    from speakfree.services.abuse_service import TrustScorer, FrequencyAnalyzer
    scorer = TrustScorer(FrequencyAnalyzer(report_repository))
    assessment = scorer.assess(draft, metadata)
"""

from .config import DetectionRules, TrustThresholds, SUSPICIOUS_KEYWORDS
from .signals import (
    analyze_content,
    has_excessive_punctuation,
    has_repetitive_pattern,
    is_all_caps,
    match_suspicious_keywords,
    text_similarity,
)
from .frequency import FrequencyAnalyzer
from .scorer import TrustScorer
from .background import ScoringQueue
from .review_publisher import ReviewEvent, ReviewEventPublisher
from .report_repository import ReportRepository
from .abuse_log_repository import AbuseLogRepository, AbuseLogEntry

__all__ = [
    "DetectionRules",
    "TrustThresholds",
    "SUSPICIOUS_KEYWORDS",
    "analyze_content",
    "has_excessive_punctuation",
    "has_repetitive_pattern",
    "is_all_caps",
    "match_suspicious_keywords",
    "text_similarity",
    "FrequencyAnalyzer",
    "TrustScorer",
    "ScoringQueue",
    "ReviewEvent",
    "ReviewEventPublisher",
    "ReportRepository",
    "AbuseLogRepository",
    "AbuseLogEntry",
]
