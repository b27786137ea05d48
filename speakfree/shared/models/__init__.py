"""Shared domain models for SpeakFree services."""
from .trust import (
    Severity,
    TrustScores,
    TRUST_SCORES,
    TrustIssue,
    TrustAssessment,
)
from .moderation import (
    ContentType,
    ContentSeverity,
    ModerationVerdict,
)
from .report import (
    Urgency,
    IntakeCategory,
    ReportCategory,
    School,
    ReportDraft,
    SubmissionMetadata,
    HistoricalReport,
    NewReport,
)

__all__ = [
    "Severity",
    "TrustScores",
    "TRUST_SCORES",
    "TrustIssue",
    "TrustAssessment",
    "ContentType",
    "ContentSeverity",
    "ModerationVerdict",
    "Urgency",
    "IntakeCategory",
    "ReportCategory",
    "School",
    "ReportDraft",
    "SubmissionMetadata",
    "HistoricalReport",
    "NewReport",
]
