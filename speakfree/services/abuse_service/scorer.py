"""Trust scoring engine.

Combines submitter/school frequency, near-duplicate detection and content
signals into a TrustAssessment. Every report starts at the baseline score
and loses points for each signal that fires; penalties are cumulative and
the final score is clamped to 0-100.
"""
import logging
from typing import List, Optional

from speakfree.shared.models import (
    ReportDraft,
    Severity,
    SubmissionMetadata,
    TrustAssessment,
    TrustIssue,
    TRUST_SCORES,
)
from speakfree.shared.utils import hash_pii_if_configured
from .config import DetectionRules, TrustThresholds
from .frequency import FrequencyAnalyzer
from .signals import analyze_content

logger = logging.getLogger(__name__)


class TrustScorer:
    """Anti-abuse analysis of report submissions.

    Never raises for data reasons: frequency lookups fail soft and the
    abuse log write is best-effort.
    """

    def __init__(
        self,
        frequency: FrequencyAnalyzer,
        abuse_log=None,
        rules: Optional[DetectionRules] = None,
        thresholds: Optional[TrustThresholds] = None,
    ):
        """Initialize scorer.

        Args:
            frequency: Frequency analyzer over report history
            abuse_log: Optional AbuseLogRepository for flagged assessments
            rules: Detection windows and penalties
            thresholds: Baseline score
        """
        self.frequency = frequency
        self.abuse_log = abuse_log
        self.rules = rules or DetectionRules()
        self.thresholds = thresholds or TrustThresholds()

        logger.info(
            "TRUST_SCORER_INITIALIZED",
            extra={
                "baseline": self.thresholds.BASELINE,
                "abuse_log_enabled": abuse_log is not None,
            }
        )

    def assess(
        self,
        draft: ReportDraft,
        metadata: Optional[SubmissionMetadata] = None,
    ) -> TrustAssessment:
        """Assess the trustworthiness of one report submission.

        Args:
            draft: Report fields read by the analysis
            metadata: Request context (submitter key)

        Returns:
            Immutable TrustAssessment

        Logs:
            - TRUST_ASSESSMENT_COMPLETED: Always
            - TRUST_ASSESSMENT_FLAGGED: When review is needed (warning)
        """
        metadata = metadata or SubmissionMetadata()
        rules = self.rules
        issues: List[TrustIssue] = []
        score = self.thresholds.BASELINE
        severity = Severity.NORMAL

        # 1. Submitter frequency
        if metadata.ip_address:
            count = self.frequency.submitter_count(metadata.ip_address)
            if count >= rules.submitter_max_reports:
                issues.append(TrustIssue(
                    type="ip_frequency",
                    message=f"IP a créé {count} signalements en 24h",
                    severity=Severity.CRITICAL,
                ))
                score -= rules.submitter_penalty
                severity = severity.escalate(Severity.CRITICAL)

        # 2. School frequency
        if draft.school_id is not None:
            count = self.frequency.organization_count(draft.school_id)
            if count >= rules.organization_max_reports:
                issues.append(TrustIssue(
                    type="school_frequency",
                    message=f"{count} signalements en 1h pour cette école",
                    severity=Severity.WARNING,
                ))
                score -= rules.organization_penalty
                severity = severity.escalate(Severity.WARNING)

        # 3. Near-duplicates
        if draft.message:
            similar = self.frequency.find_similar(
                draft.message,
                draft.school_id,
                exclude_report_id=draft.report_id,
            )
            if similar:
                issues.append(TrustIssue(
                    type="similar_content",
                    message=f"{len(similar)} signalement(s) similaire(s) trouvé(s)",
                    severity=Severity.WARNING,
                    details=[
                        {
                            "id": report.id,
                            "message": report.message,
                            "created_at": report.created_at.isoformat()
                            if report.created_at else None,
                        }
                        for report in similar
                    ],
                ))
                score -= rules.similarity_penalty
                severity = severity.escalate(Severity.WARNING)

        # 4. Content
        content = analyze_content(draft.message or "", rules)
        if content.is_suspicious:
            issues.extend(content.issues)
            score -= content.penalty
            severity = severity.escalate(content.severity)

        # 5. Description length
        if draft.message and len(draft.message) < rules.short_message_min_length:
            issues.append(TrustIssue(
                type="short_description",
                message="Description trop courte (possible spam)",
                severity=Severity.WARNING,
            ))
            score -= rules.short_message_penalty
            severity = severity.escalate(Severity.WARNING)

        score = max(TRUST_SCORES.VERY_LOW, min(score, TRUST_SCORES.VERY_HIGH))
        assessment = TrustAssessment(score=score, severity=severity, issues=tuple(issues))

        if assessment.needs_review or assessment.is_blocked:
            logger.warning(
                "TRUST_ASSESSMENT_FLAGGED",
                extra={
                    "report_id": draft.report_id,
                    "submitter_hash": hash_pii_if_configured(metadata.ip_address),
                    "trust_score": score,
                    "severity": severity.value,
                    "issue_types": assessment.issue_types,
                    "is_blocked": assessment.is_blocked,
                }
            )
            if self.abuse_log is not None:
                self.abuse_log.append(draft, assessment, metadata)

        logger.info(
            "TRUST_ASSESSMENT_COMPLETED",
            extra={
                "report_id": draft.report_id,
                "trust_score": score,
                "severity": severity.value,
                "issue_count": len(issues),
            }
        )

        return assessment
