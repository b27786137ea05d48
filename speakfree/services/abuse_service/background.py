"""Detached trust scoring queue.

Submitting a report returns immediately; a small thread pool runs the
assessment, writes the score back onto the report row and publishes a
review event when needed. Any failure is logged and counted, never raised
to the submitter.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from speakfree.shared.models import ReportDraft, SubmissionMetadata, TrustAssessment
from speakfree.shared.utils import hash_pii_if_configured
from .review_publisher import ReviewEvent, ReviewEventPublisher
from .scorer import TrustScorer

logger = logging.getLogger(__name__)


class ScoringQueue:
    """Named background task for post-submission trust scoring."""

    def __init__(
        self,
        scorer: TrustScorer,
        reports=None,
        publisher: Optional[ReviewEventPublisher] = None,
        max_workers: int = 2,
    ):
        """Initialize queue.

        Args:
            scorer: Trust scoring engine
            reports: Object exposing ``update_trust`` (ReportRepository)
            publisher: Optional review event publisher
            max_workers: Worker thread count
        """
        self.scorer = scorer
        self.reports = reports
        self.publisher = publisher
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="trust-scoring",
        )
        self._lock = threading.Lock()
        self._completed = 0
        self._failed = 0

        logger.info("SCORING_QUEUE_INITIALIZED", extra={"max_workers": max_workers})

    @property
    def completed_count(self) -> int:
        with self._lock:
            return self._completed

    @property
    def failed_count(self) -> int:
        with self._lock:
            return self._failed

    def submit(
        self,
        draft: ReportDraft,
        metadata: Optional[SubmissionMetadata] = None,
    ) -> Future:
        """Queue a report for scoring and return without waiting.

        The returned future resolves to the assessment, or None on failure.
        """
        logger.info("SCORING_QUEUED", extra={"report_id": draft.report_id})
        return self._executor.submit(self._score_safe, draft, metadata or SubmissionMetadata())

    def _score_safe(
        self,
        draft: ReportDraft,
        metadata: SubmissionMetadata,
    ) -> Optional[TrustAssessment]:
        """Score one report; log and count any failure."""
        try:
            assessment = self.run(draft, metadata)
        except Exception as e:
            with self._lock:
                self._failed += 1
            logger.error(
                "SCORING_FAILED",
                extra={
                    "report_id": draft.report_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return None

        with self._lock:
            self._completed += 1
        return assessment

    def run(self, draft: ReportDraft, metadata: SubmissionMetadata) -> TrustAssessment:
        """Score a report synchronously and apply the side effects."""
        assessment = self.scorer.assess(draft, metadata)

        if self.reports is not None and draft.report_id:
            self.reports.update_trust(
                draft.report_id,
                assessment.score,
                assessment.abuse_flags(),
            )

        if self.publisher is not None and assessment.needs_review and draft.report_id:
            self.publisher.publish(ReviewEvent.from_assessment(
                report_id=draft.report_id,
                assessment=assessment,
                school_id=draft.school_id,
                submitter_hash=hash_pii_if_configured(metadata.ip_address),
            ))

        logger.info(
            "SCORING_COMPLETED",
            extra={
                "report_id": draft.report_id,
                "trust_score": assessment.score,
                "needs_review": assessment.needs_review,
            }
        )
        return assessment

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and optionally wait for queued scores."""
        self._executor.shutdown(wait=wait)
        logger.info(
            "SCORING_QUEUE_SHUTDOWN",
            extra={"completed": self.completed_count, "failed": self.failed_count}
        )
