"""Time-windowed report frequency analysis.

Every query fails soft: a backing-store error is logged and the signal is
treated as absent (count 0, no similar reports). Abuse detection augments
trust decisions and must never break the reporting flow.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from speakfree.shared.models import HistoricalReport
from speakfree.shared.utils import hash_pii_if_configured
from .config import DetectionRules, SIMILARITY_EXCLUDED_STATUSES
from .signals import text_similarity

logger = logging.getLogger(__name__)


class FrequencyAnalyzer:
    """Counts and near-duplicate lookups over report history.

    ``history`` is anything exposing ``count_by_submitter``,
    ``count_by_organization`` and ``similar_candidates`` (in production the
    ReportRepository).
    """

    def __init__(self, history, rules: Optional[DetectionRules] = None):
        self.history = history
        self.rules = rules or DetectionRules()

    def submitter_count(self, submitter_key: str, now: Optional[datetime] = None) -> int:
        """Reports from one submitter key in the last 24 hours."""
        since = (now or datetime.utcnow()) - timedelta(hours=self.rules.submitter_window_hours)
        try:
            return self.history.count_by_submitter(submitter_key, since)
        except Exception as e:
            logger.error(
                "SUBMITTER_FREQUENCY_QUERY_FAILED",
                extra={
                    "submitter_hash": hash_pii_if_configured(submitter_key),
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return 0

    def organization_count(self, school_id: int, now: Optional[datetime] = None) -> int:
        """Reports for one school in the last hour."""
        since = (now or datetime.utcnow()) - timedelta(hours=self.rules.organization_window_hours)
        try:
            return self.history.count_by_organization(school_id, since)
        except Exception as e:
            logger.error(
                "ORGANIZATION_FREQUENCY_QUERY_FAILED",
                extra={
                    "school_id": school_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return 0

    def find_similar(
        self,
        message: str,
        school_id: Optional[int],
        exclude_report_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[HistoricalReport]:
        """Recent non-archived reports of the same school with a near-identical text."""
        since = (now or datetime.utcnow()) - timedelta(minutes=self.rules.similarity_window_minutes)
        try:
            candidates = self.history.similar_candidates(
                school_id,
                since,
                exclude_statuses=SIMILARITY_EXCLUDED_STATUSES,
                exclude_report_id=exclude_report_id,
            )
        except Exception as e:
            logger.error(
                "SIMILAR_REPORTS_QUERY_FAILED",
                extra={
                    "school_id": school_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return []

        return [
            candidate for candidate in candidates
            if candidate.id != exclude_report_id
            and text_similarity(message, candidate.message) >= self.rules.similarity_threshold
        ]
