"""Report finalizer: turns a completed conversation into a stored report.

The finalizer never raises to the dialogue. Every failure (unknown school,
storage error) comes back as a FinalizationResult with success=False so
the conversation can stay in the ready state and retry.
"""
import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import Optional

from speakfree.shared.models import NewReport, ReportDraft, SubmissionMetadata
from speakfree.shared.utils import hash_pii
from .config import (
    DEFAULT_LOCATION,
    DEFAULT_MESSAGE,
    DEFAULT_URGENCY,
    DEFAULT_WITNESSES,
)
from .context import ConversationContext
from .extractors import normalize_category

logger = logging.getLogger(__name__)

_TRACKING_ALPHABET = string.ascii_uppercase + string.digits


def generate_tracking_code() -> str:
    """Public report id, e.g. ``SF-1718000000000-K3Z9Q``."""
    suffix = "".join(secrets.choice(_TRACKING_ALPHABET) for _ in range(5))
    return f"SF-{int(time.time() * 1000)}-{suffix}"


def generate_access_code() -> str:
    """Six-digit code, never starting with 0."""
    return str(100000 + secrets.randbelow(900000))


@dataclass(frozen=True)
class FinalizationResult:
    success: bool
    report_code: Optional[str] = None
    access_code: Optional[str] = None
    error: Optional[str] = None


class ReportFinalizer:
    """Build, store and queue for scoring the report of a conversation."""

    def __init__(self, directory, reports, scoring_queue=None):
        """Initialize finalizer.

        Args:
            directory: SchoolDirectory (``find_by_code``)
            reports: ReportRepository (``create_report``)
            scoring_queue: Optional ScoringQueue (``submit``)
        """
        self.directory = directory
        self.reports = reports
        self.scoring_queue = scoring_queue

    def build_report(self, context: ConversationContext, school_id: int) -> NewReport:
        """Apply defaults and category normalisation."""
        return NewReport(
            tracking_code=generate_tracking_code(),
            access_code=generate_access_code(),
            school_id=school_id,
            category=normalize_category(context.category),
            urgency=context.urgency or DEFAULT_URGENCY,
            title=f"Signalement {context.category or 'général'}",
            message=context.description or DEFAULT_MESSAGE,
            location=context.location or DEFAULT_LOCATION,
            witnesses=context.witnesses or DEFAULT_WITNESSES,
            is_anonymous=not context.contact_info,
            user_type=context.user_type,
            contact_info=context.contact_info,
            face_photo=context.face_photo,
            ip_address=context.submitter_key,
        )

    def finalize(self, context: ConversationContext) -> FinalizationResult:
        if not context.school_code:
            logger.error(
                "FINALIZATION_FAILED",
                extra={"session_id": context.session_id, "reason": "missing_school_code"}
            )
            return FinalizationResult(success=False, error="Code école manquant")

        try:
            school = self.directory.find_by_code(context.school_code)
            if school is None:
                logger.error(
                    "FINALIZATION_FAILED",
                    extra={
                        "session_id": context.session_id,
                        "reason": "school_not_found",
                        "school_code": context.school_code,
                    }
                )
                return FinalizationResult(
                    success=False,
                    error=f"École non trouvée pour le code {context.school_code}",
                )

            record = self.build_report(context, school.id)
            report_code, access_code = self.reports.create_report(record)

        except Exception as e:
            logger.error(
                "FINALIZATION_FAILED",
                extra={
                    "session_id": context.session_id,
                    "reason": "storage_error",
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return FinalizationResult(success=False, error="Erreur lors de l'enregistrement")

        self._queue_scoring(record)

        logger.info(
            "REPORT_FINALIZED",
            extra={
                "session_id": context.session_id,
                "report_id": report_code,
                "category": record.category,
                "urgency": record.urgency,
                "submitter_hash": hash_pii(record.ip_address) if record.ip_address else None,
            }
        )
        return FinalizationResult(success=True, report_code=report_code, access_code=access_code)

    def _queue_scoring(self, record: NewReport) -> None:
        """Hand the stored report to trust scoring; never blocks or fails the intake."""
        if self.scoring_queue is None:
            return
        try:
            self.scoring_queue.submit(
                ReportDraft(
                    report_id=record.tracking_code,
                    school_id=record.school_id,
                    message=record.message,
                    category=record.category,
                    urgency=record.urgency,
                ),
                SubmissionMetadata(
                    ip_address=record.ip_address,
                    has_attachments=record.face_photo is not None,
                    is_anonymous=record.is_anonymous,
                ),
            )
        except RuntimeError as e:
            # Executor already shut down
            logger.error(
                "SCORING_SUBMIT_FAILED",
                extra={"report_id": record.tracking_code, "error": str(e)}
            )
