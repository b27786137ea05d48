"""Abuse log storage.

One row per report whose assessment needed review or was blocked. Rows
are reviewed by platform administrators, never edited otherwise.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from speakfree.shared.database import BaseRepository, ConnectionManager
from speakfree.shared.models import ReportDraft, SubmissionMetadata, TrustAssessment
from speakfree.shared.utils import hash_pii_if_configured

logger = logging.getLogger(__name__)


@dataclass
class AbuseLogEntry:
    """A persisted abuse detection."""
    report_id: Optional[str]
    ip_address: Optional[str]
    trust_score: int
    severity: str
    issues: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)
    id: Optional[int] = None
    reviewed: bool = False
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None


def _decode_issues(raw: Any) -> List[Dict[str, Any]]:
    """Decode a stored issues column; unreadable content becomes []."""
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return decoded if isinstance(decoded, list) else []


class AbuseLogRepository(BaseRepository[AbuseLogEntry]):
    """Repository for the abuse_logs table."""

    columns = (
        "id", "report_id", "ip_address", "trust_score", "severity",
        "issues", "metadata", "created_at", "reviewed", "reviewed_by",
        "reviewed_at",
    )

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "abuse_logs")

    def _row_to_entity(self, row: tuple) -> AbuseLogEntry:
        metadata = row[6]
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        return AbuseLogEntry(
            id=row[0],
            report_id=row[1],
            ip_address=row[2],
            trust_score=row[3],
            severity=row[4],
            issues=_decode_issues(row[5]),
            metadata=metadata or {},
            created_at=row[7],
            reviewed=bool(row[8]),
            reviewed_by=row[9],
            reviewed_at=row[10],
        )

    def _entity_to_params(self, entity: AbuseLogEntry) -> Dict[str, Any]:
        return {
            "report_id": entity.report_id,
            "ip_address": entity.ip_address,
            "trust_score": entity.trust_score,
            "severity": entity.severity,
            "issues": json.dumps(entity.issues),
            "metadata": json.dumps(entity.metadata, default=str),
            "created_at": entity.created_at,
        }

    def append(
        self,
        draft: ReportDraft,
        assessment: TrustAssessment,
        metadata: SubmissionMetadata,
    ) -> bool:
        """Record an assessment that needs review.

        Best-effort: storage failures are logged and reported as False.
        """
        entry = AbuseLogEntry(
            report_id=draft.report_id,
            ip_address=metadata.ip_address,
            trust_score=assessment.score,
            severity=assessment.severity.value,
            issues=[issue.to_dict() for issue in assessment.issues],
            metadata={**metadata.to_dict(), "reportData": draft.to_dict()},
        )
        try:
            self.insert(entry)
        except Exception as e:
            logger.error(
                "ABUSE_LOG_APPEND_FAILED",
                extra={
                    "report_id": draft.report_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return False

        logger.info(
            "ABUSE_LOG_APPENDED",
            extra={
                "report_id": draft.report_id,
                "submitter_hash": hash_pii_if_configured(metadata.ip_address),
                "trust_score": assessment.score,
                "severity": assessment.severity.value,
            }
        )
        return True

    def severity_stats(self, since: datetime) -> List[Dict[str, Any]]:
        """Count and average trust score per severity since a date."""
        rows = self._fetch_all(
            """
            SELECT severity, COUNT(*), AVG(trust_score)
            FROM abuse_logs
            WHERE created_at > %s
            GROUP BY severity
            """,
            (since,),
        )
        return [
            {
                "severity": row[0],
                "count": row[1],
                "avg_trust_score": float(row[2]) if row[2] is not None else None,
            }
            for row in rows
        ]

    def suspicious_reports(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Latest warning/critical logs joined with their report and school."""
        rows = self._fetch_all(
            """
            SELECT al.id, al.report_id, al.trust_score, al.severity, al.issues,
                   al.created_at, al.reviewed,
                   r.category, r.urgency, r.status, r.title, r.message,
                   r.face_photo, r.face_verified, r.created_at,
                   s.name, s.school_code
            FROM abuse_logs al
            LEFT JOIN reports r ON al.report_id = r.id
            LEFT JOIN schools s ON r.school_id = s.id
            WHERE al.severity IN ('warning', 'critical')
            ORDER BY al.created_at DESC
            LIMIT %s
            """,
            (limit,),
        )
        return [
            {
                "id": row[0],
                "report_code": row[1],
                "trust_score": row[2],
                "severity": row[3],
                "issues": _decode_issues(row[4]),
                "created_at": row[5].isoformat() if row[5] else None,
                "reviewed": bool(row[6]),
                "category": row[7],
                "urgency": row[8],
                "status": row[9],
                "title": row[10],
                "message": row[11],
                "face_photo": row[12],
                "face_verified": bool(row[13]),
                "report_created_at": row[14].isoformat() if row[14] else None,
                "school_name": row[15],
                "school_code": row[16],
            }
            for row in rows
        ]

    def mark_reviewed(self, log_id: int, reviewer_id: str) -> bool:
        """Mark a log entry as reviewed.

        Returns:
            True if the entry existed
        """
        updated = self._execute(
            """
            UPDATE abuse_logs
            SET reviewed = TRUE, reviewed_at = %s, reviewed_by = %s
            WHERE id = %s
            """,
            (datetime.utcnow(), reviewer_id, log_id),
        )
        logger.info(
            "ABUSE_LOG_REVIEWED",
            extra={"log_id": log_id, "reviewer_id": reviewer_id, "found": updated > 0}
        )
        return updated > 0
