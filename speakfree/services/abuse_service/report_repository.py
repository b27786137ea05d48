"""Report storage as seen by the anti-abuse and intake services.

The reports table is owned by the reporting backend. This repository only
covers the queries the trust scorer needs (history windows, near-duplicate
candidates, trust update) and the insertion performed by the intake
finalizer.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from speakfree.shared.database import BaseRepository, ConnectionManager
from speakfree.shared.models import HistoricalReport, NewReport
from speakfree.shared.utils import hash_pii

logger = logging.getLogger(__name__)


class ReportRepository(BaseRepository[HistoricalReport]):
    """Repository for the reports table.

    Report ids are the public tracking codes (``SF-...``).
    """

    columns = ("id", "message", "created_at")

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "reports")

    def _row_to_entity(self, row: tuple) -> HistoricalReport:
        return HistoricalReport(id=row[0], message=row[1] or "", created_at=row[2])

    def _entity_to_params(self, entity: NewReport) -> Dict[str, Any]:
        return {
            "id": entity.tracking_code,
            "school_id": entity.school_id,
            "user_type": entity.user_type,
            "category": entity.category,
            "urgency": entity.urgency,
            "title": entity.title,
            "message": entity.message,
            "location": entity.location,
            "witnesses": entity.witnesses,
            "is_anonymous": entity.is_anonymous,
            "status": entity.status,
            "access_code": entity.access_code,
            "contact_info": json.dumps(entity.contact_info) if entity.contact_info else None,
            "face_photo": entity.face_photo,
            "face_verified": entity.face_photo is not None,
            "ip_address": entity.ip_address,
            "created_at": entity.created_at,
        }

    # ------------------------------------------------------------------
    # Report history (read side of the frequency analyzer)
    # ------------------------------------------------------------------

    def count_by_submitter(self, submitter_key: str, since: datetime) -> int:
        """Count reports created from one submitter key after ``since``."""
        row = self._fetch_one(
            "SELECT COUNT(*) FROM reports WHERE ip_address = %s AND created_at > %s",
            (submitter_key, since),
        )
        return row[0] if row else 0

    def count_by_organization(self, school_id: int, since: datetime) -> int:
        """Count reports created for one school after ``since``."""
        row = self._fetch_one(
            "SELECT COUNT(*) FROM reports WHERE school_id = %s AND created_at > %s",
            (school_id, since),
        )
        return row[0] if row else 0

    def similar_candidates(
        self,
        school_id: int,
        since: datetime,
        exclude_statuses: Iterable[str] = ("archived",),
        exclude_report_id: Optional[str] = None,
    ) -> List[HistoricalReport]:
        """Recent reports of a school that may duplicate a new one."""
        query = (
            f"SELECT {self._select_list} FROM reports "
            "WHERE school_id = %s AND created_at > %s"
        )
        params: List[Any] = [school_id, since]

        statuses = list(exclude_statuses)
        if statuses:
            query += " AND status <> ALL(%s)"
            params.append(statuses)
        if exclude_report_id is not None:
            query += " AND id <> %s"
            params.append(exclude_report_id)

        rows = self._fetch_all(query, params)
        return [self._row_to_entity(row) for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_trust(
        self,
        report_id: str,
        score: int,
        flags: Optional[List[Dict[str, Any]]],
    ) -> bool:
        """Store the trust score and abuse flags on a report row.

        Returns:
            True if a row was updated
        """
        updated = self._execute(
            "UPDATE reports SET trust_score = %s, abuse_flags = %s WHERE id = %s",
            (score, json.dumps(flags) if flags else None, report_id),
        )
        logger.info(
            "REPORT_TRUST_UPDATED",
            extra={"report_id": report_id, "trust_score": score, "updated": updated > 0}
        )
        return updated > 0

    def create_report(self, record: NewReport) -> Tuple[str, str]:
        """Insert a finalized report.

        Returns:
            (tracking_code, access_code)

        Raises:
            RepositoryError: If the insert fails
        """
        self.insert(record)
        logger.info(
            "REPORT_CREATED",
            extra={
                "report_id": record.tracking_code,
                "school_id": record.school_id,
                "category": record.category,
                "urgency": record.urgency,
                "is_anonymous": record.is_anonymous,
                "submitter_hash": hash_pii(record.ip_address) if record.ip_address else None,
            }
        )
        return record.tracking_code, record.access_code

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def trust_distribution(self, since: datetime) -> Dict[str, int]:
        """Count recent reports per trust band."""
        row = self._fetch_one(
            """
            SELECT
                COUNT(CASE WHEN trust_score < 25 THEN 1 END),
                COUNT(CASE WHEN trust_score BETWEEN 25 AND 49 THEN 1 END),
                COUNT(CASE WHEN trust_score BETWEEN 50 AND 74 THEN 1 END),
                COUNT(CASE WHEN trust_score >= 75 THEN 1 END),
                COUNT(*)
            FROM reports
            WHERE created_at > %s
            """,
            (since,),
        )
        row = row or (0, 0, 0, 0, 0)
        return {
            "very_low_trust": row[0],
            "low_trust": row[1],
            "medium_trust": row[2],
            "high_trust": row[3],
            "total_reports": row[4],
        }

    def suspicious_submitters(
        self,
        since: datetime,
        min_reports: int = 3,
        max_average_trust: int = 50,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Submitter keys with many reports or a low average trust score."""
        rows = self._fetch_all(
            """
            SELECT ip_address, COUNT(*) AS report_count,
                   AVG(trust_score) AS avg_trust_score,
                   MAX(created_at) AS last_report
            FROM reports
            WHERE ip_address IS NOT NULL AND created_at > %s
            GROUP BY ip_address
            HAVING COUNT(*) > %s OR AVG(trust_score) < %s
            ORDER BY report_count DESC, avg_trust_score ASC
            LIMIT %s
            """,
            (since, min_reports, max_average_trust, limit),
        )
        return [
            {
                "ip_address": row[0],
                "report_count": row[1],
                "avg_trust_score": float(row[2]) if row[2] is not None else None,
                "last_report": row[3].isoformat() if row[3] else None,
            }
            for row in rows
        ]
