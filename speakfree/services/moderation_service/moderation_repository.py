"""Moderation log storage for statistics."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from speakfree.shared.database import BaseRepository, ConnectionManager
from speakfree.shared.models import ModerationVerdict

logger = logging.getLogger(__name__)

# Only a prefix of each message is kept
STORED_MESSAGE_LENGTH = 100


@dataclass
class ModerationLogEntry:
    message: str
    score: int
    content_type: str
    severity: str
    action: str
    created_at: datetime = field(default_factory=datetime.utcnow)
    id: Optional[int] = None


class ModerationLogRepository(BaseRepository[ModerationLogEntry]):
    """Repository for the moderation_logs table."""

    columns = ("id", "message", "score", "content_type", "severity", "action", "created_at")

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "moderation_logs")

    def _row_to_entity(self, row: tuple) -> ModerationLogEntry:
        return ModerationLogEntry(
            id=row[0],
            message=row[1],
            score=row[2],
            content_type=row[3],
            severity=row[4],
            action=row[5],
            created_at=row[6],
        )

    def _entity_to_params(self, entity: ModerationLogEntry) -> Dict[str, Any]:
        return {
            "message": entity.message,
            "score": entity.score,
            "content_type": entity.content_type,
            "severity": entity.severity,
            "action": entity.action,
            "created_at": entity.created_at,
        }

    def record(self, text: str, verdict: ModerationVerdict) -> bool:
        """Store one moderation decision. Failures are logged, not raised."""
        entry = ModerationLogEntry(
            message=text[:STORED_MESSAGE_LENGTH],
            score=verdict.score or 0,
            content_type=verdict.content_type.value if verdict.content_type else "unknown",
            severity=verdict.content_severity.value if verdict.content_severity else "low",
            action=verdict.action,
        )
        try:
            self.insert(entry)
            return True
        except Exception as e:
            logger.error(
                "MODERATION_LOG_FAILED",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            return False

    def stats(self) -> Dict[str, Any]:
        """Totals and per-content-type counts of all decisions."""
        rows = self._fetch_all(
            """
            SELECT content_type, action, COUNT(*)
            FROM moderation_logs
            GROUP BY content_type, action
            """
        )
        stats: Dict[str, Any] = {"totalChecks": 0, "blocked": 0, "allowed": 0, "types": {}}
        for content_type, action, count in rows:
            stats["totalChecks"] += count
            if action in ("blocked", "allowed"):
                stats[action] += count
            if content_type:
                stats["types"][content_type] = stats["types"].get(content_type, 0) + count
        return stats
