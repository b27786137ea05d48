"""Persistent log of intake conversations.

ai_conversations holds one row per session (access code, status, report
code once finalized); ai_messages holds every user, assistant and admin
message in order. Live dialogue state is not read back from here: the log
serves resumption, admin follow-up and polling.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from speakfree.shared.database import BaseRepository, ConnectionManager

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ASSISTANT = "ai"
ROLE_ADMIN = "admin"

DEFAULT_ADMIN_NAME = "Administrateur"


@dataclass(frozen=True)
class ConversationRecord:
    """One row of ai_conversations."""
    session_id: str
    access_code: str
    status: str = "active"
    report_code: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "status": self.status,
            "report_code": self.report_code,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _message_row_to_dict(row: tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "session_id": row[1],
        "role": row[2],
        "message": row[3],
        "created_at": _isoformat(row[4]),
    }


class ConversationRepository(BaseRepository[ConversationRecord]):
    """Repository for ai_conversations and ai_messages."""

    columns = ("session_id", "access_code", "status", "report_code", "created_at", "completed_at")
    id_column = "session_id"

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "ai_conversations")

    def _row_to_entity(self, row: tuple) -> ConversationRecord:
        return ConversationRecord(
            session_id=row[0],
            access_code=row[1],
            status=row[2],
            report_code=row[3],
            created_at=row[4],
            completed_at=row[5],
        )

    def _entity_to_params(self, entity: ConversationRecord) -> Dict[str, Any]:
        return {
            "session_id": entity.session_id,
            "access_code": entity.access_code,
            "status": entity.status,
            "created_at": entity.created_at,
        }

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def create_conversation(self, session_id: str, access_code: str) -> ConversationRecord:
        record = self.insert(ConversationRecord(session_id=session_id, access_code=access_code))
        logger.info("CONVERSATION_CREATED", extra={"session_id": session_id})
        return record

    def mark_completed(self, session_id: str, report_code: str) -> bool:
        updated = self._execute(
            "UPDATE ai_conversations "
            "SET status = 'completed', report_code = %s, completed_at = %s "
            "WHERE session_id = %s",
            (report_code, datetime.utcnow(), session_id),
        )
        return updated > 0

    def find_by_access_code(self, access_code: str) -> Optional[ConversationRecord]:
        row = self._fetch_one(
            f"SELECT {self._select_list} FROM ai_conversations WHERE access_code = %s",
            (access_code,),
        )
        return self._row_to_entity(row) if row else None

    def list_conversations(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Most recent conversations with message count and opening message."""
        rows = self._fetch_all(
            """
            SELECT
                ac.session_id, ac.report_code, ac.status, ac.created_at, ac.completed_at,
                (SELECT COUNT(*) FROM ai_messages WHERE session_id = ac.session_id),
                (SELECT message FROM ai_messages
                 WHERE session_id = ac.session_id AND role = 'user'
                 ORDER BY created_at ASC LIMIT 1)
            FROM ai_conversations ac
            ORDER BY ac.created_at DESC
            LIMIT %s
            """,
            (limit,),
        )
        return [
            {
                "session_id": row[0],
                "report_code": row[1],
                "status": row[2],
                "created_at": _isoformat(row[3]),
                "completed_at": _isoformat(row[4]),
                "message_count": row[5],
                "first_message": row[6],
            }
            for row in rows
        ]

    def delete_conversation(self, session_id: str) -> bool:
        """Delete a conversation and its messages.

        Returns:
            True if the conversation row existed
        """
        self._execute("DELETE FROM ai_messages WHERE session_id = %s", (session_id,))
        deleted = self.delete(session_id)
        logger.info(
            "CONVERSATION_DELETED",
            extra={"session_id": session_id, "found": deleted}
        )
        return deleted

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def append_message(
        self,
        session_id: str,
        role: str,
        message: str,
        context_data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        inserted = self._execute(
            "INSERT INTO ai_messages (session_id, role, message, context_data, created_at) "
            "VALUES (%s, %s, %s, %s, %s)",
            (
                session_id,
                role,
                message,
                json.dumps(context_data) if context_data is not None else None,
                datetime.utcnow(),
            ),
        )
        return inserted > 0

    def messages(self, session_id: str, since: Optional[str] = None) -> List[Dict[str, Any]]:
        """Messages of a session in order, optionally only those after ``since``."""
        query = (
            "SELECT id, session_id, role, message, created_at "
            "FROM ai_messages WHERE session_id = %s"
        )
        params: List[Any] = [session_id]
        if since:
            query += " AND created_at > %s"
            params.append(since)
        query += " ORDER BY created_at ASC"

        return [_message_row_to_dict(row) for row in self._fetch_all(query, params)]

    def add_admin_reply(
        self,
        session_id: str,
        message: str,
        admin_name: Optional[str] = None,
    ) -> bool:
        """Append an admin message and reopen the conversation."""
        text = f"{admin_name or DEFAULT_ADMIN_NAME}: {message}"
        self.append_message(session_id, ROLE_ADMIN, text)
        reopened = self._execute(
            "UPDATE ai_conversations SET status = 'active' WHERE session_id = %s",
            (session_id,),
        )
        logger.info(
            "ADMIN_REPLY_ADDED",
            extra={"session_id": session_id, "conversation_found": reopened > 0}
        )
        return reopened > 0

    def has_admin_reply(self, session_id: str) -> bool:
        row = self._fetch_one(
            "SELECT COUNT(*) FROM ai_messages WHERE session_id = %s AND role = 'admin'",
            (session_id,),
        )
        return bool(row and row[0] > 0)
