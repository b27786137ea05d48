"""Intake Service: guided conversation that turns chat into a report.

Components:
- context.py: ConversationContext and the data-driven slot order
- extractors.py: Keyword inference of category, urgency, place, school code
- prompts.py: Assistant texts and quick actions
- session_store.py: Live session storage with per-session locking
- dialogue.py: DialogueStateMachine
- finalizer.py: ReportFinalizer (insert + background trust scoring)
- directory.py / conversation_repository.py: PostgreSQL storage
- handler.py: Flask HTTP endpoints
"""

from .config import IntakeConfig
from .context import ConversationContext, REQUIRED_SLOT_ORDER, next_required_slot
from .extractors import normalize_category
from .session_store import SessionStore, InMemorySessionStore
from .directory import SchoolDirectory
from .conversation_repository import ConversationRepository, ConversationRecord
from .finalizer import ReportFinalizer, FinalizationResult
from .dialogue import (
    DialogueStateMachine,
    IntakeError,
    IntakeReply,
    IntakeSession,
    SessionNotFoundError,
)

__all__ = [
    "IntakeConfig",
    "ConversationContext",
    "REQUIRED_SLOT_ORDER",
    "next_required_slot",
    "normalize_category",
    "SessionStore",
    "InMemorySessionStore",
    "SchoolDirectory",
    "ConversationRepository",
    "ConversationRecord",
    "ReportFinalizer",
    "FinalizationResult",
    "DialogueStateMachine",
    "IntakeError",
    "IntakeReply",
    "IntakeSession",
    "SessionNotFoundError",
]
