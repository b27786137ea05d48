"""Conversation context of one guided intake session.

The context is filled one slot per user message. Which slot comes next is
decided by the REQUIRED_SLOT_ORDER table, not by branching code: a slot is
required when its predicate holds for the current context, and the first
required slot that is still empty is the one the next message fills.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from speakfree.shared.models import Urgency

COMPLETE = "complete"

# Urgency levels for which the student is offered to leave contact details
CONTACT_URGENCIES = frozenset({Urgency.CRITICAL.value, Urgency.HIGH.value})

# Lookup modes of the school slot
LOOKUP_BY_CODE = "code"
LOOKUP_BY_NAME = "school_name"


@dataclass
class ConversationContext:
    """Mutable slot state of one intake session.

    Enum-valued slots store their string ``value`` so that the context can
    be serialized as-is into the message log.
    """
    session_id: str
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    urgency: Optional[str] = None
    witnesses: Optional[str] = None
    school_code: Optional[str] = None
    contact_decision: Optional[str] = None
    contact_info: Optional[Dict[str, str]] = None
    face_photo: Optional[str] = None

    # Bookkeeping
    user_type: str = "eleve"
    school_lookup_mode: str = LOOKUP_BY_CODE
    completed: bool = False
    report_code: Optional[str] = None
    report_access_code: Optional[str] = None
    submitter_key: Optional[str] = None
    access_code: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def fill(self, slot: str, value: Any) -> bool:
        """Set a slot if it is still empty.

        Returns:
            True if the slot was set, False if it already held a value
        """
        if getattr(self, slot) is not None:
            return False
        setattr(self, slot, value)
        return True

    @property
    def state(self) -> str:
        return dialogue_state(self)

    def to_dict(self) -> Dict[str, Any]:
        """Client-facing view; never includes the submitter key."""
        return {
            "category": self.category,
            "location": self.location,
            "description": self.description,
            "urgency": self.urgency,
            "witnesses": self.witnesses,
            "schoolCode": self.school_code,
            "contactDecision": self.contact_decision,
            "contactInfo": self.contact_info,
            "facePhoto": self.face_photo,
            "userType": self.user_type,
            "schoolLookupMode": self.school_lookup_mode,
            "completed": self.completed,
            "reportCode": self.report_code,
            "state": self.state,
        }


def _always(context: ConversationContext) -> bool:
    return True


def _urgent(context: ConversationContext) -> bool:
    return context.urgency in CONTACT_URGENCIES


def _wants_contact(context: ConversationContext) -> bool:
    return context.contact_decision == "yes"


REQUIRED_SLOT_ORDER: Tuple[Tuple[str, Callable[[ConversationContext], bool]], ...] = (
    ("category", _always),
    ("location", _always),
    ("description", _always),
    ("witnesses", _always),
    ("school_code", _always),
    ("contact_decision", _urgent),
    ("contact_info", _wants_contact),
)

STATE_NAMES: Dict[str, str] = {
    "category": "no-category",
    "location": "no-location",
    "description": "no-description",
    "witnesses": "no-witnesses",
    "school_code": "no-schoolCode",
    "contact_decision": "no-contactDecision",
    "contact_info": "no-contactInfo",
    COMPLETE: "ready",
}


def next_required_slot(context: ConversationContext) -> str:
    """First required slot still empty, or COMPLETE."""
    for slot, required in REQUIRED_SLOT_ORDER:
        if required(context) and getattr(context, slot) is None:
            return slot
    return COMPLETE


def dialogue_state(context: ConversationContext) -> str:
    return STATE_NAMES[next_required_slot(context)]
