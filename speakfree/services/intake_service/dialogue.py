"""Guided intake dialogue.

Each inbound message fills the first required slot that is still empty
(see context.REQUIRED_SLOT_ORDER). Once every required slot is filled the
conversation is ready: the first arrival there finalizes the report, and
later messages are handled as ready-state commands (summary, modify, help,
create). A failed finalization leaves the session ready and is retried on
the next create command or non-command message.

Message text and contact details are never logged.
"""
import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from speakfree.shared.database import RepositoryError
from speakfree.shared.models import Urgency
from speakfree.shared.utils import hash_pii
from . import prompts
from .config import (
    CREATE_KEYWORDS,
    HELP_KEYWORDS,
    IntakeConfig,
    MODIFY_KEYWORDS,
    SUMMARY_KEYWORDS,
)
from .context import (
    COMPLETE,
    LOOKUP_BY_CODE,
    LOOKUP_BY_NAME,
    ConversationContext,
    next_required_slot,
)
from .conversation_repository import ROLE_ASSISTANT, ROLE_USER
from .extractors import (
    contains_keyword,
    extract_contact_decision,
    extract_contact_info,
    extract_location,
    extract_school_code,
    extract_school_name,
    extract_witnesses,
    infer_category,
    infer_urgency,
    mentions_unknown_code,
    normalize_text,
)
from .finalizer import ReportFinalizer, generate_access_code
from .prompts import QuickAction
from .session_store import SessionStore

logger = logging.getLogger(__name__)

_SESSION_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


class IntakeError(Exception):
    """Invalid request on an intake session."""
    pass


class SessionNotFoundError(IntakeError):
    """Unknown session id or access code."""
    pass


@dataclass
class IntakeReply:
    """Assistant answer to one student message."""
    text: str
    quick_actions: List[QuickAction] = field(default_factory=list)
    context: Optional[Dict[str, Any]] = None
    report_created: bool = False
    report_code: Optional[str] = None
    access_code: Optional[str] = None
    ready_to_finalize: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "aiResponse": self.text,
            "context": self.context,
            "quickActions": [action.to_dict() for action in self.quick_actions],
            "reportCreated": self.report_created,
            "reportCode": self.report_code,
            "accessCode": self.access_code,
        }


@dataclass(frozen=True)
class IntakeSession:
    """A freshly opened conversation."""
    session_id: str
    access_code: str
    welcome_message: str
    quick_actions: List[QuickAction]
    context: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "sessionId": self.session_id,
            "accessCode": self.access_code,
            "welcomeMessage": self.welcome_message,
            "quickActions": [action.to_dict() for action in self.quick_actions],
            "context": self.context,
        }


def generate_session_id() -> str:
    """Session id such as ``CHAT-1718000000000-k3z9q0a1b``."""
    suffix = "".join(secrets.choice(_SESSION_SUFFIX_ALPHABET) for _ in range(9))
    return f"CHAT-{int(time.time() * 1000)}-{suffix}"


class DialogueStateMachine:
    """Slot-filling conversation that produces a report."""

    def __init__(
        self,
        store: SessionStore,
        directory,
        finalizer: ReportFinalizer,
        conversations=None,
        config: Optional[IntakeConfig] = None,
    ):
        """Initialize the state machine.

        Args:
            store: Live session storage
            directory: SchoolDirectory (``find_by_code``, ``search_by_name``)
            finalizer: Report finalizer
            conversations: Optional ConversationRepository for the message log
            config: Intake limits and defaults
        """
        self.store = store
        self.directory = directory
        self.finalizer = finalizer
        self.conversations = conversations
        self.config = config or IntakeConfig()

        self._slot_handlers: Dict[str, Callable[[ConversationContext, str], IntakeReply]] = {
            "category": self._fill_category,
            "location": self._fill_location,
            "description": self._fill_description,
            "witnesses": self._fill_witnesses,
            "school_code": self._fill_school,
            "contact_decision": self._fill_contact_decision,
            "contact_info": self._fill_contact_info,
            COMPLETE: self._handle_ready,
        }

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start_session(self, submitter_key: Optional[str] = None) -> IntakeSession:
        session_id = generate_session_id()
        access_code = generate_access_code()
        context = ConversationContext(
            session_id=session_id,
            user_type=self.config.default_user_type,
            submitter_key=submitter_key,
            access_code=access_code,
        )
        self.store.put(session_id, context)
        self._persist("create_conversation", session_id, access_code)

        logger.info(
            "INTAKE_SESSION_STARTED",
            extra={
                "session_id": session_id,
                "submitter_hash": hash_pii(submitter_key) if submitter_key else None,
            }
        )
        return IntakeSession(
            session_id=session_id,
            access_code=access_code,
            welcome_message=prompts.welcome(self.config.assistant_name),
            quick_actions=list(prompts.WELCOME_ACTIONS),
            context=context.to_dict(),
        )

    def handle_message(self, session_id: Optional[str], message: Optional[str]) -> IntakeReply:
        """Apply one student message to its session.

        Raises:
            SessionNotFoundError: If the session does not exist
            IntakeError: If the message is empty
        """
        if not session_id:
            raise SessionNotFoundError("Session invalide")
        text = normalize_text(message)
        if not text:
            raise IntakeError("Message requis")

        with self.store.lock(session_id):
            context = self.store.get(session_id)
            if context is None:
                raise SessionNotFoundError("Session invalide")

            slot = next_required_slot(context)
            reply = self._slot_handlers[slot](context, text)
            if reply.ready_to_finalize:
                self._finalize(context, reply)

            self.store.put(session_id, context)
            reply.context = context.to_dict()

            self._persist("append_message", session_id, ROLE_USER, text, reply.context)
            self._persist("append_message", session_id, ROLE_ASSISTANT, reply.text, reply.context)

        logger.info(
            "INTAKE_MESSAGE_HANDLED",
            extra={
                "session_id": session_id,
                "slot": slot,
                "state": reply.context["state"],
                "report_created": reply.report_created,
            }
        )
        return reply

    def attach_face_photo(self, session_id: str, photo_path: str) -> ConversationContext:
        """Record the path of an already stored face photo."""
        if not photo_path:
            raise IntakeError("Photo de visage requise")

        with self.store.lock(session_id):
            context = self.store.get(session_id)
            if context is None:
                raise SessionNotFoundError("Session invalide")
            if not context.fill("face_photo", photo_path):
                raise IntakeError("Photo déjà enregistrée pour cette session")
            self.store.put(session_id, context)

        logger.info("FACE_PHOTO_ATTACHED", extra={"session_id": session_id})
        return context

    def resume(self, access_code: Optional[str]) -> Dict[str, Any]:
        """Conversation status and history for a conversation access code."""
        if not access_code:
            raise IntakeError("Code d'accès requis")
        if self.conversations is None:
            raise SessionNotFoundError("Code d'accès invalide")

        record = self.conversations.find_by_access_code(access_code)
        if record is None:
            logger.warning("INTAKE_RESUME_INVALID_CODE")
            raise SessionNotFoundError("Code d'accès invalide")

        return {
            "success": True,
            "sessionId": record.session_id,
            "status": record.status,
            "reportCode": record.report_code,
            "messages": self.conversations.messages(record.session_id),
            "createdAt": record.created_at.isoformat() if record.created_at else None,
        }

    def delete_session(self, session_id: str) -> None:
        """Remove a session from live storage and from the message log."""
        with self.store.lock(session_id):
            live = self.store.delete(session_id)
        persisted = False
        if self.conversations is not None:
            persisted = self.conversations.delete_conversation(session_id)

        if not live and not persisted:
            raise SessionNotFoundError("Conversation non trouvée")

    # ------------------------------------------------------------------
    # Slot handlers
    # ------------------------------------------------------------------

    def _fill_category(self, context: ConversationContext, text: str) -> IntakeReply:
        category, implied_urgency = infer_category(text)

        if category is None:
            urgency = infer_urgency(text)
            if urgency is not None:
                self._set_urgency(context, urgency.value)
            return IntakeReply(
                prompts.CATEGORY_CLARIFICATION,
                list(prompts.CATEGORY_CLARIFICATION_ACTIONS),
            )

        context.fill("category", category.value)
        if implied_urgency is not None and context.urgency != Urgency.CRITICAL.value:
            context.urgency = implied_urgency.value
        if context.urgency == Urgency.CRITICAL.value:
            self._log_critical(context)

        return IntakeReply(prompts.acknowledge_category(category.value))

    def _fill_location(self, context: ConversationContext, text: str) -> IntakeReply:
        location = extract_location(text, max_length=self.config.location_max_length)
        context.fill("location", location)
        return IntakeReply(prompts.acknowledge_location(location))

    def _fill_description(self, context: ConversationContext, text: str) -> IntakeReply:
        context.fill("description", text)
        if context.urgency is None:
            urgency = infer_urgency(text) or Urgency.MEDIUM
            self._set_urgency(context, urgency.value)

        return IntakeReply(
            prompts.witness_question(context.category),
            list(prompts.WITNESS_ACTIONS),
        )

    def _fill_witnesses(self, context: ConversationContext, text: str) -> IntakeReply:
        context.fill("witnesses", extract_witnesses(text))
        return IntakeReply(prompts.SCHOOL_CODE_PROMPT)

    def _fill_school(self, context: ConversationContext, text: str) -> IntakeReply:
        try:
            return self._lookup_school(context, text)
        except RepositoryError as e:
            logger.error(
                "INTAKE_SCHOOL_LOOKUP_FAILED",
                extra={
                    "session_id": context.session_id,
                    "lookup_mode": context.school_lookup_mode,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return IntakeReply(prompts.SCHOOL_LOOKUP_FAILED)

    def _lookup_school(self, context: ConversationContext, text: str) -> IntakeReply:
        name = extract_school_name(text)
        if name:
            return self._search_school(context, name)

        if context.school_lookup_mode == LOOKUP_BY_CODE and mentions_unknown_code(text):
            context.school_lookup_mode = LOOKUP_BY_NAME
            return IntakeReply(prompts.SCHOOL_NAME_PROMPT)

        code = extract_school_code(text)
        if code:
            school = self.directory.find_by_code(code)
            if school is not None:
                return self._accept_school(context, school)
            if context.school_lookup_mode == LOOKUP_BY_CODE:
                return IntakeReply(
                    prompts.school_code_not_found(code),
                    list(prompts.SCHOOL_CODE_NOT_FOUND_ACTIONS),
                )

        if context.school_lookup_mode == LOOKUP_BY_NAME:
            return self._search_school(context, text)

        return IntakeReply(
            prompts.SCHOOL_CODE_NOT_UNDERSTOOD,
            list(prompts.SCHOOL_CODE_NOT_UNDERSTOOD_ACTIONS),
        )

    def _search_school(self, context: ConversationContext, name: str) -> IntakeReply:
        schools = self.directory.search_by_name(name, limit=self.config.school_search_limit)
        if not schools:
            context.school_lookup_mode = LOOKUP_BY_NAME
            return IntakeReply(prompts.SCHOOL_NAME_NOT_FOUND)

        # The quick actions carry the codes, so the next answer is a code again
        context.school_lookup_mode = LOOKUP_BY_CODE
        return IntakeReply(
            prompts.school_search_results(schools),
            prompts.school_actions(schools),
        )

    def _accept_school(self, context: ConversationContext, school) -> IntakeReply:
        context.fill("school_code", school.school_code)
        context.school_lookup_mode = LOOKUP_BY_CODE

        if next_required_slot(context) == "contact_decision":
            return IntakeReply(
                prompts.contact_question(school.school_code, context.urgency),
                list(prompts.CONTACT_ACTIONS),
            )
        return IntakeReply(prompts.READY_TEXT, ready_to_finalize=True)

    def _fill_contact_decision(self, context: ConversationContext, text: str) -> IntakeReply:
        decision = extract_contact_decision(text)
        context.fill("contact_decision", decision)
        if decision == "yes":
            return IntakeReply(prompts.CONTACT_INFO_PROMPT)
        return IntakeReply(prompts.ANONYMOUS_READY_TEXT, ready_to_finalize=True)

    def _fill_contact_info(self, context: ConversationContext, text: str) -> IntakeReply:
        context.fill("contact_info", extract_contact_info(text))
        return IntakeReply(prompts.CONTACT_READY_TEXT, ready_to_finalize=True)

    def _handle_ready(self, context: ConversationContext, text: str) -> IntakeReply:
        if contains_keyword(text, CREATE_KEYWORDS):
            if context.completed:
                return IntakeReply(prompts.already_created(context.report_code))
            return IntakeReply(prompts.CREATE_NOW_TEXT, ready_to_finalize=True)

        if contains_keyword(text, SUMMARY_KEYWORDS):
            return IntakeReply(
                prompts.summary(context, self.config.summary_description_length),
                list(prompts.SUMMARY_ACTIONS),
            )
        if contains_keyword(text, MODIFY_KEYWORDS):
            return IntakeReply(prompts.MODIFY_TEXT, list(prompts.MODIFY_ACTIONS))
        if contains_keyword(text, HELP_KEYWORDS):
            return IntakeReply(prompts.advice(context.category), list(prompts.HELP_ACTIONS))

        if not context.completed:
            # Previous finalization failed
            return IntakeReply(prompts.CREATE_NOW_TEXT, ready_to_finalize=True)
        return IntakeReply(prompts.DEFAULT_TEXT, list(prompts.DEFAULT_ACTIONS))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _finalize(self, context: ConversationContext, reply: IntakeReply) -> None:
        if context.completed:
            return

        result = self.finalizer.finalize(context)
        if not result.success:
            reply.text = prompts.REPORT_FAILED_TEXT
            reply.quick_actions = list(prompts.REPORT_FAILED_ACTIONS)
            return

        context.completed = True
        context.report_code = result.report_code
        context.report_access_code = result.access_code

        reply.report_created = True
        reply.report_code = result.report_code
        reply.access_code = result.access_code
        reply.text = f"{reply.text}\n\n{prompts.report_created(result.report_code, result.access_code)}"
        reply.quick_actions = []

        self._persist("mark_completed", context.session_id, result.report_code)

    def _set_urgency(self, context: ConversationContext, urgency: str) -> None:
        if context.fill("urgency", urgency) and urgency == Urgency.CRITICAL.value:
            self._log_critical(context)

    def _log_critical(self, context: ConversationContext) -> None:
        logger.critical(
            "INTAKE_CRITICAL_SITUATION",
            extra={
                "session_id": context.session_id,
                "category": context.category,
                "urgency": context.urgency,
            }
        )

    def _persist(self, operation: str, *args) -> Any:
        """Best-effort write to the conversation log."""
        if self.conversations is None:
            return None
        try:
            return getattr(self.conversations, operation)(*args)
        except Exception as e:
            logger.error(
                "CONVERSATION_LOG_FAILED",
                extra={
                    "operation": operation,
                    "session_id": args[0] if args else None,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return None
