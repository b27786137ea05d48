"""Session storage for live intake conversations.

The dialogue state machine performs every read-modify-write of a context
while holding ``lock(session_id)``, so two messages of the same session are
never applied concurrently.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import ContextManager, Dict, Optional

from .context import ConversationContext

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Storage contract for conversation contexts."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[ConversationContext]:
        pass

    @abstractmethod
    def put(self, session_id: str, context: ConversationContext) -> None:
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        pass

    @abstractmethod
    def lock(self, session_id: str) -> ContextManager:
        """Exclusive lock for one session, used as a context manager."""
        pass


class InMemorySessionStore(SessionStore):
    """Process-local store with one ``threading.Lock`` per session."""

    def __init__(self):
        self._sessions: Dict[str, ConversationContext] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, session_id: str) -> Optional[ConversationContext]:
        with self._guard:
            return self._sessions.get(session_id)

    def put(self, session_id: str, context: ConversationContext) -> None:
        with self._guard:
            self._sessions[session_id] = context
            self._locks.setdefault(session_id, threading.Lock())

    def delete(self, session_id: str) -> bool:
        with self._guard:
            self._locks.pop(session_id, None)
            removed = self._sessions.pop(session_id, None) is not None

        if removed:
            logger.info("SESSION_DELETED", extra={"session_id": session_id})
        return removed

    def lock(self, session_id: str) -> threading.Lock:
        """Lock registered by put(); unknown ids get an unregistered lock."""
        with self._guard:
            lock = self._locks.get(session_id)
        return lock if lock is not None else threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)
