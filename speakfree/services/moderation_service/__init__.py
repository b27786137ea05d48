"""Moderation Service: synchronous toxicity gate for discussion messages.

Components:
- config.py: Forbidden phrases, patterns, scores and rejection texts
- moderator.py: ModerationGate (check, moderate, analyze)
- moderation_repository.py: Decision log for statistics
- handler.py: Flask HTTP endpoints (/check, /analyze, /stats)
"""

from .config import ModerationThresholds, FORBIDDEN_PHRASES, SUSPICIOUS_PATTERNS
from .moderator import ModerationGate
from .moderation_repository import ModerationLogRepository, ModerationLogEntry

__all__ = [
    "ModerationThresholds",
    "FORBIDDEN_PHRASES",
    "SUSPICIOUS_PATTERNS",
    "ModerationGate",
    "ModerationLogRepository",
    "ModerationLogEntry",
]
