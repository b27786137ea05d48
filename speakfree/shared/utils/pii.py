"""Hashing helpers that keep submitter identities out of the logs.

IP addresses, contact details and access codes go through hash_pii()
before they reach a log record. Message bodies are fingerprinted with
hash_text_for_audit() instead.
"""
import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MIN_SALT_LENGTH = 32

_PII_SALT: Optional[str] = None


def configure_pii_salt(salt: str) -> None:
    """Set the process-wide salt. Handlers call this at import time.

    Raises:
        ValueError: If salt is shorter than MIN_SALT_LENGTH
    """
    global _PII_SALT
    if not salt or len(salt) < MIN_SALT_LENGTH:
        logger.critical(
            "PII_SALT_CONFIGURATION_FAILED",
            extra={"reason": "Salt too short or empty", "min_length": MIN_SALT_LENGTH}
        )
        raise ValueError(f"PII salt must be at least {MIN_SALT_LENGTH} characters")

    _PII_SALT = salt
    logger.info("PII_SALT_CONFIGURED", extra={"salt_length": len(salt)})


def hash_pii(value: str) -> str:
    """Salted SHA-256 of a submitter identifier, as 64 hex chars.

    The same value always maps to the same digest within a deployment,
    so log lines about one submitter can still be correlated.

    Raises:
        RuntimeError: If configure_pii_salt() has not run
    """
    if _PII_SALT is None:
        logger.critical("PII_HASH_FAILED", extra={"reason": "Salt not configured"})
        raise RuntimeError("PII salt not configured. Call configure_pii_salt() first.")

    return hashlib.sha256(f"{_PII_SALT}{value}".encode()).hexdigest()


def hash_pii_if_configured(value: Optional[str]) -> Optional[str]:
    """hash_pii() for log fields on paths that must not raise.

    None when the value is empty or no salt has been configured yet.
    """
    if not value or _PII_SALT is None:
        return None
    return hash_pii(value)


def hash_text_for_audit(text: str) -> str:
    """Unsalted fingerprint of message text for the moderation audit log."""
    return hashlib.sha256(text.encode()).hexdigest()
