"""Shared utilities for SpeakFree services."""
from .pii import hash_pii, hash_pii_if_configured, hash_text_for_audit, configure_pii_salt

__all__ = ["hash_pii", "hash_pii_if_configured", "hash_text_for_audit", "configure_pii_salt"]
