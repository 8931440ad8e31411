"""
Helpers for keeping subscriber addresses out of logs and telemetry.
"""

from __future__ import annotations

from hashlib import sha256


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"


def redact_email(email: str | None) -> str:
    """
    Mask the local part of an address, keep the domain for debugging.

    Example:
        "alice@example.com" -> "a***@example.com (hash:ff8d9819fc0e)"
    """
    if not email or "@" not in email:
        return redact(email)
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain} ({redact(email)})"
