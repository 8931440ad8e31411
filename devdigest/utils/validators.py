"""
Input validation utilities.

Subscriber identities arrive from public HTTP forms, so they are normalized and
checked here before they reach the recipient store.
"""

from __future__ import annotations

import re

# Pragmatic address check: local@domain.tld, no whitespace, single @
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+'-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")

# RFC 5321 path limit
MAX_EMAIL_LENGTH = 254


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email_address(email: str | None) -> str:
    """
    Validate and normalize a subscriber email address.

    Args:
        email: Raw address from a request body

    Returns:
        The normalized (stripped, lowercase) address

    Raises:
        ValidationError: If the address is missing or malformed
    """
    if email is None or not email.strip():
        raise ValidationError("Email is required")

    email = normalize_email(email)

    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError(f"Email exceeds maximum length of {MAX_EMAIL_LENGTH}")

    if ".." in email or not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email address format")

    return email
