"""Unit tests for subscriber address validation and log redaction"""

from __future__ import annotations

import pytest

from devdigest.utils.redaction import redact, redact_email
from devdigest.utils.validators import ValidationError, validate_email_address


def test_normalizes_case_and_whitespace():
    assert validate_email_address("  Alice@Example.COM ") == "alice@example.com"


@pytest.mark.parametrize("value", [None, "", "   "])
def test_missing_email(value):
    with pytest.raises(ValidationError, match="Email is required"):
        validate_email_address(value)


@pytest.mark.parametrize(
    "value",
    ["plainaddress", "no-at.example.com", "a@b", "a b@example.com", "a@@example.com", "a..b@example.com"],
)
def test_invalid_format(value):
    with pytest.raises(ValidationError, match="Invalid email address format"):
        validate_email_address(value)


def test_too_long():
    with pytest.raises(ValidationError, match="maximum length"):
        validate_email_address("a" * 250 + "@example.com")


def test_redact_email_hides_local_part():
    masked = redact_email("alice@example.com")

    assert "alice" not in masked
    assert masked.startswith("a***@example.com (hash:")


def test_redact_is_stable():
    assert redact("secret") == redact("secret")
    assert redact(None) == "hash:missing"
