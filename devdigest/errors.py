"""Exception hierarchy for devdigest."""

from __future__ import annotations


class DevDigestError(Exception):
    """Base exception for devdigest errors."""

    pass


class RecipientStoreError(DevDigestError):
    """Subscriber list could not be read or written."""

    pass


class ProviderError(DevDigestError):
    """Content provider failed. Never escapes ContentProvider.fetch()."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DeliveryError(DevDigestError):
    """A single delivery attempt failed."""

    pass


class ArchiveError(DevDigestError):
    """Digest snapshot could not be written."""

    pass
