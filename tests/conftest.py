"""
Shared fixtures for the devdigest test suite.

Fakes stand in for the network-facing collaborators (content providers, the
SMTP transport) so the pipeline runs fully offline.
"""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from devdigest.content.models import ContentFragment, Section
from devdigest.content.providers import ContentProvider
from devdigest.errors import DeliveryError
from devdigest.observability import telemetry
from devdigest.storage.recipients import RecipientStore

CYCLE_DATE = date(2025, 3, 3)


class StaticProvider(ContentProvider):
    """Returns fixed markdown after an optional delay."""

    def __init__(self, section: str, text: str, name: str | None = None, delay: float = 0.0):
        super().__init__(timeout=5.0)
        self.section = section
        self.name = name or f"static_{section}"
        self.text = text
        self.delay = delay

    async def _fetch(self) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.text


class BrokenProvider(ContentProvider):
    """Always fails with the given exception."""

    section = Section.BODY
    name = "broken"
    fallback_text = "## Broken\n\nFallback text."

    def __init__(self, error: Exception):
        super().__init__(timeout=5.0)
        self.error = error

    async def _fetch(self) -> str:
        raise self.error


class RecordingTransport:
    """
    In-memory transport.

    ``failures`` maps a recipient to how many leading attempts should fail;
    a negative value fails forever.
    """

    def __init__(self, failures: dict[str, int] | None = None, delay: float = 0.0):
        self.failures = dict(failures or {})
        self.delay = delay
        self.sent: list[tuple[str, str]] = []
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0

    async def send(self, recipient: str, subject: str, html: str, text: str) -> bool:
        self.calls.append(recipient)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            remaining = self.failures.get(recipient, 0)
            if remaining != 0:
                self.failures[recipient] = remaining - 1 if remaining > 0 else remaining
                raise DeliveryError(f"relay rejected {recipient}")
            self.sent.append((recipient, subject))
            return True
        finally:
            self.active -= 1


class RecordingSleep:
    """Replaces asyncio.sleep in the dispatcher; records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def reset_telemetry():
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "subscribers.json"


@pytest.fixture
def store(store_path):
    return RecipientStore(store_path)


@pytest.fixture
def fragments():
    return [
        ContentFragment(section=Section.BODY, text="## Body\n\nWeekly content.", provider="ai_body"),
        ContentFragment(section=Section.NEWS, text="## Technology News\n\n### Headline", provider="news"),
    ]
