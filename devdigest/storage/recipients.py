"""
Recipient Store - durable subscriber list.

**STORE POLICY**: the subscriber list lives in ONE JSON file
(``{"subscribers": [...]}``) and is only ever touched through RecipientStore.
HTTP handlers, the scheduler and the dispatcher call add/remove/list; nothing
else opens the file.

Consistency:
- Every read-modify-write runs as a single critical section under the store's
  lock, so concurrent subscribe/unsubscribe requests cannot overwrite each
  other's effect (no lost update).
- Writes go to a temp file in the same directory and are swapped in with
  os.replace(), so a reader never observes a partially written snapshot.
- File I/O runs in a worker thread; the event loop only awaits it.
"""

from __future__ import annotations

import asyncio
import json
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from devdigest.config import SUBSCRIBERS_FILE
from devdigest.errors import RecipientStoreError
from devdigest.observability.logging import get_logger
from devdigest.observability.telemetry import counter, log_event
from devdigest.storage.files import write_text_atomic
from devdigest.utils.redaction import redact_email

logger = get_logger(__name__)

T = TypeVar("T")


class RecipientStore:
    """
    File-backed set of subscriber addresses with serialized mutations.

    Insertion order is preserved across rewrites; membership has set semantics.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else SUBSCRIBERS_FILE
        # Guards the whole read-modify-write; held inside the worker thread
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public async API
    # ------------------------------------------------------------------

    async def list(self) -> set[str]:
        """Return the current complete snapshot of subscriber addresses."""
        return set(await self._run(self._read_locked))

    async def list_ordered(self) -> list[str]:
        """Return subscribers in insertion order."""
        return await self._run(self._read_locked)

    async def count(self) -> int:
        return len(await self._run(self._read_locked))

    async def add(self, identity: str) -> bool:
        """
        Add a subscriber.

        Returns:
            True if a new record was created, False if already present

        Raises:
            RecipientStoreError: If the subscriber file is unreadable or unwritable
        """

        def _add(subscribers: list[str]) -> bool:
            if identity in subscribers:
                return False
            subscribers.append(identity)
            return True

        created = await self._run(self._mutate, _add)
        if created:
            counter("store.subscribed")
            log_event("store.subscribed", recipient=redact_email(identity))
        else:
            logger.debug("Subscriber already present: %s", redact_email(identity))
        return created

    async def remove(self, identity: str) -> bool:
        """
        Remove a subscriber.

        Returns:
            True if a record was deleted, False if it was not present

        Raises:
            RecipientStoreError: If the subscriber file is unreadable or unwritable
        """

        def _remove(subscribers: list[str]) -> bool:
            if identity not in subscribers:
                return False
            subscribers[:] = [s for s in subscribers if s != identity]
            return True

        removed = await self._run(self._mutate, _remove)
        if removed:
            counter("store.unsubscribed")
            log_event("store.unsubscribed", recipient=redact_email(identity))
        return removed

    # ------------------------------------------------------------------
    # Locked file access (runs in worker threads)
    # ------------------------------------------------------------------

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(func, *args)

    def _read_locked(self) -> list[str]:
        with self._lock:
            return self._load()

    def _mutate(self, change: Callable[[list[str]], bool]) -> bool:
        with self._lock:
            subscribers = self._load()
            changed = change(subscribers)
            if changed:
                self._save(subscribers)
            return changed

    def _load(self) -> list[str]:
        if not self.path.exists():
            logger.info("Subscribers file %s not found, creating empty list", self.path)
            self._save([])
            return []

        try:
            raw = self.path.read_text(encoding="utf-8")
            data = json.loads(raw)
        except OSError as e:
            counter("store.read_error")
            raise RecipientStoreError(f"Cannot read subscribers file {self.path}: {e}") from e
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            counter("store.read_error")
            raise RecipientStoreError(f"Subscribers file {self.path} is corrupt: {e}") from e

        subscribers = data.get("subscribers") if isinstance(data, dict) else None
        if not isinstance(subscribers, list) or not all(isinstance(s, str) for s in subscribers):
            counter("store.read_error")
            raise RecipientStoreError(
                f"Subscribers file {self.path} must contain {{'subscribers': [str, ...]}}"
            )

        # Collapse duplicates left by older writers, keep first occurrence
        return list(dict.fromkeys(subscribers))

    def _save(self, subscribers: list[str]) -> None:
        try:
            write_text_atomic(self.path, json.dumps({"subscribers": subscribers}, indent=2))
        except OSError as e:
            counter("store.write_error")
            raise RecipientStoreError(f"Cannot write subscribers file {self.path}: {e}") from e
