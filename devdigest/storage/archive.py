"""
Archiver - dated snapshots of each generated newsletter.

One snapshot per calendar day: ``newsletter-YYYY-MM-DD.md`` (source markdown)
and ``newsletter-YYYY-MM-DD.html`` (rendered e-mail), side by side. Re-archiving
a date overwrites both files atomically instead of adding a second copy.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from devdigest.config import ARCHIVE_DIR
from devdigest.digest.models import Digest
from devdigest.errors import ArchiveError
from devdigest.observability.logging import get_logger
from devdigest.observability.telemetry import counter, log_event
from devdigest.storage.files import write_text_atomic

logger = get_logger(__name__)

_SNAPSHOT_PATTERN = re.compile(r"^newsletter-(\d{4}-\d{2}-\d{2})\.(md|html)$")


@dataclass(frozen=True)
class ArchiveResult:
    cycle_date: date
    source_path: Path
    html_path: Path


class Archiver:
    """Writes dated source + rendered copies of each digest."""

    def __init__(self, directory: Path | str | None = None):
        self.directory = Path(directory) if directory is not None else ARCHIVE_DIR

    def paths_for(self, cycle_date: date) -> tuple[Path, Path]:
        stem = f"newsletter-{cycle_date.isoformat()}"
        return self.directory / f"{stem}.md", self.directory / f"{stem}.html"

    async def archive(self, cycle_date: date, digest: Digest) -> ArchiveResult:
        """
        Persist the digest for ``cycle_date``, overwriting any earlier snapshot.

        Raises:
            ArchiveError: If either file cannot be written. Callers treat this
                as non-fatal.
        """
        source_path, html_path = self.paths_for(cycle_date)
        try:
            await asyncio.to_thread(write_text_atomic, source_path, digest.source)
            await asyncio.to_thread(write_text_atomic, html_path, digest.html)
        except OSError as e:
            counter("archive.error")
            raise ArchiveError(f"Cannot archive newsletter for {cycle_date}: {e}") from e

        counter("archive.written")
        log_event("archive.written", cycle_date=cycle_date.isoformat(), directory=str(self.directory))
        return ArchiveResult(cycle_date=cycle_date, source_path=source_path, html_path=html_path)

    def list_snapshots(self) -> list[date]:
        """Dates that have at least one archived representation, oldest first."""
        if not self.directory.exists():
            return []

        dates: set[date] = set()
        for path in self.directory.iterdir():
            match = _SNAPSHOT_PATTERN.match(path.name)
            if match:
                dates.add(date.fromisoformat(match.group(1)))
        return sorted(dates)

    def load(self, cycle_date: date) -> tuple[str, str] | None:
        """Archived (source, html) for a date, or None if not archived."""
        source_path, html_path = self.paths_for(cycle_date)
        if not source_path.exists() or not html_path.exists():
            return None
        return source_path.read_text(encoding="utf-8"), html_path.read_text(encoding="utf-8")
