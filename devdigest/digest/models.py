"""
Digest - the composed newsletter for one cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from devdigest.content.models import ContentFragment


@dataclass(frozen=True)
class Digest:
    """
    Immutable newsletter for exactly one delivery cycle.

    Holds the ordered fragments plus both derived representations: ``source``
    (markdown) and ``html`` (rendered e-mail), with ``text`` as the plaintext
    alternative part.
    """

    cycle_date: date
    subject: str
    source: str
    html: str
    text: str
    fragments: tuple[ContentFragment, ...] = field(default_factory=tuple)

    @property
    def fallback_sections(self) -> list[str]:
        return [f.section_id for f in self.fragments if f.is_fallback]
