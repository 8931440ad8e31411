"""
Aggregator - compose provider fragments into one markdown document.

Section order is fixed by configuration, never by fetch-completion order:
providers may run concurrently and finish in any order, and the newsletter must
look identical regardless of network timing.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

from devdigest.content.models import SECTION_ORDER, ContentFragment, Section, placeholder_for
from devdigest.content.providers import ContentProvider
from devdigest.observability.logging import get_logger

logger = get_logger(__name__)

SECTION_SEPARATOR = "\n\n"


def _section_key(section: str) -> str:
    return section.value if isinstance(section, Section) else str(section)


class Aggregator:
    """Concatenates fragments under a fixed section order."""

    def __init__(self, section_order: Sequence[str] = SECTION_ORDER):
        self.section_order = [_section_key(s) for s in section_order]

    async def collect(self, providers: Iterable[ContentProvider]) -> list[ContentFragment]:
        """
        Fetch all providers concurrently.

        Returned order is irrelevant; aggregate() reorders by section. Provider
        failures are already folded into fallback fragments by fetch().
        """
        return list(await asyncio.gather(*(p.fetch() for p in providers)))

    def aggregate(self, fragments: Iterable[ContentFragment]) -> str:
        """
        Compose the newsletter markdown.

        - Fragments appear in ``section_order``
        - A configured section with no fragment gets its placeholder text
        - Sections outside the configured order follow, sorted by identifier
        - When one section has several fragments, they keep their input order

        Never raises.
        """
        by_section: dict[str, list[ContentFragment]] = {}
        for fragment in fragments:
            by_section.setdefault(fragment.section_id, []).append(fragment)

        parts: list[str] = []
        for section in self.section_order:
            found = by_section.pop(section, None)
            if not found:
                logger.warning("No fragment for section %s, using placeholder", section)
                parts.append(placeholder_for(section))
                continue
            parts.extend(f.text for f in found)

        for section in sorted(by_section):
            parts.extend(f.text for f in by_section[section])

        return SECTION_SEPARATOR.join(part.strip() for part in parts if part.strip())

    def order(self, fragments: Iterable[ContentFragment]) -> tuple[ContentFragment, ...]:
        """Fragments sorted the same way aggregate() lays them out."""
        rank = {section: i for i, section in enumerate(self.section_order)}
        indexed = list(enumerate(fragments))
        indexed.sort(
            key=lambda item: (
                rank.get(item[1].section_id, len(rank)),
                item[1].section_id if item[1].section_id not in rank else "",
                item[0],
            )
        )
        return tuple(fragment for _, fragment in indexed)
