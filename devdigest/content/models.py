"""
Content fragment types shared by providers, the aggregator and the renderer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Section(str, Enum):
    """Newsletter section identifiers."""

    NEWS = "news"
    BODY = "body"


# Order sections appear in the composed newsletter, regardless of fetch timing
SECTION_ORDER: tuple[Section, ...] = (Section.NEWS, Section.BODY)

NEWS_FALLBACK_TEXT = "## Technology News\n\nNo news available this week."
BODY_FALLBACK_TEXT = (
    "## Error generating content\n\n"
    "We apologize, an error occurred while generating this week's content."
)

# Placeholder used when a section has no provider output at all
DEFAULT_PLACEHOLDERS: dict[str, str] = {
    Section.NEWS.value: NEWS_FALLBACK_TEXT,
    Section.BODY.value: BODY_FALLBACK_TEXT,
}
GENERIC_PLACEHOLDER = "No content available this cycle."


@dataclass(frozen=True)
class ContentFragment:
    """One named section of markdown produced by exactly one provider."""

    section: str
    text: str
    provider: str = "unknown"
    is_fallback: bool = False

    @property
    def section_id(self) -> str:
        return self.section.value if isinstance(self.section, Section) else str(self.section)


def placeholder_for(section: str) -> str:
    key = section.value if isinstance(section, Section) else str(section)
    return DEFAULT_PLACEHOLDERS.get(key, GENERIC_PLACEHOLDER)
