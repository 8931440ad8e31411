"""
Renderer - markdown digest to styled HTML e-mail.

Pure, deterministic transform: the same markdown renders to the same document,
apart from the footer year. Provider output is untrusted (LLM text, news
descriptions), so the converted HTML is sanitized before it is embedded, and
markdown that fails to convert is shown literally instead of aborting the cycle.
"""

from __future__ import annotations

import html
import re
from collections.abc import Callable
from datetime import date
from pathlib import Path

import bleach
import markdown
from bs4 import BeautifulSoup
from jinja2 import Environment
from markupsafe import Markup

from devdigest.infrastructure.settings import UNSUBSCRIBE_URL, WEB_VERSION_URL
from devdigest.observability.logging import get_logger
from devdigest.observability.telemetry import counter
from devdigest.templates import build_environment, render_template

logger = get_logger(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]
NEWSLETTER_TEMPLATE = "newsletter.html"
NEWSLETTER_TITLE = "Development Newsletter"

# Elements dropped together with their contents before allow-listing
_UNSAFE_TAGS = ["script", "style", "iframe", "object", "embed", "form", "link", "meta", "noscript", "template"]

ALLOWED_TAGS = [
    "p", "br", "hr", "h1", "h2", "h3", "h4", "h5", "h6",
    "a", "img", "strong", "em", "b", "i", "del", "sup", "sub",
    "ul", "ol", "li", "blockquote", "pre", "code",
    "table", "thead", "tbody", "tr", "th", "td",
]
ALLOWED_ATTRIBUTES = {
    "a": ["href", "title"],
    "img": ["src", "alt", "title", "width", "height"],
    "code": ["class"],
    "th": ["align"],
    "td": ["align"],
}
ALLOWED_PROTOCOLS = ["http", "https", "mailto"]

_cleaner = bleach.Cleaner(
    tags=ALLOWED_TAGS,
    attributes=ALLOWED_ATTRIBUTES,
    protocols=ALLOWED_PROTOCOLS,
    strip=True,
    strip_comments=True,
)


def markdown_to_html(source: str) -> str:
    """
    Convert markdown to sanitized HTML.

    Falls back to the escaped source in a <pre> block if conversion or
    sanitizing raises, so malformed markup never blocks delivery.
    """
    try:
        converted = markdown.markdown(source, extensions=MARKDOWN_EXTENSIONS)
        return sanitize_html(converted)
    except Exception as e:
        logger.warning("Markdown conversion failed, rendering literally: %s", e)
        counter("renderer.literal_fallback")
        return render_literal(source)


def render_literal(source: str) -> str:
    return f"<pre>{html.escape(source)}</pre>"


def sanitize_html(fragment: str) -> str:
    """
    Reduce provider HTML to an allow-list of tags, attributes and URL schemes.

    Script-like elements are removed with their text first; bleach would
    otherwise strip the tag but keep its body as visible text.
    """
    soup = BeautifulSoup(fragment, "html.parser")
    for tag in soup(_UNSAFE_TAGS):
        tag.decompose()
    return _cleaner.clean(str(soup))


def html_to_text(document: str) -> str:
    """Plaintext alternative for the multipart e-mail."""
    if not document:
        return ""

    soup = BeautifulSoup(document, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()

    text = soup.get_text(separator="\n")

    # Collapse whitespace: strip each line, at most one blank line in a row
    lines = [line.strip() for line in text.splitlines()]
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def build_subject(cycle_date: date) -> str:
    return f"{NEWSLETTER_TITLE} - {cycle_date.isoformat()}"


class Renderer:
    """Wraps converted markdown in the newsletter e-mail template."""

    def __init__(
        self,
        templates_path: Path | None = None,
        unsubscribe_url: str = UNSUBSCRIBE_URL,
        web_version_url: str = WEB_VERSION_URL,
        clock: Callable[[], date] = date.today,
    ):
        self._environment: Environment | None = (
            build_environment(templates_path) if templates_path else None
        )
        self.unsubscribe_url = unsubscribe_url
        self.web_version_url = web_version_url
        self.clock = clock

    def render(self, source: str, today: date | None = None) -> str:
        """
        Render markdown into the full HTML e-mail document.

        Args:
            source: Aggregated newsletter markdown
            today: Date used for the footer year (defaults to the renderer clock)

        Returns:
            Complete HTML document
        """
        today = today or self.clock()
        content = markdown_to_html(source)
        return render_template(
            NEWSLETTER_TEMPLATE,
            {
                "title": NEWSLETTER_TITLE,
                "content": Markup(content),
                "year": today.year,
                "unsubscribe_url": self.unsubscribe_url,
                "web_version_url": self.web_version_url,
            },
            environment=self._environment,
        )

    def render_text(self, document: str) -> str:
        return html_to_text(document)
