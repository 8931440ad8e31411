"""
Content Providers - pluggable sources of newsletter sections.

Each provider produces exactly one ContentFragment per cycle. Providers never
raise past fetch(): network errors, quota exhaustion, timeouts and malformed
responses are logged, counted, and turned into a fallback fragment carrying a
human-readable placeholder, so one provider's outage cannot block the cycle.

Providers:
- AiBodyProvider: newsletter body generated by Gemini (Vertex AI)
- NewsHeadlineProvider: technology headlines from NewsAPI
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any

import requests

from devdigest.config import (
    AI_PROVIDER_TIMEOUT_SECONDS,
    CONTENT_LANGUAGE,
    NEWS_API_KEY,
    NEWS_API_URL,
    NEWS_CATEGORY,
    NEWS_LANGUAGE,
    NEWS_MAX_ARTICLES,
    PROVIDER_TIMEOUT_SECONDS,
)
from devdigest.content.models import (
    BODY_FALLBACK_TEXT,
    NEWS_FALLBACK_TEXT,
    ContentFragment,
    Section,
)
from devdigest.errors import ProviderError
from devdigest.llm.prompts import get_newsletter_prompt
from devdigest.observability.logging import get_logger
from devdigest.observability.telemetry import counter, log_event, time_block

logger = get_logger(__name__)


class ContentProvider(ABC):
    """
    Base class for newsletter content sources.

    Subclasses implement _fetch() and may raise anything; fetch() is the
    failure boundary.
    """

    section: Section
    name: str = "provider"
    fallback_text: str = "No content available this cycle."

    def __init__(self, timeout: float = PROVIDER_TIMEOUT_SECONDS):
        self.timeout = timeout

    @abstractmethod
    async def _fetch(self) -> str:
        """Return raw markdown for this provider's section."""

    async def fetch(self) -> ContentFragment:
        """
        Fetch this provider's fragment.

        Returns:
            ContentFragment with provider output, or a fallback fragment if the
            provider failed for any reason

        Side Effects:
            - Network call (provider-specific)
            - Logs and counts provider failures
        """
        try:
            with time_block(f"provider.{self.name}.latency"):
                text = await asyncio.wait_for(self._fetch(), timeout=self.timeout)
            if not text or not text.strip():
                raise ProviderError("empty response")
        except asyncio.TimeoutError:
            return self._fallback(f"timed out after {self.timeout}s")
        except Exception as e:
            return self._fallback(str(e) or type(e).__name__)

        counter(f"provider.{self.name}.ok")
        return ContentFragment(section=self.section, text=text.strip(), provider=self.name)

    def _fallback(self, reason: str) -> ContentFragment:
        logger.error("Content provider %s failed, using fallback: %s", self.name, reason)
        counter(f"provider.{self.name}.error")
        section = getattr(self.section, "value", self.section)
        log_event("provider.fallback", provider=self.name, section=section, error=reason)
        return ContentFragment(
            section=self.section,
            text=self.fallback_text,
            provider=self.name,
            is_fallback=True,
        )


class AiBodyProvider(ContentProvider):
    """Main newsletter body written by Gemini from a structured prompt."""

    section = Section.BODY
    name = "ai_body"
    fallback_text = BODY_FALLBACK_TEXT

    def __init__(
        self,
        language: str = CONTENT_LANGUAGE,
        clock: Callable[[], date] = date.today,
        llm_call: Callable[..., Awaitable[str]] | None = None,
        timeout: float = AI_PROVIDER_TIMEOUT_SECONDS,
    ):
        super().__init__(timeout=timeout)
        self.language = language
        self.clock = clock
        self._llm_call = llm_call

    async def _fetch(self) -> str:
        prompt = get_newsletter_prompt(date=self.clock().isoformat(), language=self.language)
        logger.info("Generating content with AI...")

        llm_call = self._llm_call
        if llm_call is None:
            from devdigest.llm.retry import call_llm

            llm_call = call_llm

        text = await llm_call(prompt, counter_prefix=f"provider.{self.name}")
        if not isinstance(text, str):
            raise ProviderError(f"malformed LLM response: {type(text).__name__}")
        return text


class NewsHeadlineProvider(ContentProvider):
    """Top technology headlines from NewsAPI, first N articles only."""

    section = Section.NEWS
    name = "news"
    fallback_text = NEWS_FALLBACK_TEXT

    def __init__(
        self,
        api_key: str | None = NEWS_API_KEY,
        category: str = NEWS_CATEGORY,
        language: str = NEWS_LANGUAGE,
        max_articles: int = NEWS_MAX_ARTICLES,
        url: str = NEWS_API_URL,
        session: requests.Session | None = None,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ):
        super().__init__(timeout=timeout)
        self.api_key = api_key
        self.category = category
        self.language = language
        self.max_articles = max_articles
        self.url = url
        self.session = session or requests.Session()

    async def _fetch(self) -> str:
        if not self.api_key:
            raise ProviderError("NEWS_API_KEY not set")

        logger.info("Fetching tech news...")
        data = await asyncio.to_thread(self._get)

        articles = data.get("articles") if isinstance(data, dict) else None
        if not isinstance(articles, list):
            raise ProviderError("malformed news response: missing 'articles'")
        if not articles:
            raise ProviderError("news response contained no articles")

        return format_headlines(articles[: self.max_articles])

    def _get(self) -> Any:
        response = self.session.get(
            self.url,
            params={
                "category": self.category,
                "language": self.language,
                "apiKey": self.api_key,
            },
            timeout=self.timeout,
        )
        if not 200 <= response.status_code < 300:
            raise ProviderError(
                f"news API returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"news API returned non-JSON body: {e}") from e


def format_headlines(articles: list[dict[str, Any]]) -> str:
    """Render headline+description+URL triples as the news section markdown."""
    lines = ["## Technology News", ""]
    for article in articles:
        if not isinstance(article, dict):
            continue
        title = (article.get("title") or "Untitled").strip()
        url = (article.get("url") or "").strip()
        description = (article.get("description") or "No description available").strip()

        lines.append(f"### [{title}]({url})" if url else f"### {title}")
        lines.append(description)
        lines.append("")

    return "\n".join(lines).strip()
