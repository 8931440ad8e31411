"""Centralized configuration for the devdigest pipeline.

Re-exports everything from devdigest.infrastructure.settings so callers have a
single import point, then adds typed constants for content providers, the
delivery loop, and the weekly schedule. Environment variable overrides use safe
defaults so the service starts without extra env configuration.
"""

from __future__ import annotations

import os

from devdigest.infrastructure.settings import *  # noqa: F401, F403

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Content Providers ---
PROVIDER_TIMEOUT_SECONDS: float = float(os.getenv("DEVDIGEST_PROVIDER_TIMEOUT", "30.0"))
NEWS_CATEGORY: str = os.getenv("DEVDIGEST_NEWS_CATEGORY", "technology")
NEWS_LANGUAGE: str = os.getenv("DEVDIGEST_NEWS_LANGUAGE", "en")
NEWS_MAX_ARTICLES: int = int(os.getenv("DEVDIGEST_NEWS_MAX_ARTICLES", "3"))
CONTENT_LANGUAGE: str = os.getenv("DEVDIGEST_CONTENT_LANGUAGE", "English")

# --- LLM ---
LLM_TIMEOUT_SECONDS: int = int(os.getenv("DEVDIGEST_LLM_TIMEOUT", "60"))
LLM_MAX_RETRIES: int = int(os.getenv("DEVDIGEST_LLM_MAX_RETRIES", "3"))
LLM_RETRY_MAX_WAIT: int = int(os.getenv("DEVDIGEST_LLM_RETRY_MAX_WAIT", "10"))

# The AI provider bound must cover every retried call plus the waits between them
AI_PROVIDER_TIMEOUT_SECONDS: float = float(
    os.getenv(
        "DEVDIGEST_AI_PROVIDER_TIMEOUT",
        str(LLM_MAX_RETRIES * LLM_TIMEOUT_SECONDS + (LLM_MAX_RETRIES - 1) * LLM_RETRY_MAX_WAIT + 5),
    )
)

# --- Delivery ---
DELIVERY_MAX_ATTEMPTS: int = int(os.getenv("DEVDIGEST_DELIVERY_MAX_ATTEMPTS", "3"))
DELIVERY_BASE_DELAY: float = float(os.getenv("DEVDIGEST_DELIVERY_BASE_DELAY", "1.0"))
DELIVERY_MAX_DELAY: float = float(os.getenv("DEVDIGEST_DELIVERY_MAX_DELAY", "60.0"))
DELIVERY_CONCURRENCY: int = int(os.getenv("DEVDIGEST_DELIVERY_CONCURRENCY", "5"))
DELIVERY_ATTEMPT_TIMEOUT: float = float(os.getenv("DEVDIGEST_DELIVERY_ATTEMPT_TIMEOUT", "60.0"))

# --- Schedule (Monday 09:00 local time) ---
SCHEDULE_ENABLED: bool = os.getenv("DEVDIGEST_SCHEDULE_ENABLED", "true").lower() == "true"
SCHEDULE_WEEKDAY: int = int(os.getenv("DEVDIGEST_SCHEDULE_WEEKDAY", "0"))
SCHEDULE_HOUR: int = int(os.getenv("DEVDIGEST_SCHEDULE_HOUR", "9"))
SCHEDULE_MINUTE: int = int(os.getenv("DEVDIGEST_SCHEDULE_MINUTE", "0"))
