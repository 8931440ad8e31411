"""
Gemini Model Manager - Singleton for shared model instance.

The AI body provider (and anything added later) shares one GenerativeModel so
Vertex AI is initialized once per process.
"""

from __future__ import annotations

import os
from functools import lru_cache

from devdigest.errors import DevDigestError
from devdigest.infrastructure.settings import GEMINI_LOCATION, GEMINI_MODEL, GOOGLE_CLOUD_PROJECT
from devdigest.observability.logging import get_logger

logger = get_logger(__name__)


class GeminiInitializationError(DevDigestError, RuntimeError):
    """Raised when Gemini model cannot be initialized."""


@lru_cache(maxsize=1)
def get_gemini_model():
    """
    Get or create shared Gemini model instance.

    Uses @lru_cache for a thread-safe singleton.

    Returns:
        GenerativeModel: Shared Gemini model

    Raises:
        GeminiInitializationError: If model cannot be initialized
    """
    # Read env vars fresh (settings may be stale if loaded before dotenv)
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    location = os.getenv("GEMINI_LOCATION", "") or GEMINI_LOCATION or "us-central1"
    model_name = os.getenv("GEMINI_MODEL", "") or GEMINI_MODEL

    if not project:
        raise GeminiInitializationError("GOOGLE_CLOUD_PROJECT not set")

    try:
        import vertexai
        from vertexai.generative_models import GenerativeModel

        vertexai.init(project=project, location=location)
        model = GenerativeModel(model_name)
    except Exception as e:
        logger.error("Failed to initialize Gemini model: %s", e)
        raise GeminiInitializationError(f"Failed to initialize Gemini: {e}") from e

    logger.info(
        "Initialized Gemini model (Vertex AI): project=%s, location=%s, model=%s",
        project,
        location,
        model_name,
    )
    return model


def clear_model_cache() -> None:
    """
    Clear the cached model instance.

    Useful for testing or when reconfiguration is needed.
    """
    get_gemini_model.cache_clear()
    logger.info("Cleared Gemini model cache")
