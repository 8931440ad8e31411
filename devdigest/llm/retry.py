"""Shared LLM call with retry logic.

Retries up to LLM_MAX_RETRIES times with exponential backoff on transient
Vertex AI failures (DeadlineExceeded, ServiceUnavailable, ResourceExhausted,
InternalServerError). Callers decide what a final failure means; the AI body
provider turns it into a fallback fragment.
"""

from __future__ import annotations

import asyncio

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from devdigest.config import LLM_MAX_RETRIES, LLM_RETRY_MAX_WAIT, LLM_TIMEOUT_SECONDS
from devdigest.infrastructure.settings import GEMINI_MAX_TOKENS, GEMINI_TEMPERATURE
from devdigest.llm.gemini import get_gemini_model
from devdigest.observability.logging import get_logger
from devdigest.observability.telemetry import counter

logger = get_logger(__name__)


@retry(
    stop=stop_after_attempt(LLM_MAX_RETRIES),
    wait=wait_exponential(multiplier=1, min=1, max=LLM_RETRY_MAX_WAIT),
    retry=retry_if_exception_type((TimeoutError, ConnectionError, OSError)),
    reraise=True,
)
async def call_llm(prompt: str, counter_prefix: str = "llm") -> str:
    """Call Gemini with retry and Vertex AI exception conversion.

    Args:
        prompt: The prompt to send to the model.
        counter_prefix: Telemetry counter prefix (e.g., "provider.ai_body").

    Returns:
        The model's response text.

    Raises:
        TimeoutError: On deadline exceeded (retryable).
        ConnectionError: On service unavailable or internal error (retryable).
        OSError: On resource exhausted / rate limited (retryable).
        Exception: On other errors (not retried, caller handles).
    """
    from google.api_core.exceptions import (
        DeadlineExceeded,
        InternalServerError,
        ResourceExhausted,
        ServiceUnavailable,
    )

    model = get_gemini_model()
    generation_config = {
        "temperature": GEMINI_TEMPERATURE,
        "max_output_tokens": GEMINI_MAX_TOKENS,
    }

    try:
        response = await asyncio.wait_for(
            model.generate_content_async(prompt, generation_config=generation_config),
            timeout=LLM_TIMEOUT_SECONDS,
        )
        return response.text
    except (DeadlineExceeded, asyncio.TimeoutError) as e:
        counter(f"{counter_prefix}.timeout")
        logger.warning("LLM call timed out after %ds", LLM_TIMEOUT_SECONDS)
        raise TimeoutError(f"LLM call timed out: {e}") from e
    except ServiceUnavailable as e:
        counter(f"{counter_prefix}.service_unavailable")
        logger.warning("LLM service unavailable, will retry: %s", e)
        raise ConnectionError(f"LLM service unavailable: {e}") from e
    except ResourceExhausted as e:
        counter(f"{counter_prefix}.rate_limited")
        logger.warning("LLM rate limited (429), will retry: %s", e)
        raise OSError(f"LLM rate limited: {e}") from e
    except InternalServerError as e:
        counter(f"{counter_prefix}.internal_error")
        logger.warning("LLM internal error (500), will retry: %s", e)
        raise ConnectionError(f"LLM internal error: {e}") from e
