"""Health check endpoint.

Reports service status, version, SMTP/LLM/news credential readiness (presence
only, no API calls) and in-memory pipeline counters.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request

from devdigest.config import APP_VERSION, NEWS_API_KEY
from devdigest.errors import RecipientStoreError
from devdigest.observability.telemetry import get_counters

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    state = request.app.state
    try:
        subscribers: int | None = await state.store.count()
        store_status = "ok"
    except RecipientStoreError:
        subscribers = None
        store_status = "unreadable"

    transport = state.pipeline.dispatcher.transport
    scheduler = getattr(state, "scheduler", None)

    return {
        "status": "healthy" if store_status == "ok" else "degraded",
        "service": "devdigest",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "store": {"status": store_status, "subscribers": subscribers},
        "smtp": transport.get_config_status() if hasattr(transport, "get_config_status") else None,
        "llm": {"ready": bool(os.getenv("GOOGLE_CLOUD_PROJECT"))},
        "news": {"ready": bool(NEWS_API_KEY)},
        "schedule": scheduler.describe() if scheduler is not None else None,
        "counters": get_counters(),
    }
