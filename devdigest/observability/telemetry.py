"""
Lightweight telemetry helpers for the newsletter pipeline.

Nothing is shipped to an external metrics backend; events go to the log as
structured lines and counters/latencies are kept in memory so tests can assert
instrumentation and /health can report cycle statistics.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("devdigest.telemetry")

_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, list[float]] = {}


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Caller must redact recipient addresses.

    Side Effects:
        - Writes to logger (info level)
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and emit a debug log.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
        - Writes to logger (debug level)
    """
    value = _COUNTERS.get(name, 0) + increment
    _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _COUNTERS.get(name, 0)


def get_counters() -> dict[str, int]:
    return dict(_COUNTERS)


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Context manager for timing code blocks.

    Side Effects:
        - Appends to _LATENCIES dict (in-memory state)
        - Writes to logger (debug level) with timing
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("timing=%s seconds=%.6f", metric_name, elapsed)
        _LATENCIES.setdefault(metric_name, []).append(elapsed)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """Latency statistics (count, min, max, avg) for a metric."""
    samples = _LATENCIES.get(metric_name, [])
    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0}

    return {
        "count": len(samples),
        "min": min(samples),
        "max": max(samples),
        "avg": sum(samples) / len(samples),
    }


def reset() -> None:
    """
    Clear all counters and latencies (useful for tests).

    Side Effects:
        - Clears _COUNTERS and _LATENCIES dicts (in-memory state)
    """
    _COUNTERS.clear()
    _LATENCIES.clear()
