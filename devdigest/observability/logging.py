"""
Process logging for devdigest.

Level and format apply to the ``devdigest`` logger tree only, so uvicorn and
pytest keep control of the root logger when they have configured it.
"""

from __future__ import annotations

import logging
import os
from typing import Final

PACKAGE_LOGGER: Final[str] = "devdigest"
DEFAULT_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# HTTP and Google client libraries log every request at INFO
NOISY_LOGGERS: Final[tuple[str, ...]] = ("urllib3", "google.auth", "google.api_core")

_configured: bool = False


def level_from_env(default: str = "INFO") -> int:
    name = os.getenv("DEVDIGEST_LOG_LEVEL", default).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | None = None, fmt: str | None = None) -> logging.Logger:
    """
    Configure the package logger once per process.

    A stream handler is added only when the root logger has none; otherwise
    records propagate to whatever handlers the host process installed.
    """
    global _configured

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level if level is not None else level_from_env())

    if _configured:
        return package_logger

    if not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(fmt or os.getenv("DEVDIGEST_LOG_FORMAT", DEFAULT_FORMAT), DATE_FORMAT)
        )
        package_logger.addHandler(handler)
        package_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Module logger under the devdigest tree."""
    if not _configured:
        configure_logging()
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
