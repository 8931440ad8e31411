"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os
from pathlib import Path

# Project paths
DEVDIGEST_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DEVDIGEST_DATA_DIR", str(DEVDIGEST_ROOT / "data")))

# Environment
ENV = os.getenv("DEVDIGEST_ENV", "development")

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("PORT", os.getenv("API_PORT", "3000")))

# Persisted state
SUBSCRIBERS_FILE = Path(os.getenv("DEVDIGEST_SUBSCRIBERS_FILE", str(DATA_DIR / "subscribers.json")))
ARCHIVE_DIR = Path(os.getenv("DEVDIGEST_ARCHIVE_DIR", str(DATA_DIR / "archive")))

# Google Cloud / Gemini
GOOGLE_CLOUD_PROJECT = os.getenv("GOOGLE_CLOUD_PROJECT")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-001")
GEMINI_LOCATION = os.getenv("GEMINI_LOCATION", "us-central1")
GEMINI_MAX_TOKENS = int(os.getenv("GEMINI_MAX_TOKENS", "4000"))
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "1.0"))

# NewsAPI
NEWS_API_KEY = os.getenv("NEWS_API_KEY")
NEWS_API_URL = os.getenv("NEWS_API_URL", "https://newsapi.org/v2/top-headlines")

# SMTP
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", os.getenv("EMAIL_USER"))
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", os.getenv("EMAIL_PASSWORD"))
SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL", SMTP_USER or "")
SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "Development Newsletter")
SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "30"))

# Public links embedded in the e-mail footer
UNSUBSCRIBE_URL = os.getenv("DEVDIGEST_UNSUBSCRIBE_URL", "[unsubscribe_link]")
WEB_VERSION_URL = os.getenv("DEVDIGEST_WEB_VERSION_URL", "[web_version]")


def is_production() -> bool:
    """Check if running in production"""
    return ENV == "production"
