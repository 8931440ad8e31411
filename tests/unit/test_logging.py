from __future__ import annotations

import logging

from devdigest.observability.logging import PACKAGE_LOGGER, get_logger, level_from_env


def test_loggers_live_under_package_tree():
    assert get_logger("devdigest.pipeline").name == "devdigest.pipeline"
    assert get_logger("scripts.backfill").name == "devdigest.scripts.backfill"
    assert get_logger(PACKAGE_LOGGER).name == PACKAGE_LOGGER


def test_level_from_env(monkeypatch):
    monkeypatch.setenv("DEVDIGEST_LOG_LEVEL", "debug")
    assert level_from_env() == logging.DEBUG

    monkeypatch.setenv("DEVDIGEST_LOG_LEVEL", "chatty")
    assert level_from_env() == logging.INFO


def test_noisy_client_loggers_are_quieted():
    get_logger("devdigest.renderer")

    assert logging.getLogger("urllib3").level == logging.WARNING
