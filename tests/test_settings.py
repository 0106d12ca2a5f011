"""
Tests for `config/settings.py` and `config/logging_setup.py`.
"""

from __future__ import annotations

import logging

import pytest

from config.logging_setup import configure_logging
from config.settings import Settings, load_settings


def test_load_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", " Memory ")
    monkeypatch.setenv("UNLOCK_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("PAYMENT_WEBHOOK_SECRET", "whsec")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://example.org")

    settings = load_settings()

    assert settings.store_backend == "memory"
    assert settings.unlock_max_attempts == 5
    assert settings.payment_webhook_secret == "whsec"
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ("http://localhost:3000", "https://example.org")


def test_empty_webhook_secret_is_unset(monkeypatch) -> None:
    monkeypatch.setenv("PAYMENT_WEBHOOK_SECRET", "")

    assert load_settings().payment_webhook_secret is None


def test_settings_validation() -> None:
    with pytest.raises(ValueError):
        Settings(store_backend="sqlite")
    with pytest.raises(ValueError):
        Settings(unlock_max_attempts=0)


def test_configure_logging_is_idempotent() -> None:
    configure_logging("DEBUG")
    configure_logging("INFO")

    root = logging.getLogger()
    ours = [h for h in root.handlers if getattr(h, "_credit_economy_handler", False)]
    assert len(ours) == 1
    assert root.level == logging.INFO
