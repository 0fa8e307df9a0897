"""Shared fixtures for the Immich updater tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from immich_updater.config import Settings

# Environment variables that would leak into Settings() during tests.
_SETTINGS_ENV = (
    "IMMICH_API_KEY",
    "API_KEY",
    "DOCKER_COMPOSE_PATH",
    "IMMICH_PATH",
    "IMMICH_LOCALHOST",
    "NOTIFICATION_METHOD",
    "GOTIFY_URL",
    "GOTIFY_TOKEN",
    "NOTIFICATION_EMAIL",
    "SMTP_HOST",
    "SMTP_PORT",
    "EMAIL_SENDER",
    "RELEASE_URL",
    "MIN_DAYS_SINCE_RELEASE",
    "HTTP_TIMEOUT",
    "LEGACY_KEYWORD_SCAN",
    "PRUNE_IMAGES",
    "ALLOW_ROOT",
    "LOG_FILE",
    "LOCK_FILE",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the host environment out of Settings."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Factory for Settings with safe test values plus overrides."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "immich_api_key": "test-api-key",
            "docker_compose_path": "/usr/bin/docker",
            "immich_path": str(tmp_path),
            "immich_localhost": "127.0.0.1:2283",
            "notification_method": "none",
            "log_file": tmp_path / "update_log.txt",
            "lock_file": tmp_path / "update.lock",
            "_env_file": None,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a shell-style settings file into tmp_path."""

    def _write(**values: str) -> Path:
        path = tmp_path / ".immich.conf"
        lines = [f'{key.upper()}="{value}"' for key, value in values.items()]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
