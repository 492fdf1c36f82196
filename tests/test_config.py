from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from usage_capture.config import CaptureSettings, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_match_collector_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("MODEL", "TIMEOUT_SECS", "SLEEP_BOOT", "SLEEP_AFTER_USAGE", "SESSION_TIMEOUT_HOURS"):
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"USAGE_CAPTURE_{name}", raising=False)

    settings = CaptureSettings()

    assert settings.model == "sonnet"
    assert settings.boot_timeout == 10
    assert settings.boot_poll_interval == 0.4
    assert settings.sleep_after_usage == 1.2
    assert settings.session_lifetime_seconds == 5 * 3600
    assert settings.scrape_attempts == 3


def test_legacy_environment_names(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MODEL", "opus")
    monkeypatch.setenv("TIMEOUT_SECS", "20")
    monkeypatch.setenv("WORKDIR", str(tmp_path))
    monkeypatch.setenv("SESSION_TIMEOUT_HOURS", "2")

    settings = CaptureSettings()

    assert settings.model == "opus"
    assert settings.boot_timeout == 20
    assert settings.workdir == str(tmp_path)
    assert settings.session_lifetime_seconds == 7200


def test_prefixed_names_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MODEL", "opus")
    monkeypatch.setenv("USAGE_CAPTURE_MODEL", "haiku")

    assert CaptureSettings().model == "haiku"


def test_pattern_paths_split_on_pathsep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USAGE_CAPTURE_PATTERN_PATHS", os.pathsep.join(["/a.yaml", "/b"]))

    assert CaptureSettings().pattern_paths == (Path("/a.yaml"), Path("/b"))


def test_invalid_log_level_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USAGE_CAPTURE_LOG_LEVEL", "chatty")

    with pytest.raises(ValidationError):
        CaptureSettings()


def test_non_positive_timeout_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USAGE_CAPTURE_TIMEOUT_SECS", "0")

    with pytest.raises(ValidationError):
        CaptureSettings()


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
