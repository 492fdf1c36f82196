"""Configuration management for the usage collector."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated
import os

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class CaptureSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file.

    The bare names (``MODEL``, ``TIMEOUT_SECS``...) are the ones the editor
    integration already exports; the prefixed names win when both are set.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    model: str = Field(
        default="sonnet", validation_alias=AliasChoices("USAGE_CAPTURE_MODEL", "MODEL")
    )
    boot_timeout: float = Field(
        default=10.0, validation_alias=AliasChoices("USAGE_CAPTURE_TIMEOUT_SECS", "TIMEOUT_SECS")
    )
    boot_poll_interval: float = Field(
        default=0.4, validation_alias=AliasChoices("USAGE_CAPTURE_SLEEP_BOOT", "SLEEP_BOOT")
    )
    sleep_after_usage: float = Field(
        default=1.2,
        validation_alias=AliasChoices("USAGE_CAPTURE_SLEEP_AFTER_USAGE", "SLEEP_AFTER_USAGE"),
    )
    workdir: str | None = Field(
        default=None, validation_alias=AliasChoices("USAGE_CAPTURE_WORKDIR", "WORKDIR")
    )
    session_timeout_hours: float = Field(
        default=5.0,
        validation_alias=AliasChoices(
            "USAGE_CAPTURE_SESSION_TIMEOUT_HOURS", "SESSION_TIMEOUT_HOURS"
        ),
    )
    scrape_attempts: int = Field(default=3, validation_alias="USAGE_CAPTURE_SCRAPE_ATTEMPTS")
    scrape_delay: float = Field(default=2.0, validation_alias="USAGE_CAPTURE_SCRAPE_DELAY")
    pane_width: int = Field(default=120, validation_alias="USAGE_CAPTURE_PANE_WIDTH")
    pane_height: int = Field(default=32, validation_alias="USAGE_CAPTURE_PANE_HEIGHT")
    state_dir: Path = Field(default=Path("/tmp"), validation_alias="USAGE_CAPTURE_STATE_DIR")
    claude_path: str | None = Field(default=None, validation_alias="CLAUDE_PATH")
    tmux_path: str | None = Field(default=None, validation_alias="TMUX_PATH")
    pattern_paths: Annotated[tuple[Path, ...], NoDecode] = Field(
        default=(), validation_alias="USAGE_CAPTURE_PATTERN_PATHS"
    )
    lock_timeout: float = Field(default=0.0, validation_alias="USAGE_CAPTURE_LOCK_TIMEOUT")
    log_level: str = Field(default="INFO", validation_alias="USAGE_CAPTURE_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "USAGE_CAPTURE_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("pattern_paths", mode="before")
    @classmethod
    def _parse_pattern_paths(cls, value):
        if value is None or value == "":
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(Path(str(item)) for item in value)
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(os.pathsep) if part.strip()]
            return tuple(Path(part) for part in parts)
        raise TypeError(
            "USAGE_CAPTURE_PATTERN_PATHS must be a list of paths or a path-separated string"
        )

    @field_validator(
        "boot_timeout", "boot_poll_interval", "scrape_delay", "session_timeout_hours"
    )
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts, intervals and session lifetime must be > 0")
        return value

    @field_validator("sleep_after_usage", "lock_timeout")
    @classmethod
    def _validate_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("settle delays and lock timeout must be >= 0")
        return value

    @field_validator("scrape_attempts", "pane_width", "pane_height")
    @classmethod
    def _validate_count(cls, value: int) -> int:
        if value < 1:
            raise ValueError("scrape attempts and pane geometry must be >= 1")
        return value

    @property
    def session_lifetime_seconds(self) -> float:
        return self.session_timeout_hours * 3600


@lru_cache(maxsize=1)
def get_settings() -> CaptureSettings:
    """Return cached settings instance."""

    settings = CaptureSettings()
    settings.state_dir = settings.state_dir.expanduser()
    settings.pattern_paths = tuple(path.expanduser().resolve() for path in settings.pattern_paths)
    return settings


__all__ = ["CaptureSettings", "get_settings"]
