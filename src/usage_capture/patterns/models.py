"""Models describing what the Claude TUI looks like on screen."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator


def _check_regex(value: str) -> str:
    try:
        re.compile(value)
    except re.error as exc:
        raise ValueError(f"invalid regular expression {value!r}: {exc}") from exc
    return value


class StatusLabels(BaseModel):
    """Label prefixes on the Status tab of the ``/usage`` dialog."""

    version: str = Field(..., description="Label preceding the CLI version.")
    login_method: str = Field(..., description="Label preceding the login method.")
    organization: str = Field(..., description="Label preceding the organization name.")
    mcp_servers: str = Field(..., description="Label preceding the MCP server list.")

    @field_validator("*")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Status labels must not be empty")
        return value


class BucketHeadings(BaseModel):
    """Regexes locating each usage bucket heading on the Usage tab."""

    session_5h: str = Field(..., description="Heading of the 5-hour session bucket.")
    week_all_models: str = Field(..., description="Heading of the weekly all-models bucket.")
    week_opus: str = Field(..., description="Heading of the optional weekly Opus bucket.")

    @field_validator("*")
    @classmethod
    def _compile(cls, value: str) -> str:
        return _check_regex(value)


class NavigationPlan(BaseModel):
    """Keystroke script that opens the usage dialog and moves between its tabs."""

    command: str = Field(default="usage", description="Slash command opening the dialog.")
    command_prefix: str = Field(default="/", description="Key that opens the command palette.")
    prefix_settle: float = Field(default=0.2, ge=0)
    command_settle: float = Field(default=0.3, ge=0)
    dialog_load_settle: float = Field(
        default=1.0, ge=0, description="Extra pause after the dialog-opening settle delay."
    )
    status_tab_offset: int = Field(
        default=-2,
        description="Tab stops from the default tab to Status; negative moves backward.",
    )
    tab_settle: float = Field(default=0.5, ge=0)
    forward_key: str = Field(default="Tab")
    backward_key: str = Field(default="BTab")
    dismiss_keys: list[str] = Field(
        default_factory=lambda: ["Escape"],
        description="Keys closing a dialog left open by a previous capture (reused sessions).",
    )
    dismiss_settle: float = Field(default=0.5, ge=0)

    @field_validator("command")
    @classmethod
    def _normalize_command(cls, value: str) -> str:
        normalized = value.strip().lstrip("/")
        if not normalized:
            raise ValueError("Navigation command must not be empty")
        return normalized


class ScreenPatterns(BaseModel):
    """Versioned table of every signature, label and heading the scraper relies on."""

    version: int = Field(..., description="Revision of the pattern table.")
    trust_prompt: list[str] = Field(..., description="Workspace trust prompt signatures.")
    trust_accept_keys: list[str] = Field(..., description="Keys accepting the trust prompt.")
    trust_settle: float = Field(default=1.0, ge=0)
    boot_ready: list[str] = Field(..., description="Signatures of a booted, input-ready TUI.")
    auth_required: list[str] = Field(..., description="Signatures of a login/auth prompt.")
    health: list[str] = Field(..., description="Signatures of a live session worth reusing.")
    loading: list[str] = Field(..., description="Signatures of usage data still loading.")
    version_banner: str = Field(..., description="Regex capturing the version from the banner.")
    status_labels: StatusLabels
    status_glyphs: list[str] = Field(
        default_factory=list, description="Inline status glyphs stripped from MCP names."
    )
    border_chars: str = Field(default="│┃", description="Box-drawing borders trimmed from values.")
    section_heading: str = Field(..., description="Regex matching any usage section heading.")
    buckets: BucketHeadings
    percent_used: str = Field(..., description="Regex capturing the integer percentage used.")
    resets: str = Field(..., description="Regex capturing the reset description.")
    bucket_lookahead: int = Field(default=4, ge=0, le=20)
    navigation: NavigationPlan = Field(default_factory=NavigationPlan)

    @field_validator(
        "trust_prompt", "boot_ready", "auth_required", "health", "loading", mode="after"
    )
    @classmethod
    def _compile_all(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("Signature lists must contain at least one pattern")
        return [_check_regex(item) for item in value]

    @field_validator("version_banner", "section_heading", "percent_used", "resets")
    @classmethod
    def _compile_one(cls, value: str) -> str:
        return _check_regex(value)

    @field_validator("percent_used", "resets", "version_banner")
    @classmethod
    def _require_group(cls, value: str) -> str:
        if re.compile(value).groups < 1:
            raise ValueError(f"pattern {value!r} must define a capture group")
        return value

    def compiled(self, field: str) -> list[re.Pattern[str]]:
        """Return the compiled regexes of a signature list field."""

        return [re.compile(item) for item in getattr(self, field)]


__all__ = ["BucketHeadings", "NavigationPlan", "ScreenPatterns", "StatusLabels"]
