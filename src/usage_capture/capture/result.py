"""Result envelopes emitted once per capture."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator

from ..errors import EXIT_CODES, CaptureError


class UsageBucket(BaseModel):
    pct_used: int = Field(..., ge=0, le=100, description="Integer percentage of the window used.")
    resets: str = Field(default="", description="Reset description as rendered by the TUI.")

    @field_validator("resets")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class StatusInfo(BaseModel):
    version: str = "unknown"
    login_method: str = "unknown"
    organization: str = "N/A"
    mcp_servers: list[str] = Field(default_factory=list)


class CaptureSuccess(BaseModel):
    ok: Literal[True] = True
    source: str = "tmux-capture"
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: StatusInfo
    session_5h: UsageBucket
    week_all_models: UsageBucket
    week_opus: UsageBucket | None = None

    @property
    def exit_code(self) -> int:
        return 0


class CaptureFailure(BaseModel):
    ok: Literal[False] = False
    error: str
    hint: str

    @classmethod
    def from_error(cls, exc: CaptureError) -> "CaptureFailure":
        return cls(error=exc.code, hint=exc.hint)

    @property
    def exit_code(self) -> int:
        return EXIT_CODES.get(self.error, 1)


CaptureResult = Union[CaptureSuccess, CaptureFailure]


def to_payload(result: CaptureResult) -> dict[str, object]:
    return result.model_dump(mode="json")


def to_json(result: CaptureResult, *, indent: int | None = 2) -> str:
    """Serialize a capture result as the single JSON document on stdout."""

    return json.dumps(to_payload(result), indent=indent, ensure_ascii=False)


__all__ = [
    "CaptureFailure",
    "CaptureResult",
    "CaptureSuccess",
    "StatusInfo",
    "UsageBucket",
    "to_json",
    "to_payload",
]
