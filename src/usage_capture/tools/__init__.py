"""Tool registration for the usage capture MCP server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP

from ..capture import CaptureEngine, CaptureFailure, to_payload
from ..config import CaptureSettings
from ..errors import CaptureError


@dataclass(slots=True)
class ToolHandles:
    capture_usage: Any
    session_info: Any
    kill_session: Any


def register_tools(
    server: FastMCP,
    *,
    engine: CaptureEngine,
    settings: CaptureSettings,
) -> ToolHandles:
    """Register the capture tools on the server."""

    async def _capture_usage(
        workdir: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Capture Claude /usage data for a workspace and return the JSON envelope."""

        result = await engine.run(workdir if workdir is not None else settings.workdir)
        payload = to_payload(result)

        if result.ok:
            _emit_log(
                context,
                "info",
                "Captured usage",
                extra={
                    "session_5h": payload["session_5h"],
                    "week_all_models": payload["week_all_models"],
                },
            )
        else:
            _emit_log(
                context,
                "warning",
                "Usage capture failed",
                extra={"error": payload["error"], "hint": payload["hint"]},
            )
        return payload

    async def _session_info(
        workdir: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Describe the reusable tmux session for a workspace."""

        try:
            snapshot = await engine.session_info(workdir if workdir is not None else settings.workdir)
        except CaptureError as exc:
            return to_payload(CaptureFailure.from_error(exc))

        _emit_log(context, "debug", "Described session", extra={"session": snapshot.name})
        return {"ok": True, **snapshot.as_dict()}

    async def _kill_session(
        workdir: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Destroy the reusable tmux session for a workspace."""

        try:
            name = await engine.kill(workdir if workdir is not None else settings.workdir)
        except CaptureError as exc:
            return to_payload(CaptureFailure.from_error(exc))

        _emit_log(context, "warning", "Session destroyed", extra={"session": name})
        return {"ok": True, "session": name}

    tool_capture = server.tool(
        name="capture_usage",
        description=(
            "Open the Claude CLI /usage dialog in a reusable tmux session and return "
            "session, weekly and Opus usage percentages with reset times."
        ),
    )(_capture_usage)

    tool_info = server.tool(
        name="session_info",
        description="Report whether the workspace's tmux session exists and may be reused.",
    )(_session_info)

    tool_kill = server.tool(
        name="kill_session",
        description="Kill the workspace's tmux session and forget its timestamp.",
    )(_kill_session)

    return ToolHandles(
        capture_usage=tool_capture,
        session_info=tool_info,
        kill_session=tool_kill,
    )


__all__ = ["register_tools", "ToolHandles"]

logger = logging.getLogger(__name__)


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)
