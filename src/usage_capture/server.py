"""FastMCP server exposing the usage capture engine."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastmcp import FastMCP

from . import __version__
from .capture import CaptureEngine
from .cli import configure_logging
from .config import CaptureSettings, get_settings
from .patterns import PatternLoadError
from .tools import register_tools


def create_server(
    settings: Optional[CaptureSettings] = None,
    engine: CaptureEngine | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with the capture tools and a status resource."""

    settings = settings or get_settings()
    engine = engine or CaptureEngine(settings)

    pattern_metadata: dict[str, object] = {
        "overrides": [str(path) for path in settings.pattern_paths],
        "version": None,
        "error": None,
    }
    try:
        pattern_metadata["version"] = engine.patterns.version
    except PatternLoadError as exc:
        pattern_metadata["error"] = str(exc)

    server = FastMCP(
        name="Claude Usage Capture",
        version=__version__,
        instructions=(
            "Reads Claude CLI rate-limit usage by driving its /usage dialog inside a "
            "reusable tmux session. Call capture_usage at most every few minutes; each "
            "call takes several seconds."
        ),
    )

    handles = register_tools(server, engine=engine, settings=settings)

    @server.resource(
        "resource://usage-capture/status",
        name="usage_capture_status",
        description="Runtime status of the usage capture server and its dependencies.",
        mime_type="application/json",
        tags={"status", "health"},
    )
    def status_resource() -> str:
        """Return a JSON string summarizing configuration and dependency availability."""

        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            "dependencies": {
                "tmux": engine.probe.locate("tmux"),
                "claude": engine.probe.locate("claude"),
            },
            "settings": {
                "model": settings.model,
                "boot_timeout": settings.boot_timeout,
                "session_timeout_hours": settings.session_timeout_hours,
                "scrape_attempts": settings.scrape_attempts,
                "state_dir": str(settings.state_dir),
            },
            "patterns": pattern_metadata,
        }
        return json.dumps(payload)

    setattr(server, "engine", engine)
    setattr(server, "pattern_metadata", pattern_metadata)
    setattr(server, "tool_handles", handles)
    return server


def main() -> None:
    """Entry point for running the usage capture MCP server."""

    settings = get_settings()
    configure_logging(settings.log_level)

    engine = CaptureEngine(settings)
    server = create_server(settings, engine)
    logging.getLogger(__name__).info(
        "Launching usage capture MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "tmux_available": engine.probe.has_dependency("tmux"),
            "claude_available": engine.probe.has_dependency("claude"),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
