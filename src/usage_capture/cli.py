"""Command line entry point printing one JSON envelope on stdout."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, NoReturn

from pydantic import ValidationError

from .capture import CaptureEngine, CaptureFailure, to_json
from .config import CaptureSettings, get_settings
from .errors import CaptureError

logger = logging.getLogger(__name__)

_OVERRIDES = {
    "model": "model",
    "timeout": "boot_timeout",
    "poll_interval": "boot_poll_interval",
    "settle": "sleep_after_usage",
    "workdir": "workdir",
    "session_hours": "session_timeout_hours",
}


class CaptureArgumentParser(argparse.ArgumentParser):
    """Argument parser whose usage errors become a failure envelope on stdout."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        raise CaptureError(f"{self.prog}: {message}", hint=f"Invalid arguments: {message}")


def configure_logging(level: str) -> None:
    """Configure root logging on stderr so stdout carries only JSON."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def apply_overrides(settings: CaptureSettings, args: argparse.Namespace) -> CaptureSettings:
    update: dict[str, Any] = {}
    for option, field_name in _OVERRIDES.items():
        value = getattr(args, option, None)
        if value is not None:
            update[field_name] = value
    if getattr(args, "debug", False):
        update["log_level"] = "DEBUG"
    if not update:
        return settings
    return CaptureSettings.model_validate({**settings.model_dump(), **update})


def build_engine(settings: CaptureSettings) -> CaptureEngine:
    return CaptureEngine(settings)


def _emit(payload: dict[str, Any] | str) -> None:
    print(payload if isinstance(payload, str) else json.dumps(payload, indent=2))


def _emit_failure(exc: CaptureError) -> int:
    failure = CaptureFailure.from_error(exc)
    _emit(to_json(failure))
    return failure.exit_code


def cmd_capture(settings: CaptureSettings, args: argparse.Namespace) -> int:
    engine = build_engine(settings)
    result = asyncio.run(engine.run(settings.workdir))
    _emit(to_json(result))
    return result.exit_code


def cmd_sessions(settings: CaptureSettings, args: argparse.Namespace) -> int:
    engine = build_engine(settings)
    try:
        snapshot = asyncio.run(engine.session_info(settings.workdir))
    except CaptureError as exc:
        logger.error("%s: %s", exc.code, exc)
        return _emit_failure(exc)
    _emit({"ok": True, "workspace": str(engine.workspace(settings.workdir)), **snapshot.as_dict()})
    return 0


def cmd_kill(settings: CaptureSettings, args: argparse.Namespace) -> int:
    engine = build_engine(settings)
    try:
        name = asyncio.run(engine.kill(settings.workdir))
    except CaptureError as exc:
        logger.error("%s: %s", exc.code, exc)
        return _emit_failure(exc)
    _emit({"ok": True, "session": name})
    return 0


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    suppress = argparse.SUPPRESS
    parser.add_argument("--workdir", default=suppress, help="Workspace directory (default: $WORKDIR or cwd)")
    parser.add_argument("--debug", action="store_true", default=suppress, help="Log DEBUG narration on stderr")


def _add_capture_options(parser: argparse.ArgumentParser) -> None:
    suppress = argparse.SUPPRESS
    parser.add_argument("--model", default=suppress, help="Model passed to claude --model")
    parser.add_argument("--timeout", type=float, default=suppress, help="Boot timeout in seconds")
    parser.add_argument("--poll-interval", type=float, default=suppress, help="Boot poll interval in seconds")
    parser.add_argument("--settle", type=float, default=suppress, help="Settle delay after opening /usage")
    parser.add_argument("--session-hours", type=float, default=suppress, help="Session reuse lifetime in hours")


def build_parser() -> argparse.ArgumentParser:
    parser = CaptureArgumentParser(
        prog="claude-usage-capture",
        description="Capture Claude CLI /usage data from a reusable tmux session as JSON.",
    )
    _add_common_options(parser)
    _add_capture_options(parser)
    parser.set_defaults(func=cmd_capture)
    sub = parser.add_subparsers(dest="cmd")

    p_capture = sub.add_parser("capture", help="Capture usage data (default)")
    _add_common_options(p_capture)
    _add_capture_options(p_capture)
    p_capture.set_defaults(func=cmd_capture)

    p_sessions = sub.add_parser("sessions", help="Describe the session for a workspace")
    _add_common_options(p_sessions)
    p_sessions.set_defaults(func=cmd_sessions)

    p_kill = sub.add_parser("kill", help="Destroy the session for a workspace")
    _add_common_options(p_kill)
    p_kill.set_defaults(func=cmd_kill)

    return parser


def run(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except CaptureError as exc:
        return _emit_failure(exc)
    try:
        settings = apply_overrides(get_settings(), args)
    except ValidationError as exc:
        _emit(to_json(CaptureFailure(error=CaptureError.code, hint=f"Invalid configuration: {exc}")))
        return CaptureError.exit_code

    configure_logging(settings.log_level)
    return args.func(settings, args)


def main(argv: list[str] | None = None) -> None:
    exit_code = run(argv)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
