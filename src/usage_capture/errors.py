"""Failure taxonomy shared by the capture pipeline and its entry points."""

from __future__ import annotations


class CaptureError(RuntimeError):
    """Base class for failures that map onto a JSON error envelope."""

    code = "internal_error"
    exit_code = 1
    hint = "Unexpected failure while capturing usage"

    def __init__(self, message: str | None = None, *, hint: str | None = None, screen: str | None = None) -> None:
        super().__init__(message or self.hint)
        if hint is not None:
            self.hint = hint
        self.screen = screen


class BootFailedError(CaptureError):
    """Raised when the TUI does not reach a ready screen within the timeout."""

    code = "tui_failed_to_boot"
    exit_code = 12
    hint = "TUI did not boot in time"


class AuthRequiredError(CaptureError):
    """Raised when the TUI shows a login or authorization prompt."""

    code = "auth_required_or_cli_prompted_login"
    exit_code = 13
    hint = "Run: claude login"


class ClaudeCliNotFoundError(CaptureError):
    """Raised when the Claude CLI executable cannot be located."""

    code = "claude_cli_not_found"
    exit_code = 14
    hint = "Install Claude CLI from https://docs.claude.com"


class TmuxNotFoundError(CaptureError):
    """Raised when the tmux executable cannot be located."""

    code = "tmux_not_found"
    exit_code = 15
    hint = "Install tmux: brew install tmux"


class ParsingFailedError(CaptureError):
    """Raised when usage data never matched the expected screen patterns."""

    code = "parsing_failed"
    exit_code = 16
    hint = "Failed to extract usage data from TUI after retries"


class SessionBusyError(CaptureError):
    """Raised when another invocation holds the lock for the same workspace."""

    code = "session_busy"
    exit_code = 17
    hint = "Another capture is running for this workspace; try again shortly"


class TmuxCommandError(CaptureError):
    """Raised when a tmux command that must succeed exits non-zero."""

    code = "tmux_command_failed"
    exit_code = 18
    hint = "A tmux command failed; see stderr for details"


EXIT_CODES: dict[str, int] = {
    cls.code: cls.exit_code
    for cls in (
        CaptureError,
        BootFailedError,
        AuthRequiredError,
        ClaudeCliNotFoundError,
        TmuxNotFoundError,
        ParsingFailedError,
        SessionBusyError,
        TmuxCommandError,
    )
}


__all__ = [
    "AuthRequiredError",
    "BootFailedError",
    "CaptureError",
    "ClaudeCliNotFoundError",
    "EXIT_CODES",
    "ParsingFailedError",
    "SessionBusyError",
    "TmuxCommandError",
    "TmuxNotFoundError",
]
