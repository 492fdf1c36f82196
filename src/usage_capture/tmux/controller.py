"""Async controller for the detached tmux session hosting the Claude TUI."""

from __future__ import annotations

import asyncio
import logging
import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from ..errors import TmuxCommandError
from .utils import sanitize_environment

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TmuxResult:
    """Holds the outcome of a tmux invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def pane_target(name: str) -> str:
    return f"{name}:0.0"


class TmuxController:
    """Create, probe, drive and tear down one tmux server per session name.

    Every session runs on its own socket (``tmux -L <name>``) so that killing
    it never touches the user's own tmux server.
    """

    def __init__(
        self,
        executable: Path | str = "tmux",
        *,
        width: int = 120,
        height: int = 32,
        claude_executable: str = "claude",
    ) -> None:
        self._executable = str(executable)
        self._width = width
        self._height = height
        self._claude = claude_executable

    async def exists(self, name: str) -> bool:
        result = await self._invoke(name, "has-session", "-t", name)
        return result.ok

    async def create(self, name: str, workdir: Path | str, model: str) -> None:
        command = shlex.join(["env", "TERM=xterm-256color", self._claude, "--model", model])
        result = await self._invoke(
            name,
            "new-session",
            "-d",
            "-s",
            name,
            "-x",
            str(self._width),
            "-y",
            str(self._height),
            "-c",
            str(workdir),
            command,
        )
        if not result.ok:
            raise TmuxCommandError(
                f"tmux new-session failed for {name}: {result.stderr.strip()}",
            )

        resize = await self._invoke(
            name,
            "resize-pane",
            "-t",
            pane_target(name),
            "-x",
            str(self._width),
            "-y",
            str(self._height),
        )
        if not resize.ok:
            logger.warning(
                "Could not resize pane",
                extra={"session": name, "stderr": resize.stderr.strip()},
            )
        logger.debug("Created session %s in %s (model=%s)", name, workdir, model)

    async def health_check(self, name: str, signatures: Iterable[re.Pattern[str]]) -> bool:
        """Return whether the visible screen looks like a live Claude TUI."""

        screen = await self.capture_screen(name)
        if any(pattern.search(screen) for pattern in signatures):
            logger.debug("Session %s health check PASSED", name)
            return True
        logger.debug("Session %s health check FAILED - no Claude indicators found", name)
        return False

    async def send_keys(self, name: str, *keys: str, literal: bool = False) -> None:
        args: list[str] = ["send-keys", "-t", pane_target(name)]
        if literal:
            args.append("-l")
        result = await self._invoke(name, *args, *keys)
        if not result.ok:
            raise TmuxCommandError(
                f"tmux send-keys {' '.join(keys)!r} failed for {name}: {result.stderr.strip()}"
            )

    async def capture_screen(self, name: str, scrollback: int = 0) -> str:
        args: list[str] = ["capture-pane", "-t", pane_target(name), "-p"]
        if scrollback > 0:
            args.extend(["-S", f"-{scrollback}"])
        result = await self._invoke(name, *args)
        if not result.ok:
            logger.debug("capture-pane failed for %s: %s", name, result.stderr.strip())
            return ""
        return result.stdout

    async def destroy(self, name: str) -> None:
        if await self.exists(name):
            logger.debug("Killing existing session %s", name)
        await self._invoke(name, "kill-server")

    async def _invoke(self, label: str, *args: str) -> TmuxResult:
        cmd = [self._executable, "-L", label, *args]
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=sanitize_environment(),
        )
        stdout_bytes, stderr_bytes = await process.communicate()
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return TmuxResult(args=tuple(cmd), returncode=process.returncode, stdout=stdout, stderr=stderr)


class FakeTmuxController(TmuxController):
    """Test double that replays scripted screens instead of running tmux.

    Each ``capture_screen`` call consumes the next scripted screen; the last
    one keeps being returned once the script runs out.
    """

    def __init__(  # type: ignore[override]
        self,
        screens: Sequence[str] | None = None,
        *,
        existing: Iterable[str] | None = None,
        fail_keys: Iterable[str] | None = None,
    ) -> None:
        self._executable = "/tmp/fake-tmux"
        self._screens = list(screens or [])
        self._last_screen = ""
        self._existing = set(existing or [])
        self._fail_keys = set(fail_keys or [])
        self.created: list[tuple[str, str, str]] = []
        self.destroyed: list[str] = []
        self.sent: list[tuple[str, ...]] = []
        self.captures: list[tuple[str, int]] = []

    async def exists(self, name: str) -> bool:  # type: ignore[override]
        return name in self._existing

    async def create(self, name: str, workdir: Path | str, model: str) -> None:  # type: ignore[override]
        self.created.append((name, str(workdir), model))
        self._existing.add(name)

    async def send_keys(self, name: str, *keys: str, literal: bool = False) -> None:  # type: ignore[override]
        if self._fail_keys.intersection(keys):
            raise TmuxCommandError(f"send-keys {keys!r} failed for {name}")
        self.sent.append(tuple(keys))

    async def capture_screen(self, name: str, scrollback: int = 0) -> str:  # type: ignore[override]
        self.captures.append((name, scrollback))
        if self._screens:
            self._last_screen = self._screens.pop(0)
        return self._last_screen

    async def destroy(self, name: str) -> None:  # type: ignore[override]
        self.destroyed.append(name)
        self._existing.discard(name)

    @property
    def keys_sent(self) -> list[str]:
        return [key for keys in self.sent for key in keys]


__all__ = ["FakeTmuxController", "TmuxController", "TmuxResult", "pane_target"]
