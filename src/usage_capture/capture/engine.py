"""Capture pipeline: session reuse, boot, navigation, scraping and envelopes."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable

from ..config import CaptureSettings
from ..errors import (
    CaptureError,
    ClaudeCliNotFoundError,
    ParsingFailedError,
    TmuxCommandError,
    TmuxNotFoundError,
)
from ..identity import resolve_workspace, session_name
from ..lock import SessionLock
from ..patterns import PatternLoader, ScreenPatterns
from ..storage import FileTimestampStore, SessionSnapshot, SessionTracker, TimestampStore
from ..tmux import DependencyProbe, TmuxController
from .boot import BootDetector, BootState
from .navigation import Navigator
from .result import CaptureFailure, CaptureResult, CaptureSuccess
from .scraper import extract_status, scrape_usage

logger = logging.getLogger(__name__)

MAIN_SCREEN_SCROLLBACK = 300
STATUS_SCREEN_SCROLLBACK = 500
USAGE_SCREEN_SCROLLBACK = 300


class CaptureEngine:
    """Drive the Claude TUI through tmux and return one capture result.

    Collaborators are injectable so tests can replace tmux, the timestamp
    store, the dependency probe, the clock and the sleeper.
    """

    def __init__(
        self,
        settings: CaptureSettings,
        *,
        controller: TmuxController | None = None,
        store: TimestampStore | None = None,
        probe: DependencyProbe | None = None,
        patterns: ScreenPatterns | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._probe = probe or DependencyProbe(
            {"tmux": settings.tmux_path, "claude": settings.claude_path}
        )
        self._controller = controller
        self._store = store or FileTimestampStore(settings.state_dir)
        self._patterns = patterns
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def settings(self) -> CaptureSettings:
        return self._settings

    @property
    def probe(self) -> DependencyProbe:
        return self._probe

    @property
    def patterns(self) -> ScreenPatterns:
        if self._patterns is None:
            self._patterns = PatternLoader(self._settings.pattern_paths).load()
        return self._patterns

    @property
    def controller(self) -> TmuxController:
        if self._controller is None:
            self._controller = TmuxController(
                self._probe.locate("tmux") or "tmux",
                width=self._settings.pane_width,
                height=self._settings.pane_height,
                claude_executable=self._probe.locate("claude") or "claude",
            )
        return self._controller

    @property
    def tracker(self) -> SessionTracker:
        return SessionTracker(
            self._store,
            self.controller,
            lifetime_seconds=self._settings.session_lifetime_seconds,
            clock=self._clock,
        )

    def check_dependencies(self, *, require_claude: bool = True) -> None:
        if not self._probe.has_dependency("tmux"):
            raise TmuxNotFoundError("tmux not found")
        if require_claude and not self._probe.has_dependency("claude"):
            raise ClaudeCliNotFoundError("claude CLI not found on PATH")

    def workspace(self, workdir: str | Path | None = None) -> str:
        """Return the workspace identity string exactly as it is hashed into the session key."""

        if workdir is None and self._settings.workdir is not None:
            workdir = self._settings.workdir
        return resolve_workspace(workdir)

    async def run(self, workdir: str | Path | None = None) -> CaptureResult:
        """Capture usage and convert every failure into a failure envelope."""

        try:
            return await self.capture(workdir)
        except CaptureError as exc:
            logger.error("%s: %s", exc.code, exc)
            if exc.screen:
                logger.error("Last output:\n%s", exc.screen)
            return CaptureFailure.from_error(exc)
        except Exception as exc:
            logger.exception("Unexpected capture failure")
            return CaptureFailure(error=CaptureError.code, hint=f"{type(exc).__name__}: {exc}")

    async def capture(self, workdir: str | Path | None = None) -> CaptureSuccess:
        self.check_dependencies()
        patterns = self.patterns
        workspace = self.workspace(workdir)
        name = session_name(workspace)
        logger.debug("Using session name: %s for workspace: %s", name, workspace)

        async with SessionLock(
            self._settings.state_dir, name, timeout=self._settings.lock_timeout
        ):
            reused = await self._prepare_session(name, workspace)
            try:
                result = await self._collect(name, patterns, reused=reused)
            except ParsingFailedError:
                logger.debug("Preserving session %s for reuse after parse failure", name)
                raise
            except TmuxCommandError:
                await self.controller.destroy(name)
                raise

            self.tracker.touch(name)
            logger.debug("Preserving session %s for reuse", name)
            return result

    async def _prepare_session(self, name: str, workspace: str) -> bool:
        """Reuse a healthy session or create and boot a new one.

        Returns whether the existing session was reused.
        """

        controller = self.controller
        tracker = self.tracker

        if await tracker.is_valid(name):
            if await controller.health_check(name, self.patterns.compiled("health")):
                logger.debug("Session health check passed, reusing session %s", name)
                return True
            logger.info("Session %s failed its health check; recreating", name)
        else:
            logger.debug("No valid session found, creating new session %s", name)

        await controller.destroy(name)
        try:
            await controller.create(name, workspace, self._settings.model)
            tracker.touch(name)
            outcome = await BootDetector(
                controller,
                self.patterns,
                timeout=self._settings.boot_timeout,
                interval=self._settings.boot_poll_interval,
                sleep=self._sleep,
            ).wait(name)
        except TmuxCommandError:
            await controller.destroy(name)
            raise

        if outcome.state is not BootState.BOOTED:
            logger.debug("Cleaning up session %s after %s", name, outcome.state.value)
            await controller.destroy(name)
            outcome.raise_for_state(self._settings.boot_timeout)
        return False

    async def _collect(self, name: str, patterns: ScreenPatterns, *, reused: bool) -> CaptureSuccess:
        controller = self.controller
        navigator = Navigator(
            controller,
            patterns.navigation,
            sleep_after_usage=self._settings.sleep_after_usage,
            sleep=self._sleep,
        )

        main_screen = await controller.capture_screen(name, scrollback=MAIN_SCREEN_SCROLLBACK)

        await navigator.open_dialog(name, reused=reused)
        await navigator.to_status_tab(name)
        status_screen = await controller.capture_screen(name, scrollback=STATUS_SCREEN_SCROLLBACK)
        status = extract_status(status_screen, patterns, main_screen)
        await navigator.to_usage_tab(name)

        usage = await scrape_usage(
            controller,
            name,
            patterns,
            attempts=self._settings.scrape_attempts,
            delay=self._settings.scrape_delay,
            scrollback=USAGE_SCREEN_SCROLLBACK,
            sleep=self._sleep,
        )

        return CaptureSuccess(
            captured_at=self._clock(),
            status=status,
            session_5h=usage.session_5h,
            week_all_models=usage.week_all_models,
            week_opus=usage.week_opus,
        )

    async def session_info(self, workdir: str | Path | None = None) -> SessionSnapshot:
        self.check_dependencies(require_claude=False)
        return await self.tracker.describe(session_name(self.workspace(workdir)))

    async def kill(self, workdir: str | Path | None = None) -> str:
        self.check_dependencies(require_claude=False)
        name = session_name(self.workspace(workdir))
        await self.controller.destroy(name)
        self.tracker.forget(name)
        logger.info("Destroyed session %s", name)
        return name


__all__ = ["CaptureEngine"]
