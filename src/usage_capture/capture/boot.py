"""Boot detection for freshly created TUI sessions."""

from __future__ import annotations

import asyncio
import enum
import logging
import math
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from ..errors import AuthRequiredError, BootFailedError
from ..patterns import ScreenPatterns
from ..tmux import TmuxController

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class BootState(str, enum.Enum):
    TRUST_PROMPT = "trust_prompt"
    BOOTED = "booted"
    AUTH_ERROR = "auth_error"
    TIMED_OUT = "timed_out"


class BootAction(str, enum.Enum):
    NONE = "none"
    ACCEPT_TRUST = "accept_trust"


@dataclass(frozen=True, slots=True)
class BootRule:
    """One row of the boot transition table."""

    name: str
    patterns: tuple[re.Pattern[str], ...]
    next_state: BootState
    action: BootAction = BootAction.NONE

    def matches(self, screen: str) -> bool:
        return any(pattern.search(screen) for pattern in self.patterns)


def build_rules(patterns: ScreenPatterns) -> list[BootRule]:
    """Return the ordered transition table; the first matching rule wins.

    The trust prompt comes first so a screen showing both the prompt and a
    boot banner is never mistaken for a booted TUI.
    """

    return [
        BootRule(
            name="trust_prompt",
            patterns=tuple(patterns.compiled("trust_prompt")),
            next_state=BootState.TRUST_PROMPT,
            action=BootAction.ACCEPT_TRUST,
        ),
        BootRule(
            name="boot_ready",
            patterns=tuple(patterns.compiled("boot_ready")),
            next_state=BootState.BOOTED,
        ),
        BootRule(
            name="auth_required",
            patterns=tuple(patterns.compiled("auth_required")),
            next_state=BootState.AUTH_ERROR,
        ),
    ]


def match_rule(screen: str, rules: Sequence[BootRule]) -> BootRule | None:
    for rule in rules:
        if rule.matches(screen):
            return rule
    return None


@dataclass(slots=True)
class BootOutcome:
    state: BootState
    screen: str
    polls: int
    trust_prompts: int = 0

    def raise_for_state(self, timeout: float) -> None:
        if self.state is BootState.AUTH_ERROR:
            raise AuthRequiredError("Authentication required", screen=self.screen)
        if self.state is BootState.TIMED_OUT:
            raise BootFailedError(
                f"TUI failed to boot within {timeout:g}s",
                hint=f"TUI did not boot within {timeout:g}s",
                screen=self.screen,
            )


class BootDetector:
    """Poll a new session until it is booted, needs auth, or times out."""

    def __init__(
        self,
        controller: TmuxController,
        patterns: ScreenPatterns,
        *,
        timeout: float = 10.0,
        interval: float = 0.4,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._controller = controller
        self._patterns = patterns
        self._rules = build_rules(patterns)
        self._timeout = timeout
        self._interval = interval
        self._sleep = sleep

    @property
    def max_polls(self) -> int:
        # 1.2 / 0.4 evaluates to 2.999...; absorb the float error.
        return max(1, math.floor(self._timeout / self._interval + 1e-9))

    async def wait(self, name: str) -> BootOutcome:
        trust_prompts = 0
        screen = ""
        for poll in range(1, self.max_polls + 1):
            await self._sleep(self._interval)
            screen = await self._controller.capture_screen(name)
            rule = match_rule(screen, self._rules)
            if rule is None:
                continue

            if rule.action is BootAction.ACCEPT_TRUST:
                trust_prompts += 1
                logger.debug("Session %s is at %s; accepting", name, rule.next_state.value)
                await self._controller.send_keys(name, *self._patterns.trust_accept_keys)
                await self._sleep(self._patterns.trust_settle)
                continue

            if rule.next_state in (BootState.BOOTED, BootState.AUTH_ERROR):
                logger.debug("Session %s reached %s after %d polls", name, rule.next_state.value, poll)
                return BootOutcome(rule.next_state, screen, poll, trust_prompts)

        last_screen = await self._controller.capture_screen(name) or screen
        return BootOutcome(BootState.TIMED_OUT, last_screen, self.max_polls, trust_prompts)


__all__ = [
    "BootAction",
    "BootDetector",
    "BootOutcome",
    "BootRule",
    "BootState",
    "build_rules",
    "match_rule",
]
