"""Keystroke scripts that open the usage dialog and switch its tabs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from ..patterns import NavigationPlan
from ..tmux import TmuxController

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NavigationStep:
    """Keys to send followed by a settle delay; no keys means a pure wait."""

    keys: tuple[str, ...]
    settle: float
    literal: bool = False
    label: str = ""


def dismiss_steps(plan: NavigationPlan) -> list[NavigationStep]:
    if not plan.dismiss_keys:
        return []
    return [NavigationStep(tuple(plan.dismiss_keys), plan.dismiss_settle, label="dismiss")]


def open_dialog_steps(plan: NavigationPlan, sleep_after_usage: float) -> list[NavigationStep]:
    return [
        NavigationStep((plan.command_prefix,), plan.prefix_settle, label="prefix"),
        NavigationStep((plan.command,), plan.command_settle, literal=True, label="command"),
        NavigationStep(("Enter",), sleep_after_usage, label="submit"),
        NavigationStep((), plan.dialog_load_settle, label="dialog-load"),
    ]


def tab_steps(plan: NavigationPlan, offset: int) -> list[NavigationStep]:
    """Return one step per tab stop; negative offsets move backward."""

    key = plan.forward_key if offset > 0 else plan.backward_key
    return [NavigationStep((key,), plan.tab_settle, label=f"tab{offset:+d}") for _ in range(abs(offset))]


class Navigator:
    """Plays navigation steps against a tmux session."""

    def __init__(
        self,
        controller: TmuxController,
        plan: NavigationPlan,
        *,
        sleep_after_usage: float = 1.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._controller = controller
        self._plan = plan
        self._sleep_after_usage = sleep_after_usage
        self._sleep = sleep

    async def play(self, name: str, steps: Sequence[NavigationStep]) -> None:
        for step in steps:
            if step.keys:
                await self._controller.send_keys(name, *step.keys, literal=step.literal)
            if step.settle:
                await self._sleep(step.settle)

    async def open_dialog(self, name: str, *, reused: bool = False) -> None:
        steps: list[NavigationStep] = []
        if reused:
            steps.extend(dismiss_steps(self._plan))
        steps.extend(open_dialog_steps(self._plan, self._sleep_after_usage))
        logger.debug("Opening /%s dialog on %s", self._plan.command, name)
        await self.play(name, steps)

    async def to_status_tab(self, name: str) -> None:
        logger.debug("Navigating to Status tab on %s", name)
        await self.play(name, tab_steps(self._plan, self._plan.status_tab_offset))

    async def to_usage_tab(self, name: str) -> None:
        logger.debug("Navigating back to Usage tab on %s", name)
        await self.play(name, tab_steps(self._plan, -self._plan.status_tab_offset))


__all__ = ["NavigationStep", "Navigator", "dismiss_steps", "open_dialog_steps", "tab_steps"]
