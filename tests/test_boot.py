from __future__ import annotations

import asyncio

import pytest

from usage_capture.capture.boot import BootDetector, BootState, build_rules, match_rule
from usage_capture.errors import AuthRequiredError, BootFailedError
from usage_capture.tmux import FakeTmuxController


def _detector(controller, patterns, sleeper, *, timeout=10.0, interval=0.4) -> BootDetector:
    return BootDetector(controller, patterns, timeout=timeout, interval=interval, sleep=sleeper)


def test_rules_check_trust_before_boot(patterns, screens) -> None:
    rules = build_rules(patterns)

    assert [rule.name for rule in rules] == ["trust_prompt", "boot_ready", "auth_required"]
    assert rules[0].next_state is BootState.TRUST_PROMPT
    assert match_rule(screens.trust + screens.boot, rules).name == "trust_prompt"
    assert match_rule(screens.boot, rules).name == "boot_ready"
    assert match_rule(screens.auth, rules).name == "auth_required"
    assert match_rule("", rules) is None


def test_boots_after_blank_screens(patterns, screens, sleeper) -> None:
    controller = FakeTmuxController(["", "", screens.boot])

    outcome = asyncio.run(_detector(controller, patterns, sleeper).wait("sess"))

    assert outcome.state is BootState.BOOTED
    assert outcome.polls == 3
    assert sleeper.delays == [0.4, 0.4, 0.4]
    assert controller.sent == []


def test_trust_prompt_is_accepted_even_with_banner(patterns, screens, sleeper) -> None:
    controller = FakeTmuxController([screens.trust + screens.boot, screens.boot])

    outcome = asyncio.run(_detector(controller, patterns, sleeper).wait("sess"))

    assert outcome.state is BootState.BOOTED
    assert outcome.polls == 2
    assert outcome.trust_prompts == 1
    assert controller.sent == [("1", "Enter")]
    assert sleeper.delays == [0.4, patterns.trust_settle, 0.4]


def test_auth_prompt_stops_polling_early(patterns, screens, sleeper) -> None:
    controller = FakeTmuxController(["", screens.auth])
    detector = _detector(controller, patterns, sleeper)

    outcome = asyncio.run(detector.wait("sess"))

    assert outcome.state is BootState.AUTH_ERROR
    assert outcome.polls == 2 < detector.max_polls
    with pytest.raises(AuthRequiredError) as excinfo:
        outcome.raise_for_state(10)
    assert excinfo.value.hint == "Run: claude login"
    assert "claude login" in excinfo.value.screen


def test_times_out_with_last_screen(patterns, sleeper) -> None:
    controller = FakeTmuxController(["starting..."])
    detector = _detector(controller, patterns, sleeper, timeout=2.0, interval=0.5)

    outcome = asyncio.run(detector.wait("sess"))

    assert detector.max_polls == 4
    assert outcome.state is BootState.TIMED_OUT
    assert outcome.screen == "starting..."
    assert len(controller.captures) == 5
    with pytest.raises(BootFailedError) as excinfo:
        outcome.raise_for_state(2.0)
    assert excinfo.value.hint == "TUI did not boot within 2s"


@pytest.mark.parametrize(
    ("timeout", "interval", "expected"),
    [(0.1, 1.0, 1), (10.0, 0.4, 25), (1.2, 0.4, 3), (0.7, 0.1, 7), (1.1, 0.4, 2)],
)
def test_max_polls_covers_the_whole_timeout(patterns, timeout, interval, expected) -> None:
    detector = BootDetector(FakeTmuxController(), patterns, timeout=timeout, interval=interval)

    assert detector.max_polls == expected


def test_full_budget_is_polled_before_timing_out(patterns, sleeper) -> None:
    controller = FakeTmuxController(["starting..."])
    detector = _detector(controller, patterns, sleeper, timeout=1.2, interval=0.4)

    outcome = asyncio.run(detector.wait("sess"))

    assert outcome.state is BootState.TIMED_OUT
    assert outcome.polls == 3
    assert sleeper.delays == [0.4, 0.4, 0.4]
