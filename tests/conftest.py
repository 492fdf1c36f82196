from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from usage_capture.config import CaptureSettings
from usage_capture.patterns import ScreenPatterns, load_patterns


BOOT_SCREEN = """\
╭───────────────────────────────────────────────────╮
│ ✻ Welcome to Claude Code!                         │
╰───────────────────────────────────────────────────╯
 Claude Code v2.0.26
 Sonnet 4.5 · Claude Max

> Try "write a test for <filepath>"
  ? for shortcuts                     Thinking off (tab to toggle)
"""

TRUST_SCREEN = """\
╭───────────────────────────────────────────────────╮
│ Do you trust the files in this folder?            │
│                                                   │
│ /home/dev/project                                 │
│                                                   │
│ ❯ 1. Yes, proceed                                 │
│   2. No, exit                                     │
╰───────────────────────────────────────────────────╯
"""

AUTH_SCREEN = """\
 Invalid API key · Please run /login
 Please run `claude login` to continue
"""

STATUS_SCREEN = """\
 Settings:  Status   Config   Usage  (tab to cycle)

 Version: 2.0.26
 Session ID: 0c3e6a2b-5d1f-4b1e-9f7a-2c4d6e8f0a1b
 cwd: /home/dev/project
 Login method: Claude Max Account
 Organization: dev@example.com's Organization
 Email: dev@example.com

 Model: sonnet (claude-sonnet-4-5)
 MCP servers: clickup ✔, chrome-devtools ✔,n8n-mcp ✘
"""

USAGE_SCREEN = """\
 Settings:  Status   Config   Usage  (tab to cycle)

 Current session
 ████████████████████▌                              42% used
 Resets 11am (Europe/Paris)

 Current week (all models)
 ██████▌                                            13% used
 Resets Jan 15, 9am (Europe/Paris)

 Current week (Opus)
 █                                                  2% used
 Resets Jan 15, 9am (Europe/Paris)

 Esc to exit
"""

USAGE_SCREEN_NO_OPUS = """\
 Settings:  Status   Config   Usage  (tab to cycle)

 Current session
 ███▌                                               7% used
 Resets 4pm (UTC)

 Current week (all models)
 █▌                                                 3% used
 Resets Oct 20, 9am (UTC)

 Esc to exit
"""

LOADING_SCREEN = """\
 Settings:  Status   Config   Usage  (tab to cycle)

 Loading usage data…
"""

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def patterns() -> ScreenPatterns:
    return load_patterns()


@pytest.fixture
def settings(tmp_path: Path) -> CaptureSettings:
    settings = CaptureSettings()
    settings.model = "sonnet"
    settings.workdir = None
    settings.boot_timeout = 10.0
    settings.boot_poll_interval = 0.4
    settings.session_timeout_hours = 5.0
    settings.scrape_attempts = 3
    settings.scrape_delay = 2.0
    settings.lock_timeout = 0.0
    settings.state_dir = tmp_path / "state"
    settings.pattern_paths = ()
    return settings


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(scope="session")
def screens() -> SimpleNamespace:
    return SimpleNamespace(
        boot=BOOT_SCREEN,
        trust=TRUST_SCREEN,
        auth=AUTH_SCREEN,
        status=STATUS_SCREEN,
        usage=USAGE_SCREEN,
        usage_no_opus=USAGE_SCREEN_NO_OPUS,
        loading=LOADING_SCREEN,
    )


@pytest.fixture
def now() -> datetime:
    return NOW
