"""Line-oriented extraction of status and usage fields from captured screens."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from ..errors import ParsingFailedError
from ..patterns import ScreenPatterns
from ..tmux import TmuxController
from .result import StatusInfo, UsageBucket

logger = logging.getLogger(__name__)

MANDATORY_BUCKETS = ("session_5h", "week_all_models")


def clean_value(value: str, border_chars: str = "") -> str:
    """Trim whitespace and box-drawing borders around a scraped value."""

    previous = None
    while previous != value:
        previous = value
        value = value.strip().strip(border_chars)
    return value


def find_label(screen: str, label: str, border_chars: str = "") -> str | None:
    """Return the text after ``label`` on the last line containing it."""

    for line in reversed(screen.splitlines()):
        if label in line:
            return clean_value(line.rpartition(label)[2], border_chars)
    return None


def parse_mcp_servers(raw: str | None, glyphs: list[str], border_chars: str = "") -> list[str]:
    """Turn ``"clickup ✔,chrome-devtools ✔"`` into ``["clickup", "chrome-devtools"]``."""

    if not raw:
        return []
    for glyph in glyphs:
        raw = raw.replace(glyph, "")
    names = [clean_value(part, border_chars) for part in raw.split(",")]
    return [name for name in names if name]


def banner_version(screen: str, patterns: ScreenPatterns) -> str | None:
    matches = re.findall(patterns.version_banner, screen)
    if not matches:
        return None
    last = matches[-1]
    return last if isinstance(last, str) else last[0]


def extract_status(status_screen: str, patterns: ScreenPatterns, main_screen: str = "") -> StatusInfo:
    labels = patterns.status_labels
    border = patterns.border_chars

    version = (
        find_label(status_screen, labels.version, border)
        or banner_version(main_screen, patterns)
        or banner_version(status_screen, patterns)
        or "unknown"
    )
    login_method = find_label(status_screen, labels.login_method, border) or "unknown"
    organization = find_label(status_screen, labels.organization, border) or "N/A"
    mcp_servers = parse_mcp_servers(
        find_label(status_screen, labels.mcp_servers, border), patterns.status_glyphs, border
    )

    logger.debug(
        "Status data extracted (org: %s, login: %s, mcp: %s)", organization, login_method, mcp_servers
    )
    return StatusInfo(
        version=version,
        login_method=login_method,
        organization=organization,
        mcp_servers=mcp_servers,
    )


@dataclass(slots=True)
class BucketMatch:
    heading_found: bool
    pct_used: int | None = None
    resets: str = ""

    def to_bucket(self) -> UsageBucket | None:
        if self.pct_used is None:
            return None
        return UsageBucket(pct_used=self.pct_used, resets=self.resets)


def find_bucket(lines: list[str], heading: str, patterns: ScreenPatterns) -> BucketMatch:
    """Scan the last ``heading`` line and the lines below it for one bucket.

    The scan covers at most ``bucket_lookahead`` lines and stops early at the
    next section heading.
    """

    heading_re = re.compile(heading)
    section_re = re.compile(patterns.section_heading)
    percent_re = re.compile(patterns.percent_used)
    resets_re = re.compile(patterns.resets)

    index = None
    for position in range(len(lines) - 1, -1, -1):
        if heading_re.search(lines[position]):
            index = position
            break
    if index is None:
        return BucketMatch(heading_found=False)

    match = BucketMatch(heading_found=True)
    window = [heading_re.split(lines[index], maxsplit=1)[-1]]
    for line in lines[index + 1 : index + 1 + patterns.bucket_lookahead]:
        if section_re.search(line):
            break
        window.append(line)

    for line in window:
        if match.pct_used is None:
            found = percent_re.search(line)
            if found:
                value = int(found.group(1))
                if 0 <= value <= 100:
                    match.pct_used = value
                else:
                    logger.debug("Ignoring out-of-range percentage %d under %r", value, heading)
        if not match.resets:
            found = resets_re.search(line)
            if found:
                match.resets = clean_value(found.group(1), patterns.border_chars)
    return match


@dataclass(slots=True)
class UsageSnapshot:
    session_5h: UsageBucket | None = None
    week_all_models: UsageBucket | None = None
    week_opus: UsageBucket | None = None
    missing: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing


def extract_usage(screen: str, patterns: ScreenPatterns) -> UsageSnapshot:
    lines = screen.splitlines()
    headings = patterns.buckets
    snapshot = UsageSnapshot()

    for bucket in MANDATORY_BUCKETS:
        matched = find_bucket(lines, getattr(headings, bucket), patterns)
        setattr(snapshot, bucket, matched.to_bucket())
        if matched.pct_used is None:
            snapshot.missing.append(bucket)

    opus = find_bucket(lines, headings.week_opus, patterns)
    if opus.heading_found and opus.pct_used is None:
        logger.debug("Opus heading present but no percentage found; reporting null")
    snapshot.week_opus = opus.to_bucket()
    return snapshot


def is_loading(screen: str, patterns: ScreenPatterns) -> bool:
    return any(pattern.search(screen) for pattern in patterns.compiled("loading"))


async def scrape_usage(
    controller: TmuxController,
    name: str,
    patterns: ScreenPatterns,
    *,
    attempts: int = 3,
    delay: float = 2.0,
    scrollback: int = 300,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> UsageSnapshot:
    """Capture the Usage tab until both mandatory buckets parse.

    Raises ``ParsingFailedError`` carrying the final screen once every
    attempt is spent.
    """

    screen = ""
    for attempt in range(1, attempts + 1):
        screen = await controller.capture_screen(name, scrollback=scrollback)

        if is_loading(screen, patterns):
            logger.debug("Usage data still loading (attempt %d/%d)", attempt, attempts)
        else:
            snapshot = extract_usage(screen, patterns)
            if snapshot.complete:
                return snapshot
            logger.debug(
                "Failed to parse data (attempt %d/%d), missing: %s",
                attempt,
                attempts,
                ", ".join(snapshot.missing),
            )

        if attempt < attempts:
            await sleep(delay)

    raise ParsingFailedError(
        f"Failed to parse usage data after {attempts} attempts",
        screen=screen,
    )


__all__ = [
    "BucketMatch",
    "MANDATORY_BUCKETS",
    "UsageSnapshot",
    "banner_version",
    "clean_value",
    "extract_status",
    "extract_usage",
    "find_bucket",
    "find_label",
    "is_loading",
    "parse_mcp_servers",
    "scrape_usage",
]
