from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

from usage_capture.storage import FileTimestampStore, InMemoryTimestampStore, SessionTracker
from usage_capture.tmux import FakeTmuxController

LIFETIME = 5 * 3600


class MutableClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _tracker(store, *, existing=("sess",), clock=None) -> SessionTracker:
    return SessionTracker(
        store,
        FakeTmuxController(existing=existing),
        lifetime_seconds=LIFETIME,
        clock=clock,
    )


def test_missing_session_is_invalid(now: datetime) -> None:
    store = InMemoryTimestampStore({"sess": now})
    tracker = _tracker(store, existing=(), clock=lambda: now)

    snapshot = asyncio.run(tracker.describe("sess"))

    assert not snapshot.valid
    assert "does not exist" in snapshot.reason


def test_missing_timestamp_is_invalid(now: datetime) -> None:
    tracker = _tracker(InMemoryTimestampStore(), clock=lambda: now)

    snapshot = asyncio.run(tracker.describe("sess"))

    assert not snapshot.valid
    assert "Timestamp not found" in snapshot.reason


def test_recent_timestamp_is_valid(now: datetime) -> None:
    store = InMemoryTimestampStore({"sess": now - timedelta(hours=1)})
    tracker = _tracker(store, clock=lambda: now)

    assert asyncio.run(tracker.is_valid("sess"))


def test_validity_expires_after_lifetime(now: datetime) -> None:
    clock = MutableClock(now)
    tracker = _tracker(InMemoryTimestampStore(), clock=clock)
    tracker.touch("sess")

    clock.now = now + timedelta(seconds=LIFETIME - 1)
    assert asyncio.run(tracker.is_valid("sess"))

    for epsilon in (timedelta(microseconds=1), timedelta(seconds=1), timedelta(days=3)):
        clock.now = now + timedelta(seconds=LIFETIME) + epsilon
        assert not asyncio.run(tracker.is_valid("sess"))


def test_future_timestamp_is_invalid(now: datetime) -> None:
    store = InMemoryTimestampStore({"sess": now + timedelta(minutes=5)})
    tracker = _tracker(store, clock=lambda: now)

    snapshot = asyncio.run(tracker.describe("sess"))

    assert not snapshot.valid
    assert "future" in snapshot.reason


def test_repeated_touch_keeps_session_valid(now: datetime) -> None:
    tracker = _tracker(InMemoryTimestampStore(), clock=lambda: now)

    for _ in range(3):
        tracker.touch("sess")

    assert asyncio.run(tracker.is_valid("sess"))


def test_forget_drops_record(now: datetime) -> None:
    store = InMemoryTimestampStore({"sess": now})
    tracker = _tracker(store, clock=lambda: now)

    tracker.forget("sess")

    assert store.get("sess") is None
    assert not asyncio.run(tracker.is_valid("sess"))


def test_file_store_roundtrip(tmp_path: Path) -> None:
    store = FileTimestampStore(tmp_path / "state")
    when = datetime(2026, 10, 16, 12, 0, 5, tzinfo=timezone.utc)

    store.put("claude-usage-abc", when)

    assert store.path_for("claude-usage-abc").read_text(encoding="utf-8").strip() == str(int(when.timestamp()))
    assert store.get("claude-usage-abc").touched_at == when


def test_file_store_reads_epoch_written_by_shell_collector(tmp_path: Path) -> None:
    store = FileTimestampStore(tmp_path)
    (tmp_path / "claude-usage-1234abcd.timestamp").write_text("1760616000\n", encoding="utf-8")

    record = store.get("claude-usage-1234abcd")

    assert record is not None
    assert record.touched_at == datetime.fromtimestamp(1760616000, tz=timezone.utc)


def test_file_store_treats_corrupt_file_as_missing(tmp_path: Path, now: datetime) -> None:
    store = FileTimestampStore(tmp_path)
    store.path_for("sess").write_text("not-a-number", encoding="utf-8")
    tracker = _tracker(store, clock=lambda: now)

    assert store.get("sess") is None
    assert not asyncio.run(tracker.is_valid("sess"))


def test_file_store_delete_is_idempotent(tmp_path: Path, now: datetime) -> None:
    store = FileTimestampStore(tmp_path)
    store.put("sess", now)

    store.delete("sess")
    store.delete("sess")

    assert store.get("sess") is None
