from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from usage_capture.errors import SessionBusyError
from usage_capture.lock import SessionLock


def test_lock_is_exclusive(tmp_path: Path) -> None:
    async def scenario() -> None:
        async with SessionLock(tmp_path, "sess") as held:
            assert held.locked
            assert held.path == tmp_path / "sess.lock"
            with pytest.raises(SessionBusyError) as excinfo:
                await SessionLock(tmp_path, "sess").acquire()
            assert excinfo.value.exit_code == 17

        assert not held.locked

    asyncio.run(scenario())


def test_lock_can_be_reacquired_after_release(tmp_path: Path) -> None:
    async def scenario() -> None:
        first = SessionLock(tmp_path / "locks", "sess")
        await first.acquire()
        first.release()
        first.release()

        async with SessionLock(tmp_path / "locks", "sess") as second:
            assert second.locked

    asyncio.run(scenario())


def test_other_sessions_do_not_contend(tmp_path: Path) -> None:
    async def scenario() -> None:
        async with SessionLock(tmp_path, "a"), SessionLock(tmp_path, "b") as other:
            assert other.locked

    asyncio.run(scenario())


def test_waits_until_timeout(tmp_path: Path) -> None:
    async def scenario() -> None:
        async with SessionLock(tmp_path, "sess"):
            waiter = SessionLock(tmp_path, "sess", timeout=0.1, poll_interval=0.05)
            with pytest.raises(SessionBusyError):
                await waiter.acquire()

    asyncio.run(scenario())


def test_waiter_gets_lock_once_released(tmp_path: Path) -> None:
    async def scenario() -> bool:
        holder = SessionLock(tmp_path, "sess")
        await holder.acquire()

        async def release_soon() -> None:
            await asyncio.sleep(0.05)
            holder.release()

        waiter = SessionLock(tmp_path, "sess", timeout=1.0, poll_interval=0.02)
        await asyncio.gather(release_soon(), waiter.acquire())
        locked = waiter.locked
        waiter.release()
        return locked

    assert asyncio.run(scenario())
