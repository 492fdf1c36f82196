"""Per-session advisory lock so concurrent captures never interleave keystrokes."""

from __future__ import annotations

import asyncio
import fcntl
import logging
from pathlib import Path
from typing import IO

from .errors import SessionBusyError

logger = logging.getLogger(__name__)


class SessionLock:
    """Exclusive ``flock`` on ``<directory>/<name>.lock``.

    With ``timeout == 0`` a held lock fails fast with ``SessionBusyError``;
    otherwise acquisition is retried every ``poll_interval`` seconds until
    the timeout elapses.
    """

    def __init__(
        self,
        directory: Path,
        name: str,
        *,
        timeout: float = 0.0,
        poll_interval: float = 0.2,
    ) -> None:
        self._path = Path(directory) / f"{name}.lock"
        self._name = name
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._handle: IO[str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def locked(self) -> bool:
        return self._handle is not None

    def _try_lock(self, handle: IO[str]) -> bool:
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            return False
        return True

    async def acquire(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        handle = self._path.open("a+", encoding="utf-8")
        waited = 0.0
        while not self._try_lock(handle):
            if waited >= self._timeout:
                handle.close()
                raise SessionBusyError(f"Session {self._name} is locked by another capture")
            await asyncio.sleep(self._poll_interval)
            waited += self._poll_interval
        self._handle = handle
        logger.debug("Acquired lock %s", self._path)

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None
        logger.debug("Released lock %s", self._path)

    async def __aenter__(self) -> "SessionLock":
        await self.acquire()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.release()


__all__ = ["SessionLock"]
