"""Session validity decisions built on a timestamp store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Protocol

from .models import SessionRecord, SessionSnapshot
from .timestamps import TimestampStore

logger = logging.getLogger(__name__)


class SessionProbe(Protocol):
    async def exists(self, name: str) -> bool:
        ...


class SessionTracker:
    """Decide whether a tmux session may be reused.

    A session is valid only while the tmux session exists and its recorded
    timestamp is younger than ``lifetime_seconds``.
    """

    def __init__(
        self,
        store: TimestampStore,
        sessions: SessionProbe,
        *,
        lifetime_seconds: float,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._lifetime = lifetime_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def describe(self, name: str) -> SessionSnapshot:
        exists = await self._sessions.exists(name)
        record = self._store.get(name)
        touched_at = record.touched_at if record else None
        age = (self._clock() - touched_at).total_seconds() if touched_at else None

        if not exists:
            valid, reason = False, f"Session {name} does not exist"
        elif record is None:
            valid, reason = False, f"Timestamp not found for {name}"
        elif age < 0:
            valid, reason = False, f"Timestamp for {name} lies in the future ({age:.0f}s)"
        elif age >= self._lifetime:
            valid, reason = False, f"Session {name} is too old ({age:.0f}s >= {self._lifetime:.0f}s)"
        else:
            valid, reason = True, f"Session {name} is valid (age: {age:.0f}s)"

        return SessionSnapshot(
            name=name,
            exists=exists,
            touched_at=touched_at,
            age_seconds=age,
            lifetime_seconds=self._lifetime,
            valid=valid,
            reason=reason,
        )

    async def is_valid(self, name: str) -> bool:
        snapshot = await self.describe(name)
        logger.debug(snapshot.reason)
        return snapshot.valid

    def touch(self, name: str) -> SessionRecord:
        record = self._store.put(name, self._clock())
        logger.debug("Updated timestamp for %s", name)
        return record

    def forget(self, name: str) -> None:
        self._store.delete(name)


__all__ = ["SessionProbe", "SessionTracker"]
