"""Key-value stores holding the last-success timestamp per session."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from .models import SessionRecord

logger = logging.getLogger(__name__)


class TimestampStore(Protocol):
    """Protocol for the minimal timestamp store API used by the tracker."""

    def get(self, name: str) -> SessionRecord | None:
        ...

    def put(self, name: str, when: datetime) -> SessionRecord:
        ...

    def delete(self, name: str) -> None:
        ...


class FileTimestampStore:
    """Stores ``<name>.timestamp`` files holding integer epoch seconds."""

    suffix = ".timestamp"

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def path_for(self, name: str) -> Path:
        return self._directory / f"{name}{self.suffix}"

    def get(self, name: str) -> SessionRecord | None:
        path = self.path_for(name)
        try:
            raw = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.debug("Unreadable timestamp file %s: %s", path, exc)
            return None
        try:
            epoch = int(raw)
        except ValueError:
            logger.debug("Corrupt timestamp file %s: %r", path, raw[:40])
            return None
        return SessionRecord(name=name, touched_at=datetime.fromtimestamp(epoch, tz=timezone.utc))

    def put(self, name: str, when: datetime) -> SessionRecord:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        temp = path.with_name(path.name + ".tmp")
        temp.write_text(f"{int(when.timestamp())}\n", encoding="utf-8")
        temp.replace(path)
        return SessionRecord(name=name, touched_at=when)

    def delete(self, name: str) -> None:
        self.path_for(name).unlink(missing_ok=True)


class InMemoryTimestampStore:
    """Dictionary-backed store for tests and embedding."""

    def __init__(self, records: dict[str, datetime] | None = None) -> None:
        self._records: dict[str, datetime] = dict(records or {})

    def get(self, name: str) -> SessionRecord | None:
        touched_at = self._records.get(name)
        if touched_at is None:
            return None
        return SessionRecord(name=name, touched_at=touched_at)

    def put(self, name: str, when: datetime) -> SessionRecord:
        self._records[name] = when
        return SessionRecord(name=name, touched_at=when)

    def delete(self, name: str) -> None:
        self._records.pop(name, None)


__all__ = ["FileTimestampStore", "InMemoryTimestampStore", "TimestampStore"]
