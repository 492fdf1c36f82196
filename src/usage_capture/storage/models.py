"""Data models for session liveness tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class SessionRecord:
    name: str
    touched_at: datetime


@dataclass(slots=True)
class SessionSnapshot:
    name: str
    exists: bool
    touched_at: datetime | None
    age_seconds: float | None
    lifetime_seconds: float
    valid: bool
    reason: str

    def as_dict(self) -> dict[str, object]:
        return {
            "session": self.name,
            "exists": self.exists,
            "touched_at": self.touched_at.isoformat() if self.touched_at else None,
            "age_seconds": round(self.age_seconds, 1) if self.age_seconds is not None else None,
            "lifetime_seconds": self.lifetime_seconds,
            "valid": self.valid,
            "reason": self.reason,
        }


__all__ = ["SessionRecord", "SessionSnapshot"]
