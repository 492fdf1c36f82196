"""Storage abstractions for session liveness tracking."""

from .models import SessionRecord, SessionSnapshot
from .timestamps import FileTimestampStore, InMemoryTimestampStore, TimestampStore
from .tracker import SessionTracker

__all__ = [
    "FileTimestampStore",
    "InMemoryTimestampStore",
    "SessionRecord",
    "SessionSnapshot",
    "SessionTracker",
    "TimestampStore",
]
