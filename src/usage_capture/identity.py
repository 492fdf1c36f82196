"""Derive stable tmux session names from workspace paths."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

SESSION_PREFIX = "claude-usage-"


def resolve_workspace(workspace: str | Path | None = None) -> str:
    """Return the workspace identity, falling back to the current directory."""

    if workspace is None:
        return os.getcwd()
    return str(workspace)


def session_name(workspace: str | Path | None = None) -> str:
    """Return the session name (and socket label) for a workspace.

    The name is the first eight hex characters of the md5 digest of the
    workspace path, so the same path always addresses the same session.
    """

    digest = hashlib.md5(resolve_workspace(workspace).encode("utf-8")).hexdigest()
    return f"{SESSION_PREFIX}{digest[:8]}"


__all__ = ["SESSION_PREFIX", "resolve_workspace", "session_name"]
