"""Environment and dependency helpers for driving tmux."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Callable, Mapping

_SANITIZED_VARS = {
    "PYTHONHOME",
    "PYTHONPATH",
    "VIRTUAL_ENV",
    "PIP_RESPECT_VIRTUALENV",
    # A nested client would otherwise target the caller's tmux server.
    "TMUX",
    "TMUX_PANE",
}


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return a sanitized environment suitable for subprocess execution."""

    env = dict(os.environ)
    for key in _SANITIZED_VARS:
        env.pop(key, None)
    if additional:
        env.update(additional)
    return env


class DependencyProbe:
    """Answers whether an external executable is available.

    Explicit paths (from settings) take precedence over a ``PATH`` lookup.
    """

    def __init__(
        self,
        overrides: Mapping[str, str | None] | None = None,
        *,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self._overrides = {name: path for name, path in (overrides or {}).items() if path}
        self._which = which

    def locate(self, name: str) -> str | None:
        explicit = self._overrides.get(name)
        if explicit is not None:
            candidate = Path(explicit)
            if candidate.exists() and candidate.is_file():
                return str(candidate)
            return None
        return self._which(name)

    def has_dependency(self, name: str) -> bool:
        return self.locate(name) is not None


__all__ = ["DependencyProbe", "sanitize_environment"]
