"""tmux session orchestration utilities."""

from .controller import FakeTmuxController, TmuxController, TmuxResult
from .utils import DependencyProbe, sanitize_environment

__all__ = [
    "DependencyProbe",
    "FakeTmuxController",
    "TmuxController",
    "TmuxResult",
    "sanitize_environment",
]
