"""Pattern table loading utilities."""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Any, Iterable

import yaml
from pydantic import ValidationError

from .models import ScreenPatterns

DEFAULT_RESOURCE = "default.yaml"


class PatternLoadError(RuntimeError):
    """Raised when one or more pattern files cannot be parsed."""


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


class PatternLoader:
    """Loads the bundled pattern table and applies override files on top."""

    def __init__(self, override_paths: Iterable[Path] | None = None) -> None:
        self._override_paths: list[Path] = [Path(path) for path in (override_paths or [])]

    @staticmethod
    def default_document() -> dict[str, Any]:
        text = resources.files(__package__).joinpath(DEFAULT_RESOURCE).read_text(encoding="utf-8")
        return yaml.safe_load(text)

    def load(self) -> ScreenPatterns:
        """Return the validated pattern table.

        Override files apply in order; later files win per top-level key and
        nested mappings are merged one level deep.
        """

        document = self.default_document()
        errors: list[str] = []

        for path in self._override_paths:
            if path.is_dir():
                candidates = sorted(path.glob("*.yml")) + sorted(path.glob("*.yaml"))
            else:
                candidates = [path]
            for candidate in candidates:
                try:
                    override = yaml.safe_load(candidate.read_text(encoding="utf-8"))
                except OSError as exc:
                    errors.append(f"Failed to read {candidate}: {exc}")
                    continue
                except yaml.YAMLError as exc:  # pragma: no cover - library type
                    errors.append(f"Failed to parse YAML in {candidate}: {exc}")
                    continue
                if override is None:
                    continue
                if not isinstance(override, dict):
                    errors.append(f"Pattern file {candidate} must contain a mapping")
                    continue
                document = _merge(document, override)

        if errors:
            raise PatternLoadError("; ".join(errors))

        try:
            return ScreenPatterns.model_validate(document)
        except ValidationError as exc:
            raise PatternLoadError(f"Pattern validation error: {exc}") from exc


def load_patterns(override_paths: Iterable[Path] | None = None) -> ScreenPatterns:
    """Convenience wrapper for loading the pattern table."""

    return PatternLoader(override_paths).load()


__all__ = ["PatternLoadError", "PatternLoader", "load_patterns"]
