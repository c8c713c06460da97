"""Bounded JSON history files under the state directory."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from aegis.shared.infrastructure.file_lock import atomic_write_text
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class JsonHistoryStore:
    """A JSON array on disk that keeps only the newest ``limit`` entries.

    Corrupt files are logged and treated as empty so a damaged history never
    blocks a run; the next write replaces them.
    """

    def __init__(self, path: Path, *, limit: int = 100) -> None:
        self._path = Path(path)
        self._limit = limit

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            return []

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("history_corrupt_json", path=str(self._path), error=str(e))
            return []
        except OSError as e:
            logger.warning("history_unreadable", path=str(self._path), error=str(e))
            return []

        if not isinstance(raw, list):
            logger.warning("history_unexpected_shape", path=str(self._path), type=type(raw).__name__)
            return []
        return [entry for entry in raw if isinstance(entry, dict)]

    def append(self, entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Append entries, trim to the limit and persist atomically."""
        history = (self.load() + list(entries))[-self._limit:]
        atomic_write_text(self._path, json.dumps(history, indent=2, default=str))
        logger.debug("history_saved", path=str(self._path), entries=len(history))
        return history

    def last(self) -> dict[str, Any] | None:
        history = self.load()
        return history[-1] if history else None
