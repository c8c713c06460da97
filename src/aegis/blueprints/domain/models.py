"""Blueprint artifact model."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from aegis.shared.domain.base_model import BaseDomainModel


@dataclass(frozen=True)
class Artifact(BaseDomainModel):
    """A governance document addressable by dotted key-paths.

    Attributes:
        id: Blueprint id (``id`` field, or the containing folder name)
        file_path: Location on disk
        root_fields: Parsed top-level mapping; None when parsing failed
        raw_text: File text, used for header annotation checks
        parse_error: Why the document could not be parsed, if it could not
    """

    id: str
    file_path: str
    root_fields: dict[str, Any] | None = None
    raw_text: str = ""
    parse_error: str | None = None

    @property
    def is_parsed(self) -> bool:
        return self.parse_error is None and self.root_fields is not None

    @property
    def path(self) -> Path:
        return Path(self.file_path)

    def get(self, dotted_path: str, default: Any = None) -> Any:
        """Resolve ``a.b.c`` against root_fields."""
        node: Any = self.root_fields or {}
        for part in dotted_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

