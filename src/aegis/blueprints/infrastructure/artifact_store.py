"""
Artifact Store.

Reads and writes blueprint documents in a project tree. It is the only
component that touches artifact files directly; writes are atomic.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from aegis.blueprints.domain.models import Artifact
from aegis.shared.infrastructure.config import settings
from aegis.shared.infrastructure.file_lock import atomic_write_text
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

VERSION_FILENAME = "VERSION"


class ArtifactStore:
    """Discovers, loads and persists blueprint artifacts under ``project_root``."""

    def __init__(
        self,
        project_root: Path,
        *,
        blueprints_dir: str | None = None,
        blueprint_filename: str | None = None,
        default_framework_version: str | None = None,
    ) -> None:
        self.project_root = Path(project_root)
        self.blueprints_path = self.project_root / (blueprints_dir or settings.blueprints_dir)
        self.blueprint_filename = blueprint_filename or settings.blueprint_filename
        self._default_version = default_framework_version or settings.default_framework_version

    def discover(self) -> list[Path]:
        """Return ``<blueprints>/<name>/blueprint.yaml`` files, sorted by folder name."""
        if not self.blueprints_path.is_dir():
            logger.info("blueprints_dir_missing", path=str(self.blueprints_path))
            return []

        found = [
            entry / self.blueprint_filename
            for entry in sorted(self.blueprints_path.iterdir())
            if entry.is_dir() and (entry / self.blueprint_filename).is_file()
        ]
        logger.debug("blueprints_discovered", count=len(found))
        return found

    def load(self, path: Path) -> Artifact:
        """Load an artifact; read and parse failures are captured on the Artifact."""
        path = Path(path)
        fallback_id = path.parent.name or path.stem

        try:
            raw_text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("artifact_unreadable", path=str(path), error=str(e))
            return Artifact(id=fallback_id, file_path=str(path), parse_error=f"Unreadable file: {e}")

        root_fields, error = parse_document(raw_text)
        if error is not None:
            logger.warning("artifact_parse_failed", path=str(path), error=error)
            return Artifact(id=fallback_id, file_path=str(path), raw_text=raw_text, parse_error=error)

        artifact_id = root_fields.get("id") or fallback_id
        return Artifact(
            id=str(artifact_id),
            file_path=str(path),
            root_fields=root_fields,
            raw_text=raw_text,
        )

    def load_all(self) -> list[Artifact]:
        return [self.load(path) for path in self.discover()]

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: Path, text: str) -> None:
        """Atomically replace an artifact's content."""
        atomic_write_text(Path(path), text)
        logger.debug("artifact_written", path=str(path), size=len(text))

    def framework_version(self) -> str:
        """Current framework version from the project's VERSION file."""
        version_path = self.project_root / VERSION_FILENAME
        try:
            version = version_path.read_text(encoding="utf-8").strip()
        except OSError:
            return self._default_version
        return version or self._default_version


def parse_document(text: str) -> tuple[dict[str, Any] | None, str | None]:
    """Parse YAML text into a top-level mapping.

    Returns:
        (mapping, None) on success, (None, reason) otherwise
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return None, f"Invalid YAML: {e}"

    if data is None:
        return None, "Document is empty"
    if not isinstance(data, dict):
        return None, f"Document root must be a mapping, got {type(data).__name__}"
    return data, None


def dump_document(data: dict[str, Any]) -> str:
    """Serialize a mapping back to block-style YAML, preserving key order."""
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True, indent=2)
