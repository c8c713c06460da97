"""Append-only audit trail of applied repair actions (JSON lines)."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from aegis.drift.domain.models import RepairAction
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

REPAIR_LOG_FILENAME = "repair-log.jsonl"


class RepairLog:
    """One JSON object per line; existing lines are never rewritten."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def record(self, artifact_id: str, file_path: str, actions: Iterable[RepairAction]) -> dict[str, Any]:
        """Append one entry for a batch of applied actions.

        Raises:
            OSError: if the log cannot be written
        """
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "artifactId": artifact_id,
            "filePath": file_path,
            "automated": True,
            "actions": [
                {
                    "issueId": action.issue_id,
                    "description": action.description,
                    "changes": [
                        {
                            "path": action.path,
                            "operation": action.operation.value,
                            "oldValue": action.old_value,
                            "newValue": action.new_value,
                            "rationale": action.rationale,
                        }
                    ],
                    "riskLevel": action.risk_level.value,
                }
                for action in actions
            ],
        }

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

        logger.debug("repair_logged", artifact_id=artifact_id, actions=len(entry["actions"]))
        return entry

    def entries(self) -> list[dict[str, Any]]:
        """Read all entries; malformed lines are skipped with a warning."""
        if not self.path.exists():
            return []

        entries = []
        with open(self.path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.warning("repair_log_line_corrupt", path=str(self.path), line=line_no)
        return entries

    def entries_for(self, artifact_id: str) -> list[dict[str, Any]]:
        return [entry for entry in self.entries() if entry.get("artifactId") == artifact_id]
