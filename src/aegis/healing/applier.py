"""
Repair Applier.

Applies the safe subset of a report's repair actions to the artifact on disk.

Guarantees:
- Only actions with ``requires_approval=False`` are applied.
- All changes are computed in memory first. If any action in the batch
  fails, nothing is written and the file keeps its original bytes.
- The final content is written through a temp file and an atomic rename.
- The repository write lock is held for the whole apply.
- Every applied batch is appended to the repair log.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

from aegis.blueprints.infrastructure.artifact_store import ArtifactStore, dump_document, parse_document
from aegis.drift.domain.enums import RepairOperation
from aegis.drift.domain.models import HealthReport, RepairAction
from aegis.healing.models import ApplyResult
from aegis.healing.repair_log import RepairLog
from aegis.shared.domain.enums import Severity
from aegis.shared.domain.exceptions import LockTimeoutError, RepairError
from aegis.shared.infrastructure.config import settings
from aegis.shared.infrastructure.file_lock import file_lock
from aegis.shared.infrastructure.logging import get_logger
from aegis.telemetry import TelemetryEventType, TelemetrySink, emit_event

logger = get_logger(__name__)

_MISSING = object()


class RepairApplier:
    """Writes repair actions back through the Artifact Store."""

    def __init__(
        self,
        store: ArtifactStore,
        repair_log: RepairLog,
        lock_path: Path,
        lock_timeout: float | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self.store = store
        self.repair_log = repair_log
        self.lock_path = Path(lock_path)
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.lock_timeout
        self.telemetry = telemetry

    def apply(self, report: HealthReport) -> ApplyResult:
        """Apply the report's safe actions; never raises for a failed batch."""
        result = ApplyResult(artifact_id=report.artifact_id, file_path=report.file_path)

        for action in report.actions:
            if action.requires_approval:
                logger.info("repair_requires_approval", artifact_id=report.artifact_id, issue_id=action.issue_id)
                result.skipped.append(action.issue_id)

        actions = report.safe_actions
        if not actions:
            return result

        try:
            with file_lock(self.lock_path, timeout=self.lock_timeout):
                self._apply_locked(report, actions, result)
        except LockTimeoutError as e:
            result.error = str(e)
            self._report_failure(result)

        return result

    def _apply_locked(self, report: HealthReport, actions: list[RepairAction], result: ApplyResult) -> None:
        path = Path(report.file_path)
        try:
            original = self.store.read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            result.error = f"Cannot read artifact: {e}"
            self._report_failure(result)
            return

        data, parse_error = parse_document(original)
        if parse_error is not None:
            result.error = f"Cannot repair unparseable artifact: {parse_error}"
            self._report_failure(result)
            return

        working = copy.deepcopy(data)
        applied: list[RepairAction] = []

        # Structured actions first so header markers are checked against the text being written.
        ordered = [a for a in actions if not a.is_header_change] + [a for a in actions if a.is_header_change]
        header_lines: list[str] = []
        base_text: str | None = original
        for action in ordered:
            try:
                if action.is_header_change:
                    if base_text is None:
                        base_text = _render(original, working)
                    changed = _plan_header_line(base_text, header_lines, action)
                else:
                    changed = _apply_structured(working, action)
                    if changed:
                        base_text = None
            except RepairError as e:
                result.failed_issue = action.issue_id
                result.error = str(e)
                self._report_failure(result)
                return

            if changed:
                applied.append(action)
            else:
                result.unchanged.append(action.issue_id)

        if not applied:
            logger.debug("repair_nothing_to_change", artifact_id=report.artifact_id)
            return

        if base_text is None:
            base_text = _render(original, working)
        new_text = _insert_header(base_text, header_lines)
        try:
            self.store.write_text(path, new_text)
        except OSError as e:
            result.error = f"Cannot write artifact: {e}"
            self._report_failure(result)
            return

        result.modified = True
        result.applied = [action.issue_id for action in applied]
        for action in applied:
            logger.info(
                "repair_applied",
                artifact_id=report.artifact_id,
                issue_id=action.issue_id,
                path=action.path,
                operation=action.operation.value,
            )

        try:
            self.repair_log.record(report.artifact_id, report.file_path, applied)
        except OSError as e:
            logger.error("repair_log_write_failed", artifact_id=report.artifact_id, error=str(e))

        emit_event(
            self.telemetry,
            TelemetryEventType.REPAIR_APPLIED,
            artifact_id=report.artifact_id,
            applied=result.applied,
        )

    def _report_failure(self, result: ApplyResult) -> None:
        logger.error(
            "repair_failed",
            artifact_id=result.artifact_id,
            issue_id=result.failed_issue,
            error=result.error,
        )
        emit_event(
            self.telemetry,
            TelemetryEventType.REPAIR_FAILED,
            Severity.HIGH,
            artifact_id=result.artifact_id,
            issue_id=result.failed_issue,
            error=result.error,
        )


def _plan_header_line(text: str, header_lines: list[str], action: RepairAction) -> bool:
    """Queue a ``# value`` comment unless its marker is already in ``text``."""
    value = str(action.new_value)
    marker = value.split(":", 1)[0].strip()
    if marker in text or any(marker in line for line in header_lines):
        return False
    if action.operation != RepairOperation.ADD:
        raise RepairError(
            f"Header changes only support 'add', got '{action.operation.value}'",
            context={"issue_id": action.issue_id},
        )
    header_lines.append(f"# {value}")
    return True


def _apply_structured(data: dict[str, Any], action: RepairAction) -> bool:
    """Walk (creating as needed) the dotted path and set or delete the leaf.

    Returns:
        True if the document changed

    Raises:
        RepairError: if an intermediate segment exists but is not a mapping
    """
    parts = action.path.split(".")
    node = data
    for depth, part in enumerate(parts[:-1]):
        child = node.get(part)
        if child is None:
            if action.operation == RepairOperation.REMOVE:
                return False
            child = node[part] = {}
        elif not isinstance(child, dict):
            raise RepairError(
                f"Cannot descend into '{'.'.join(parts[: depth + 1])}': "
                f"expected a mapping, found {type(child).__name__}",
                context={"issue_id": action.issue_id, "path": action.path},
            )
        node = child

    leaf = parts[-1]
    current = node.get(leaf, _MISSING)

    if action.operation == RepairOperation.REMOVE:
        if current is _MISSING:
            return False
        del node[leaf]
        return True

    if current is not _MISSING and current == action.new_value:
        return False
    node[leaf] = copy.deepcopy(action.new_value)
    return True


def _content_start(lines: list[str]) -> int:
    return next(
        (i for i, line in enumerate(lines) if line.strip() and not _is_comment(line)),
        len(lines),
    )


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")


def _render(original: str, data: dict[str, Any]) -> str:
    """Re-dump a structurally repaired document.

    The dump drops comments, so every full-line comment of the original is
    carried into the header block, leading ones first. Trailing comments on
    value lines are lost.
    """
    lines = original.split("\n")
    start = _content_start(lines)

    leading = lines[:start]
    while leading and not leading[-1].strip():
        leading.pop()
    header = leading + [line.strip() for line in lines[start:] if _is_comment(line)]
    body = dump_document(data)
    if not header:
        return body
    return "\n".join(header) + "\n" + body


def _insert_header(text: str, header_lines: list[str]) -> str:
    """Insert comment lines before the first non-comment line of ``text``."""
    if not header_lines:
        return text
    lines = text.split("\n")
    start = _content_start(lines)
    return "\n".join(lines[:start] + header_lines + lines[start:])
