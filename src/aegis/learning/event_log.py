"""
Drift log reading and writing.

Reads the historical violation logs a project accumulates:

- ``agent-behavior-drift.json``: ``{"agentSessions": [{..., "behaviors": [...]}]}``
- ``framework-system-drift.json``: ``{"driftEvents": [...]}``
- ``*.jsonl``: one event object per line (engine-written logs such as
  validation feedback use this form)

A file that cannot be read or parsed is recorded in ``errors`` and skipped;
it never aborts the read.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Sequence

from aegis.learning.models import AGENT_SOURCE, SYSTEM_SOURCE, EventRecord
from aegis.shared.domain.enums import Severity
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

AGENT_LOG = "agent-behavior-drift.json"
SYSTEM_LOG = "framework-system-drift.json"

# Behaviors scoring below this are recorded even without a drift type.
AGENT_COMPLIANCE_THRESHOLD = 0.8


class DriftLogReader:
    """Reads event records from one or more drift-log directories."""

    def __init__(self, log_dirs: Sequence[Path]) -> None:
        self.log_dirs = [Path(d) for d in log_dirs]
        self.errors: list[str] = []

    def read(self) -> list[EventRecord]:
        self.errors = []
        events: list[EventRecord] = []

        for log_dir in self.log_dirs:
            if not log_dir.is_dir():
                continue

            agent_log = self._load_json(log_dir / AGENT_LOG)
            if agent_log is not None:
                events.extend(agent_events(agent_log))

            system_log = self._load_json(log_dir / SYSTEM_LOG)
            if system_log is not None:
                events.extend(system_events(system_log))

            for path in sorted(log_dir.glob("*.jsonl")):
                events.extend(self._read_jsonl(path))

        logger.info("drift_logs_read", events=len(events), errors=len(self.errors))
        return events

    def _load_json(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self._error(path, str(e))
            return None
        if not isinstance(data, dict):
            self._error(path, f"expected an object, got {type(data).__name__}")
            return None
        return data

    def _read_jsonl(self, path: Path) -> list[EventRecord]:
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            self._error(path, str(e))
            return []

        events = []
        for line_no, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                self._error(path, f"line {line_no}: {e}")
                continue
            event = event_from_mapping(data) if isinstance(data, dict) else None
            if event is None:
                self._error(path, f"line {line_no}: not an event record")
                continue
            events.append(event)
        return events

    def _error(self, path: Path, reason: str) -> None:
        logger.warning("drift_log_unreadable", path=str(path), error=reason)
        self.errors.append(f"{path}: {reason}")


def append_events(path: Path, events: Iterable[EventRecord]) -> int:
    """Append events to a JSON-lines log; returns how many were written."""
    lines = [json.dumps(event.to_log_line(), default=str) for event in events]
    if not lines:
        return 0
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    logger.debug("drift_events_appended", path=str(path), count=len(lines))
    return len(lines)


def agent_events(log: dict[str, Any]) -> list[EventRecord]:
    """Behaviors that drifted or scored below the compliance threshold."""
    events = []
    for session in _as_list(log.get("agentSessions")):
        if not isinstance(session, dict):
            continue
        for behavior in _as_list(session.get("behaviors")):
            if not isinstance(behavior, dict) or not behavior.get("action"):
                continue
            score = _as_float(behavior.get("complianceScore"))
            drift_type = behavior.get("driftType") or None
            if not drift_type and not (score is not None and score < AGENT_COMPLIANCE_THRESHOLD):
                continue

            evidence = [
                text
                for text in (
                    behavior.get("notes"),
                    f"session:{session['sessionId']}" if session.get("sessionId") else None,
                    f"agent:{session['agent']}" if session.get("agent") else None,
                )
                if text
            ]
            events.append(
                EventRecord(
                    source=AGENT_SOURCE,
                    key=str(behavior["action"]),
                    type=drift_type or "compliance-deviation",
                    timestamp=parse_timestamp(behavior.get("timestamp") or session.get("timestamp")),
                    severity=Severity.parse(behavior.get("severity")),
                    drift_type=drift_type,
                    compliance_score=score,
                    user_correction=behavior.get("userCorrection") or None,
                    evidence=tuple(str(e) for e in evidence),
                )
            )
    return events


def system_events(log: dict[str, Any]) -> list[EventRecord]:
    events = []
    for event in _as_list(log.get("driftEvents")):
        if not isinstance(event, dict) or not event.get("type"):
            continue
        detected = event.get("detected") if isinstance(event.get("detected"), dict) else {}
        evidence = [
            f"{label}:{detected[name]}"
            for name, label in (("component", "component"), ("rule", "rule"), ("expected", "expected"))
            if detected.get(name)
        ]
        events.append(
            EventRecord(
                source=SYSTEM_SOURCE,
                key=str(event["type"]),
                type=str(event["type"]),
                timestamp=parse_timestamp(event.get("timestamp")),
                severity=Severity.parse(event.get("severity")),
                evidence=tuple(evidence),
            )
        )
    return events


def event_from_mapping(data: dict[str, Any]) -> EventRecord | None:
    """Build an event from a JSON-lines record; None if it has no discriminator."""
    key = data.get("key") or data.get("action") or data.get("type")
    if not key:
        return None

    evidence = data.get("evidence")
    if isinstance(evidence, str):
        evidence = [evidence]

    return EventRecord(
        source=str(data.get("source") or "event"),
        key=str(key),
        type=str(data.get("type") or data.get("driftType") or key),
        timestamp=parse_timestamp(data.get("timestamp")),
        severity=Severity.parse(data.get("severity")),
        drift_type=data.get("driftType") or None,
        compliance_score=_as_float(data.get("complianceScore")),
        user_correction=data.get("userCorrection") or None,
        confidence=_as_float(data.get("confidence")),
        evidence=tuple(str(e) for e in _as_list(evidence)),
    )


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string (``Z`` suffix allowed) to an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
