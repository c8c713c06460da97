from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from aegis.shared.domain.enums import Severity


class TelemetryEventType(str, Enum):
    """
    Major engine operations that report to the telemetry sink.

    NOTE:
    This enum is finite. New entries must stay observational.
    """

    SCAN_COMPLETED = "scan.completed"
    REPAIR_APPLIED = "repair.applied"
    REPAIR_FAILED = "repair.failed"
    PATTERNS_INGESTED = "patterns.ingested"
    MONITOR_COMPLETED = "monitor.completed"
    PREVENTION_EXECUTED = "prevention.executed"
    VALIDATION_COMPLETED = "validation.completed"


class TelemetryEvent(BaseModel):
    """
    An immutable observation of an engine operation.

    Events are strictly observational: nothing in the engine reads them back.
    """

    type: TelemetryEventType
    severity: Severity = Severity.LOW
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
