from __future__ import annotations

from typing import Any, Protocol

from aegis.shared.domain.enums import Severity
from aegis.shared.infrastructure.logging import get_logger
from aegis.telemetry.models import TelemetryEvent, TelemetryEventType

logger = get_logger(__name__)


class TelemetrySink(Protocol):
    """
    Interface for receiving engine observations.

    Implementations must be:
    - minimally blocking
    - observational only
    Failures are tolerated: callers go through emit_event().
    """

    def emit(self, event: TelemetryEvent) -> None:
        ...


class NullTelemetrySink:
    """
    A safe no-op sink.

    Used when telemetry is not wired up and in tests that do not care about events.
    """

    def emit(self, event: TelemetryEvent) -> None:
        return


class MemoryTelemetrySink:
    """Collects events in order; handy for tests and in-process consumers."""

    def __init__(self) -> None:
        self.events: list[TelemetryEvent] = []

    def emit(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: TelemetryEventType) -> list[TelemetryEvent]:
        return [e for e in self.events if e.type == event_type]


class LoggingTelemetrySink:
    """Forwards events to the structured log."""

    def __init__(self, logger_name: str = "aegis.telemetry") -> None:
        self._logger = get_logger(logger_name)

    def emit(self, event: TelemetryEvent) -> None:
        self._logger.info(
            "telemetry_event",
            event_type=event.type.value,
            severity=event.severity.value,
            timestamp=event.timestamp.isoformat(),
            **event.data,
        )


def emit_event(
    sink: TelemetrySink | None,
    event_type: TelemetryEventType,
    severity: Severity = Severity.LOW,
    **data: Any,
) -> None:
    """Build and emit an event; sink errors are logged, never propagated."""
    if sink is None:
        return

    try:
        sink.emit(TelemetryEvent(type=event_type, severity=severity, data=data))
    except Exception as e:
        logger.warning("telemetry_emit_failed", event_type=event_type.value, error=str(e))
