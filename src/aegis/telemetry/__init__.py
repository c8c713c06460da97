from aegis.telemetry.emitter import (
    LoggingTelemetrySink,
    MemoryTelemetrySink,
    NullTelemetrySink,
    TelemetrySink,
    emit_event,
)
from aegis.telemetry.models import TelemetryEvent, TelemetryEventType

__all__ = [
    "LoggingTelemetrySink",
    "MemoryTelemetrySink",
    "NullTelemetrySink",
    "TelemetryEvent",
    "TelemetryEventType",
    "TelemetrySink",
    "emit_event",
]
