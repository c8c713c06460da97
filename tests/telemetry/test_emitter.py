"""Tests for telemetry sinks and emit_event."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from aegis.shared.domain.enums import Severity
from aegis.telemetry import (
    LoggingTelemetrySink,
    MemoryTelemetrySink,
    NullTelemetrySink,
    TelemetryEvent,
    TelemetryEventType,
    emit_event,
)


class ExplodingSink:
    def emit(self, event):
        raise RuntimeError("sink offline")


class TestEmitEvent:
    def test_memory_sink_collects(self):
        sink = MemoryTelemetrySink()

        emit_event(sink, TelemetryEventType.SCAN_COMPLETED, blueprints=2)
        emit_event(sink, TelemetryEventType.REPAIR_FAILED, Severity.HIGH, artifact_id="auth")

        assert [e.type for e in sink.events] == [
            TelemetryEventType.SCAN_COMPLETED,
            TelemetryEventType.REPAIR_FAILED,
        ]
        [failed] = sink.of_type(TelemetryEventType.REPAIR_FAILED)
        assert failed.severity == Severity.HIGH
        assert failed.data == {"artifact_id": "auth"}

    def test_sink_failure_is_not_propagated(self):
        emit_event(ExplodingSink(), TelemetryEventType.MONITOR_COMPLETED, status="warning")

    def test_no_sink(self):
        emit_event(None, TelemetryEventType.SCAN_COMPLETED)

    def test_builtin_sinks_accept_events(self):
        event = TelemetryEvent(type=TelemetryEventType.VALIDATION_COMPLETED, data={"status": "pass"})
        NullTelemetrySink().emit(event)
        LoggingTelemetrySink().emit(event)


class TestTelemetryEvent:
    def test_events_are_frozen(self):
        event = TelemetryEvent(type=TelemetryEventType.SCAN_COMPLETED)
        with pytest.raises(ValidationError):
            event.severity = Severity.CRITICAL

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            TelemetryEvent(type=TelemetryEventType.SCAN_COMPLETED, extra="nope")
