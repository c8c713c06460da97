"""Tests for PatternStore."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from aegis.learning.event_log import DriftLogReader
from aegis.learning.models import EventRecord
from aegis.learning.pattern_store import PatternStore, calculate_likelihood, initial_confidence
from aegis.shared.domain.enums import Severity
from aegis.telemetry import MemoryTelemetrySink, TelemetryEventType
from aegis.validation.models import (
    SystematicValidationReport,
    ValidationResult,
    ValidationStatus,
)


def system_event(key: str, day: int = 1, severity: Severity = Severity.MEDIUM) -> EventRecord:
    return EventRecord(
        source="system",
        key=key,
        type=key,
        timestamp=datetime(2026, 10, day, tzinfo=timezone.utc),
        severity=severity,
    )


class TestFormulas:
    def test_likelihood_base(self):
        assert calculate_likelihood(system_event("x")) == 0.3

    def test_likelihood_adds_up_and_caps(self):
        event = EventRecord(
            source="agent",
            key="skip-tests",
            type="scope-creep",
            drift_type="scope-creep",
            compliance_score=0.4,
            user_correction="stop",
        )
        assert calculate_likelihood(event) == 1.0

    def test_likelihood_drift_type_only(self):
        event = EventRecord(source="agent", key="a", type="t", drift_type="t")
        assert calculate_likelihood(event) == 0.7

    def test_initial_confidence(self):
        assert initial_confidence(system_event("x")) == 0.8
        assert initial_confidence(EventRecord(source="agent", key="a", type="t")) == 0.5
        assert initial_confidence(EventRecord(source="agent", key="a", type="t", compliance_score=0.3)) == 0.3
        assert initial_confidence(EventRecord(source="validation", key="a", type="t", confidence=0.6)) == 0.6


class TestPatternStore:
    def test_repeated_pattern_merges(self):
        store = PatternStore()

        store.ingest([system_event("version-mismatch", 1), system_event("version-mismatch", 3)])

        pattern = store.get("system-version-mismatch")
        assert pattern.frequency == 2
        assert pattern.confidence == 0.9
        assert pattern.likelihood == 0.4
        assert pattern.is_recurring
        assert "recurring-pattern" in pattern.risk_factors

    def test_confidence_is_capped(self):
        store = PatternStore()
        store.ingest([system_event("x", day) for day in range(1, 6)])
        assert store.get("system-x").confidence == 1.0
        assert store.get("system-x").likelihood == 1.0

    def test_merge_is_order_independent(self):
        events = [
            system_event("x", 5, Severity.LOW),
            system_event("x", 2, Severity.CRITICAL),
            system_event("x", 9, Severity.MEDIUM),
        ]
        forward, backward = PatternStore(), PatternStore()

        forward.ingest(events)
        backward.ingest(list(reversed(events)))

        a, b = forward.get("system-x"), backward.get("system-x")
        assert (a.frequency, a.confidence, a.likelihood, a.severity) == (
            b.frequency,
            b.confidence,
            b.likelihood,
            b.severity,
        )
        assert a.severity == Severity.CRITICAL
        assert a.first_seen == b.first_seen == datetime(2026, 10, 2, tzinfo=timezone.utc)
        assert a.last_seen == b.last_seen == datetime(2026, 10, 9, tzinfo=timezone.utc)

    def test_mixed_agent_scores_merge_the_same_in_any_order(self):
        drifted = EventRecord(
            source="agent",
            key="create-file",
            type="compliance-deviation",
            drift_type="scope-creep",
            compliance_score=0.75,
        )
        corrected = EventRecord(
            source="agent",
            key="create-file",
            type="compliance-deviation",
            compliance_score=0.5,
            user_correction="use the existing module",
        )
        forward, backward = PatternStore(), PatternStore()

        forward.ingest([drifted, corrected])
        backward.ingest([corrected, drifted])

        a, b = forward.get("agent-create-file"), backward.get("agent-create-file")
        assert (a.confidence, a.likelihood, a.auto_correctable) == (0.85, 0.7, False)
        assert (b.confidence, b.likelihood, b.auto_correctable) == (0.85, 0.7, False)

    def test_patterns_accumulate_across_ingests(self):
        store = PatternStore()
        store.ingest([system_event("x")])
        store.ingest([system_event("x", 2)])
        assert store.get("system-x").frequency == 2

    def test_consecutive_log_entries_become_one_recurring_pattern(self, project_root, write_drift_log):
        write_drift_log(
            "framework-system-drift.json",
            {
                "driftEvents": [
                    {"type": "documentation-drift", "severity": "low", "timestamp": "2026-10-01T00:00:00Z"},
                    {"type": "documentation-drift", "severity": "low", "timestamp": "2026-10-02T00:00:00Z"},
                ]
            },
        )
        events = DriftLogReader([project_root / "framework" / "drift-log"]).read()

        [pattern] = PatternStore().ingest(events)

        assert pattern.id == "system-documentation-drift"
        assert pattern.frequency == 2

    def test_ingest_emits_telemetry(self):
        telemetry = MemoryTelemetrySink()
        PatternStore(telemetry=telemetry).ingest([system_event("x"), system_event("x", 2)])

        [event] = telemetry.of_type(TelemetryEventType.PATTERNS_INGESTED)
        assert event.data == {"events": 2, "patterns": 1, "recurring": 1}


class TestInsights:
    def test_single_recurring_pattern_is_not_systematic(self):
        store = PatternStore()
        store.ingest([system_event("x"), system_event("x", 2), system_event("y")])
        assert "recurring-violations" not in [i.pattern for i in store.insights()]

    def test_two_recurring_patterns_are_systematic(self):
        store = PatternStore()
        store.ingest([system_event(key, day) for key in ("x", "y") for day in (1, 2)])
        assert "recurring-violations" in [i.pattern for i in store.insights()]

    def test_misinterpretation_and_low_confidence(self):
        store = PatternStore()
        store.ingest(
            [
                EventRecord(
                    source="agent",
                    key="create-file",
                    type="requirement-misinterpretation",
                    drift_type="requirement-misinterpretation",
                    compliance_score=0.4,
                )
            ]
        )
        assert [i.pattern for i in store.insights()] == ["requirement-interpretation", "compliance-challenges"]


class TestPredictions:
    def test_only_recurring_or_high_severity(self):
        store = PatternStore()
        store.ingest(
            [
                system_event("recurring", 1),
                system_event("recurring", 2),
                system_event("isolated-high", 1, Severity.HIGH),
                system_event("isolated-low", 1, Severity.LOW),
            ]
        )

        predictions = {p.pattern_id: p for p in store.predictions()}

        assert set(predictions) == {"system-recurring", "system-isolated-high"}
        assert "Pattern frequency: 2" in predictions["system-recurring"].conditions
        assert "isolated-incident" in predictions["system-isolated-high"].risk_factors

    def test_empty_store_recommends_logging(self):
        assert PatternStore().recommendations() == ["No drift patterns recorded; keep drift logging enabled"]


class TestAnalysisAndValidationFeedback:
    def test_save_analysis_writes_camel_case(self, tmp_path):
        store = PatternStore()
        analysis = store.analyze([system_event("x")], load_errors=["bad.json: broken"])
        path = tmp_path / "learning" / "pattern-analysis.json"

        store.save_analysis(path, analysis)

        data = json.loads(path.read_text())
        assert data["patterns"][0]["id"] == "system-x"
        assert data["patterns"][0]["firstSeen"].startswith("2026-10-01")
        assert data["loadErrors"] == ["bad.json: broken"]

    def test_failed_mechanisms_become_patterns(self):
        report = SystematicValidationReport(
            results=[
                ValidationResult("drift-detection", ValidationStatus.PASS, Severity.CRITICAL),
                ValidationResult(
                    "pattern-recognition",
                    ValidationStatus.WARNING,
                    Severity.HIGH,
                    warnings=["insight-generation: expected generated, got none"],
                ),
                ValidationResult("repair-audit-trail", ValidationStatus.ERROR, Severity.MEDIUM),
            ]
        )
        store = PatternStore()

        events = store.record_validation(report)

        assert [e.pattern_id for e in events] == ["validation-pattern-recognition", "validation-repair-audit-trail"]
        assert store.get("validation-pattern-recognition").confidence == 0.6
        assert store.get("validation-repair-audit-trail").confidence == 0.8
        assert events[1].evidence == ("status:error",)
        assert "prevention-degradation" in [i.pattern for i in store.insights()]

    def test_passing_report_records_nothing(self):
        store = PatternStore()
        assert store.record_validation(SystematicValidationReport()) == []
        assert store.patterns == []
