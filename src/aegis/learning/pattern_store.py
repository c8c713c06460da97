"""
Pattern Store.

Learns frequency, confidence and likelihood for recurring event classes from
historical drift logs. Everything here is a deterministic formula over counted
evidence. Frequency, confidence, likelihood, severity, auto-correctability and
the first/last seen window do not depend on event order. Type and the order of
evidence, conditions and risk factors follow the first occurrence.

Merge rule for a repeated pattern id:
    frequency  += 1
    confidence  = min(1, best initial confidence + 0.1 * (frequency - 1))
    likelihood  = min(1, max(best single-event likelihood, 0.2 * frequency))
    first/last seen widen to cover the new occurrence (event timestamps)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from aegis.learning.models import (
    AGENT_SOURCE,
    DEFAULT_CONFIDENCE,
    FALLBACK_CONFIDENCE,
    VALIDATION_SOURCE,
    EventRecord,
    Insight,
    Pattern,
    PatternAnalysis,
    Prediction,
)
from aegis.shared.domain.enums import Severity, clamp_confidence
from aegis.shared.infrastructure.file_lock import atomic_write_text
from aegis.shared.infrastructure.logging import get_logger
from aegis.telemetry import TelemetryEventType, TelemetrySink, emit_event

if TYPE_CHECKING:
    from aegis.validation.models import SystematicValidationReport

logger = get_logger(__name__)

CONFIDENCE_STEP = 0.1
LIKELIHOOD_PER_OCCURRENCE = 0.2
LOW_CONFIDENCE_THRESHOLD = 0.7
PREVENTION_FAILURE = "prevention-failure"


def calculate_likelihood(event: EventRecord) -> float:
    """Base 0.3, +0.4 for a drift type, +0.2 for a score below 0.7, +0.1 for a user correction."""
    tenths = 3
    if event.drift_type:
        tenths += 4
    if event.compliance_score is not None and event.compliance_score < 0.7:
        tenths += 2
    if event.user_correction:
        tenths += 1
    return min(1.0, tenths / 10)


def initial_confidence(event: EventRecord) -> float:
    if event.confidence is not None:
        return clamp_confidence(event.confidence)
    if event.source == AGENT_SOURCE and event.compliance_score is not None:
        return clamp_confidence(event.compliance_score)
    return DEFAULT_CONFIDENCE.get(event.source, FALLBACK_CONFIDENCE)


def _conditions(event: EventRecord) -> list[str]:
    conditions = [f"{event.source}:{event.key}"]
    if event.drift_type:
        conditions.append(f"drift-type:{event.drift_type}")
    if event.compliance_score is not None and event.compliance_score < 0.8:
        conditions.append("low-compliance")
    return conditions


def _auto_correctable(event: EventRecord) -> bool:
    return event.source != AGENT_SOURCE or not event.user_correction


def _risk_factors(event: EventRecord) -> list[str]:
    factors = []
    if event.user_correction:
        factors.append("user-correction-required")
    if event.compliance_score is not None and event.compliance_score < 0.7:
        factors.append("low-confidence")
    if event.drift_type:
        factors.append("behavioral-drift")
    return factors


class PatternStore:
    """Accumulates patterns across ingest() calls for the life of the store."""

    def __init__(self, telemetry: TelemetrySink | None = None) -> None:
        self._patterns: dict[str, Pattern] = {}
        # pattern id -> (strongest initial confidence, highest single-event likelihood)
        self._peaks: dict[str, tuple[float, float]] = {}
        self.telemetry = telemetry

    @property
    def patterns(self) -> list[Pattern]:
        return list(self._patterns.values())

    def get(self, pattern_id: str) -> Pattern | None:
        return self._patterns.get(pattern_id)

    def ingest(self, events: Iterable[EventRecord]) -> list[Pattern]:
        """Create or merge one pattern per event; returns all known patterns."""
        count = 0
        for event in events:
            self._record(event)
            count += 1

        logger.info("patterns_ingested", events=count, patterns=len(self._patterns))
        emit_event(
            self.telemetry,
            TelemetryEventType.PATTERNS_INGESTED,
            events=count,
            patterns=len(self._patterns),
            recurring=sum(1 for p in self._patterns.values() if p.is_recurring),
        )
        return self.patterns

    def _record(self, event: EventRecord) -> None:
        existing = self._patterns.get(event.pattern_id)
        if existing is None:
            self._patterns[event.pattern_id] = Pattern(
                id=event.pattern_id,
                type=event.type,
                frequency=1,
                severity=event.severity,
                confidence=initial_confidence(event),
                likelihood=calculate_likelihood(event),
                first_seen=event.timestamp,
                last_seen=event.timestamp,
                evidence=list(event.evidence),
                conditions=_conditions(event),
                risk_factors=_risk_factors(event),
                auto_correctable=_auto_correctable(event),
            )
            self._peaks[event.pattern_id] = (initial_confidence(event), calculate_likelihood(event))
            return

        seed, peak = self._peaks[event.pattern_id]
        seed = max(seed, initial_confidence(event))
        peak = max(peak, calculate_likelihood(event))
        self._peaks[event.pattern_id] = (seed, peak)

        existing.frequency += 1
        existing.confidence = round(min(1.0, seed + CONFIDENCE_STEP * (existing.frequency - 1)), 6)
        existing.likelihood = round(min(1.0, max(peak, LIKELIHOOD_PER_OCCURRENCE * existing.frequency)), 6)
        existing.auto_correctable = existing.auto_correctable and _auto_correctable(event)
        if event.severity.rank > existing.severity.rank:
            existing.severity = event.severity
        if event.timestamp is not None:
            existing.first_seen = min(filter(None, (existing.first_seen, event.timestamp)))
            existing.last_seen = max(filter(None, (existing.last_seen, event.timestamp)))
        existing.evidence.extend(event.evidence)
        for condition in _conditions(event):
            if condition not in existing.conditions:
                existing.conditions.append(condition)
        for factor in _risk_factors(event):
            if factor not in existing.risk_factors:
                existing.risk_factors.append(factor)
        if "recurring-pattern" not in existing.risk_factors:
            existing.risk_factors.append("recurring-pattern")

    def insights(self, patterns: list[Pattern] | None = None) -> list[Insight]:
        patterns = self.patterns if patterns is None else patterns
        insights = []

        recurring = [p for p in patterns if p.is_recurring]
        if len(recurring) > 1:
            insights.append(
                Insight(
                    pattern="recurring-violations",
                    insight=f"{len(recurring)} patterns show recurring behavior, indicating systematic issues",
                    confidence=0.9,
                    applicability=("enforcement", "training", "documentation"),
                    recommendation="Implement proactive checks for recurring patterns",
                )
            )

        misinterpretations = [p for p in patterns if p.type == "requirement-misinterpretation"]
        if misinterpretations:
            insights.append(
                Insight(
                    pattern="requirement-interpretation",
                    insight="Agents need clearer guidance when interpreting requirements",
                    confidence=0.8,
                    applicability=("agent-training", "requirement-clarification"),
                    recommendation="Add a context validation step before suggesting file operations",
                )
            )

        low_confidence = [p for p in patterns if p.confidence < LOW_CONFIDENCE_THRESHOLD]
        if low_confidence:
            insights.append(
                Insight(
                    pattern="compliance-challenges",
                    insight=f"{len(low_confidence)} patterns show low compliance confidence",
                    confidence=0.7,
                    applicability=("validation", "training"),
                    recommendation="Enhance validation checks for low-confidence scenarios",
                )
            )

        failing_mechanisms = [p for p in patterns if p.type == PREVENTION_FAILURE]
        if failing_mechanisms:
            insights.append(
                Insight(
                    pattern="prevention-degradation",
                    insight=f"{len(failing_mechanisms)} prevention mechanisms failed self-validation",
                    confidence=0.8,
                    applicability=("validation", "enforcement"),
                    recommendation="Repair failing prevention mechanisms before relying on auto-prevention",
                )
            )
        return insights

    def predictions(self, patterns: list[Pattern] | None = None) -> list[Prediction]:
        """One prediction per recurring or high-severity pattern."""
        patterns = self.patterns if patterns is None else patterns
        predictions = []
        for pattern in patterns:
            if not (pattern.is_recurring or pattern.severity.rank >= Severity.HIGH.rank):
                continue
            conditions = list(pattern.conditions) + [f"Pattern frequency: {pattern.frequency}"]
            if pattern.last_seen is not None:
                conditions.append(f"Last seen: {pattern.last_seen.isoformat()}")
            predictions.append(
                Prediction(
                    pattern_id=pattern.id,
                    likelihood=pattern.likelihood,
                    confidence=pattern.confidence,
                    conditions=tuple(conditions),
                    risk_factors=tuple(
                        pattern.risk_factors
                        + ([] if pattern.is_recurring else ["isolated-incident"])
                    ),
                )
            )
        return predictions

    def recommendations(self, patterns: list[Pattern] | None = None) -> list[str]:
        patterns = self.patterns if patterns is None else patterns
        if not patterns:
            return ["No drift patterns recorded; keep drift logging enabled"]

        recommendations = []
        correctable = sum(1 for p in patterns if p.auto_correctable)
        if correctable:
            recommendations.append(f"{correctable} patterns can be auto-corrected proactively")

        high_risk = sum(1 for p in patterns if p.severity.rank >= Severity.HIGH.rank)
        if high_risk:
            recommendations.append(f"{high_risk} high-risk patterns require immediate attention")

        recurring = sum(1 for p in patterns if p.is_recurring)
        if recurring:
            recommendations.append(f"Add targeted checks for {recurring} recurring patterns")

        if any(p.type == "requirement-misinterpretation" for p in patterns):
            recommendations.append("Add a requirement clarification step before file operation suggestions")

        recommendations.append("Monitor agent behavior for requirement interpretation accuracy")
        return recommendations

    def analyze(self, events: Iterable[EventRecord], load_errors: list[str] | None = None) -> PatternAnalysis:
        patterns = self.ingest(events)
        return PatternAnalysis(
            patterns=patterns,
            insights=self.insights(patterns),
            predictions=self.predictions(patterns),
            recommendations=self.recommendations(patterns),
            load_errors=list(load_errors or []),
        )

    def save_analysis(self, path: Path, analysis: PatternAnalysis) -> None:
        """Persist an analysis document (camelCase JSON)."""
        atomic_write_text(Path(path), json.dumps(analysis.to_json(), indent=2, default=str))
        logger.info("pattern_analysis_saved", path=str(path), patterns=len(analysis.patterns))

    def record_validation(self, report: SystematicValidationReport) -> list[EventRecord]:
        """Feed mechanism validation results back as prevention-failure events.

        Every mechanism that did not pass becomes one event with pattern id
        ``validation-<mechanismId>``; the events are ingested immediately and
        returned so the caller can persist them for later runs.
        """
        events = []
        for result in report.results:
            if result.status.value == "pass":
                continue
            evidence = list(result.errors) + list(result.warnings)
            events.append(
                EventRecord(
                    source=VALIDATION_SOURCE,
                    key=result.mechanism_id,
                    type=PREVENTION_FAILURE,
                    timestamp=report.timestamp,
                    severity=result.criticality,
                    drift_type=PREVENTION_FAILURE,
                    confidence=0.6 if result.status.value == "warning" else 0.8,
                    evidence=tuple(evidence) or (f"status:{result.status.value}",),
                )
            )

        if events:
            self.ingest(events)
        return events
