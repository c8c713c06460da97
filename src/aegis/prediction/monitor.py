"""
Predictive Monitor.

Scores every compliance-pattern template against live repository state and
learned patterns, emits alerts for likely violations, and auto-executes
prevention for critical, auto-preventable alerts.

Scoring per template:
    raw        = 0.3 * triggers + 0.2 * indicators + 0.1 * signals
    confidence = min(raw, 1) * baseConfidence
An alert is emitted when confidence > 0.3.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from aegis.drift.domain.models import HealthReport
from aegis.learning.models import Pattern
from aegis.prediction.models import (
    CompliancePattern,
    MonitoringResult,
    MonitorStatus,
    PredictiveAlert,
    ProbeSpec,
)
from aegis.prediction.prevention import PreventionExecutor
from aegis.prediction.probes import ProbeContext, ProbeRegistry, default_probe_registry
from aegis.prediction.repo_state import RepoState
from aegis.shared.domain.enums import Severity
from aegis.shared.infrastructure.config import settings
from aegis.shared.infrastructure.history_store import JsonHistoryStore
from aegis.shared.infrastructure.logging import get_logger
from aegis.telemetry import TelemetryEventType, TelemetrySink, emit_event

logger = get_logger(__name__)

# Score contributions in tenths, kept integral so thresholds compare exactly.
TRIGGER_UNITS = 3
INDICATOR_UNITS = 2
SIGNAL_UNITS = 1

ALERT_THRESHOLD = 0.3
AUTO_PREVENT_CONFIDENCE = 0.8
AUTO_PREVENT_SUCCESS = 0.9

RISK_WEIGHTS = {
    Severity.CRITICAL: 1.0,
    Severity.HIGH: 0.7,
    Severity.MEDIUM: 0.4,
    Severity.LOW: 0.2,
}

_STATUS_SEVERITY = {
    MonitorStatus.SAFE: Severity.LOW,
    MonitorStatus.WARNING: Severity.MEDIUM,
    MonitorStatus.DANGER: Severity.HIGH,
    MonitorStatus.CRITICAL: Severity.CRITICAL,
}


def risk_level_for(confidence: float) -> Severity:
    if confidence >= 0.9:
        return Severity.CRITICAL
    if confidence >= 0.7:
        return Severity.HIGH
    if confidence >= 0.5:
        return Severity.MEDIUM
    return Severity.LOW


def time_to_violation_for(confidence: float) -> str:
    if confidence >= 0.9:
        return "Immediate (< 1 hour)"
    if confidence >= 0.7:
        return "Very Soon (< 6 hours)"
    if confidence >= 0.5:
        return "Soon (< 24 hours)"
    return "Eventually (< 7 days)"


def overall_risk(alerts: Sequence[PredictiveAlert]) -> float:
    """Mean of confidence weighted by risk level, capped at 1."""
    if not alerts:
        return 0.0
    weighted = sum(alert.confidence * RISK_WEIGHTS[alert.risk_level] for alert in alerts)
    return round(min(weighted / len(alerts), 1.0), 6)


def determine_status(score: float, alerts: Sequence[PredictiveAlert]) -> MonitorStatus:
    if any(alert.risk_level == Severity.CRITICAL for alert in alerts) or score >= 0.9:
        return MonitorStatus.CRITICAL
    if score >= 0.7:
        return MonitorStatus.DANGER
    if score >= 0.3:
        return MonitorStatus.WARNING
    return MonitorStatus.SAFE


class PredictiveMonitor:
    """Evaluates a compliance catalog against one repository snapshot.

    Args:
        catalog: Compliance-pattern templates
        probes: Probe table; validated against the catalog here
        executor: Runs prevention actions; without one nothing is executed
        alert_history: Bounded store for emitted alerts
        auto_prevention: Master switch for auto-execution

    Raises:
        ConfigurationError: if the catalog references an unknown probe
    """

    def __init__(
        self,
        catalog: Sequence[CompliancePattern],
        probes: ProbeRegistry | None = None,
        executor: PreventionExecutor | None = None,
        alert_history: JsonHistoryStore | None = None,
        auto_prevention: bool | None = None,
        validation_max_age_hours: float | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self.catalog = tuple(catalog)
        self.probes = probes or default_probe_registry()
        self.probes.validate(self.catalog)
        self.executor = executor
        self.alert_history = alert_history
        self.auto_prevention = settings.auto_prevention_enabled if auto_prevention is None else auto_prevention
        self.validation_max_age_hours = (
            validation_max_age_hours if validation_max_age_hours is not None else settings.validation_max_age_hours
        )
        self.telemetry = telemetry

    def monitor(
        self,
        patterns: Sequence[Pattern],
        repo_state: RepoState,
        reports: Sequence[HealthReport] = (),
        last_validation_at: datetime | None = None,
    ) -> MonitoringResult:
        """Run every template once against the given state."""
        context = ProbeContext(
            project_root=repo_state.project_root,
            repo=repo_state,
            patterns=list(patterns),
            reports=list(reports),
            last_validation_at=last_validation_at,
            validation_max_age_hours=self.validation_max_age_hours,
        )
        result = MonitoringResult()

        for template in self.catalog:
            alert = self.evaluate_template(template, context)
            if alert is None:
                continue

            result.alerts.append(alert)
            result.patterns_detected.append(template.id)
            for action in template.prevention_actions:
                if action.description not in result.prevention_actions_recommended:
                    result.prevention_actions_recommended.append(action.description)

            if self._should_auto_prevent(alert):
                result.auto_prevention_triggered = True
                outcomes = self.executor.execute(alert, template.prevention_actions, repo_state.fingerprint())
                result.prevention_outcomes.extend(outcomes)

        result.overall_risk_score = overall_risk(result.alerts)
        result.status = determine_status(result.overall_risk_score, result.alerts)

        if self.alert_history is not None and result.alerts:
            try:
                self.alert_history.append([alert.to_json() for alert in result.alerts])
            except OSError as e:
                logger.error("alert_history_write_failed", path=str(self.alert_history.path), error=str(e))

        logger.info(
            "monitoring_completed",
            status=result.status.value,
            alerts=len(result.alerts),
            risk_score=result.overall_risk_score,
            auto_prevention=result.auto_prevention_triggered,
        )
        emit_event(
            self.telemetry,
            TelemetryEventType.MONITOR_COMPLETED,
            _STATUS_SEVERITY[result.status],
            status=result.status.value,
            alerts=len(result.alerts),
            overall_risk_score=result.overall_risk_score,
        )
        return result

    def evaluate_template(self, template: CompliancePattern, context: ProbeContext) -> PredictiveAlert | None:
        """Score one template; returns an alert when confidence exceeds the threshold."""
        units = 0
        evidence: list[str] = []

        for spec in template.trigger_conditions:
            if self._check(spec, context):
                units += TRIGGER_UNITS
                evidence.append(f"Trigger condition met: {spec.description}")
        for spec in template.risk_indicators:
            if self._check(spec, context):
                units += INDICATOR_UNITS
                evidence.append(f"Risk indicator detected: {spec.description}")
        for spec in template.predictive_signals:
            if self._check(spec, context):
                units += SIGNAL_UNITS
                evidence.append(f"Predictive signal found: {spec.description}")

        confidence = round(min(units, 10) / 10 * template.base_confidence, 6)
        logger.debug("template_scored", pattern_id=template.id, units=units, confidence=confidence)
        if confidence <= ALERT_THRESHOLD:
            return None

        now = datetime.now(timezone.utc)
        return PredictiveAlert(
            id=f"alert-{now.strftime('%Y%m%d%H%M%S')}-{template.id}",
            pattern_id=template.id,
            risk_level=risk_level_for(confidence),
            confidence=confidence,
            predicted_violation=f"{template.type} likely to occur",
            time_to_violation=time_to_violation_for(confidence),
            evidence=tuple(evidence),
            prevention_actions=tuple(action.id for action in template.prevention_actions),
            auto_preventable=(
                confidence > AUTO_PREVENT_CONFIDENCE
                and template.historical_prevention_success > AUTO_PREVENT_SUCCESS
            ),
            created_at=now,
        )

    def _check(self, spec: ProbeSpec, context: ProbeContext) -> bool:
        return self.probes.evaluate(spec.probe, context, spec.args)

    def _should_auto_prevent(self, alert: PredictiveAlert) -> bool:
        return (
            self.auto_prevention
            and self.executor is not None
            and alert.auto_preventable
            and alert.risk_level == Severity.CRITICAL
        )
