"""
Blueprint Healing Engine.

Scans every blueprint, plans repairs and (optionally) applies the safe ones.
Repaired artifacts are re-read and re-evaluated so the summary never reports
pre-repair state as final.
"""

from __future__ import annotations

from aegis.blueprints.domain.models import Artifact
from aegis.blueprints.infrastructure.artifact_store import ArtifactStore
from aegis.drift.application.rule_evaluator import RuleEvaluator
from aegis.drift.domain.enums import HealthStatus
from aegis.drift.domain.models import HealthReport
from aegis.healing.applier import RepairApplier
from aegis.healing.models import HealingSummary
from aegis.healing.planner import RepairPlanner
from aegis.shared.domain.enums import Severity
from aegis.shared.infrastructure.history_store import JsonHistoryStore
from aegis.shared.infrastructure.logging import get_logger
from aegis.telemetry import TelemetryEventType, TelemetrySink, emit_event

logger = get_logger(__name__)

_STATUS_SEVERITY = {
    HealthStatus.HEALTHY: Severity.LOW,
    HealthStatus.WARNING: Severity.MEDIUM,
    HealthStatus.CRITICAL: Severity.HIGH,
    HealthStatus.CORRUPTED: Severity.CRITICAL,
}


class BlueprintHealingEngine:
    """Runs evaluate → plan → apply → re-evaluate over the blueprint tree."""

    def __init__(
        self,
        store: ArtifactStore,
        evaluator: RuleEvaluator,
        planner: RepairPlanner,
        applier: RepairApplier,
        history: JsonHistoryStore | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self.store = store
        self.evaluator = evaluator
        self.planner = planner
        self.applier = applier
        self.history = history
        self.telemetry = telemetry

    def analyze(self, artifact: Artifact) -> HealthReport:
        """Evaluate one artifact and attach its planned repairs."""
        report = self.evaluator.evaluate(artifact)
        return self.planner.plan_report(report, artifact)

    def scan(self) -> list[HealthReport]:
        return [self.analyze(artifact) for artifact in self.store.load_all()]

    def heal_all(self, auto_fix: bool = False) -> HealingSummary:
        """Analyze every blueprint and, with ``auto_fix``, repair the safe issues."""
        summary = HealingSummary()
        logger.info("healing_scan_started", auto_fix=auto_fix, root=str(self.store.project_root))

        for artifact in self.store.load_all():
            report = self.analyze(artifact)
            summary.blueprints_scanned += 1
            summary.issues_detected += len(report.issues)
            summary.critical_issues += sum(1 for i in report.issues if i.severity == Severity.CRITICAL)

            if auto_fix and report.safe_actions:
                report = self._repair(artifact, report, summary)

            summary.reports.append(report)

        summary.healthy_count = sum(1 for r in summary.reports if r.status == HealthStatus.HEALTHY)
        summary.overall_status = max(
            (r.status for r in summary.reports),
            key=lambda status: status.rank,
            default=HealthStatus.HEALTHY,
        )
        summary.summary = _summary_text(summary, auto_fix)
        summary.recommendations = _recommendations(summary)

        if self.history is not None:
            try:
                self.history.append([summary.history_entry()])
            except OSError as e:
                logger.error("healing_history_write_failed", path=str(self.history.path), error=str(e))

        logger.info(
            "healing_scan_completed",
            scanned=summary.blueprints_scanned,
            healthy=summary.healthy_count,
            repaired=summary.repaired_count,
            issues_fixed=summary.issues_fixed,
            status=summary.overall_status.value,
        )
        emit_event(
            self.telemetry,
            TelemetryEventType.SCAN_COMPLETED,
            _STATUS_SEVERITY[summary.overall_status],
            blueprints_scanned=summary.blueprints_scanned,
            issues_detected=summary.issues_detected,
            repaired_count=summary.repaired_count,
            overall_status=summary.overall_status.value,
        )
        return summary

    def _repair(self, artifact: Artifact, report: HealthReport, summary: HealingSummary) -> HealthReport:
        result = self.applier.apply(report)
        if not result.success:
            summary.failures.append(result)
            return report
        if not result.modified:
            return report

        after = self.analyze(self.store.load(artifact.path))
        resolved = {i.id for i in report.issues} - {i.id for i in after.issues}
        summary.repaired_count += 1
        summary.issues_fixed += len(resolved)
        logger.info(
            "artifact_repaired",
            artifact_id=after.artifact_id,
            score_before=report.score,
            score_after=after.score,
            resolved=sorted(resolved),
        )
        return after


def _summary_text(summary: HealingSummary, auto_fix: bool) -> str:
    failing = sum(1 for r in summary.reports if r.status.is_failing)
    text = f"Scanned {summary.blueprints_scanned} blueprints: {summary.healthy_count} healthy, {failing} critical"
    if auto_fix:
        text += f", {summary.repaired_count} auto-repaired"
        if summary.failures:
            text += f", {len(summary.failures)} repair failures"
    return text


def _recommendations(summary: HealingSummary) -> list[str]:
    recommendations = []

    needs_attention = [r for r in summary.reports if r.status != HealthStatus.HEALTHY]
    if needs_attention:
        recommendations.append(f"Review {len(needs_attention)} blueprints requiring attention")

    manual = [r for r in summary.reports if any(a.requires_approval for a in r.actions)]
    if manual:
        recommendations.append(f"{len(manual)} blueprints need manual review for complex repairs")

    unfixable = [r for r in summary.reports if any(not i.auto_fixable for i in r.issues)]
    if unfixable:
        recommendations.append(f"{len(unfixable)} blueprints have issues that cannot be repaired automatically")

    if summary.failures:
        recommendations.append("Inspect the repair log for failed repair batches")

    recommendations.append("Schedule regular blueprint health checks")
    return recommendations
