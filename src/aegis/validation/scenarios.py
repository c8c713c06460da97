"""
Scenario handlers.

Each handler drives one mechanism's real entry point (``ctx.implementation``,
resolved from the catalog) against a fixture built in a fresh scratch
directory, and reports what actually happened as a short outcome string. The
validator compares that string with the scenario's expected outcome; handlers
never decide pass or fail themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from aegis.blueprints.infrastructure.artifact_store import ArtifactStore
from aegis.drift.application.rule_evaluator import RuleEvaluator
from aegis.healing.applier import RepairApplier
from aegis.healing.engine import BlueprintHealingEngine
from aegis.healing.planner import RepairPlanner
from aegis.healing.repair_log import REPAIR_LOG_FILENAME, RepairLog
from aegis.learning.models import SYSTEM_SOURCE, EventRecord
from aegis.learning.pattern_store import PatternStore, initial_confidence
from aegis.prediction.models import (
    CompliancePattern,
    PredictiveAlert,
    PreventionActionSpec,
    PreventionKind,
    ProbeSpec,
)
from aegis.prediction.probes import ProbeContext, ProbeRegistry, default_probe_registry
from aegis.prediction.repo_state import RepoState
from aegis.shared.domain.enums import Severity
from aegis.shared.domain.exceptions import ConfigurationError
from aegis.shared.infrastructure.history_store import JsonHistoryStore
from aegis.validation.models import PreventionMechanism, TestScenario

FIXTURE_VERSION = "1.2.0"

COMPLIANT_BLUEPRINT = f"""\
# @aegisFrameworkVersion: {FIXTURE_VERSION}
# @intent: Validation fixture
id: {{id}}
name: Validation Fixture
version: "{{version}}"
description: Blueprint used by mechanism self-tests
observability:
  events:
    - name: blueprint-initialized
errorStates:
  - name: initialization-failed
    fallback: Show maintenance notice
"""

BROKEN_OBSERVABILITY_BLUEPRINT = f"""\
# @aegisFrameworkVersion: {FIXTURE_VERSION}
# @intent: Validation fixture
id: broken-observability
name: Validation Fixture
version: "{FIXTURE_VERSION}"
observability:
  - blueprint-initialized
errorStates:
  - name: initialization-failed
"""


@dataclass
class ScenarioContext:
    mechanism: PreventionMechanism
    scenario: TestScenario
    implementation: Any
    workdir: Path


@dataclass(frozen=True)
class ScenarioOutcome:
    actual: str
    message: str


ScenarioHandler = Callable[[ScenarioContext], ScenarioOutcome]


class ScenarioRegistry:
    """Scenario id → handler table."""

    def __init__(self, handlers: Mapping[str, ScenarioHandler] | None = None) -> None:
        self._handlers: dict[str, ScenarioHandler] = {}
        for scenario_id, handler in (handlers or {}).items():
            self.register(scenario_id, handler)

    def register(self, scenario_id: str, handler: ScenarioHandler) -> None:
        if scenario_id in self._handlers:
            raise ConfigurationError(
                f"Scenario handler '{scenario_id}' is already registered", context={"scenario": scenario_id}
            )
        self._handlers[scenario_id] = handler

    def get(self, scenario_id: str) -> ScenarioHandler | None:
        return self._handlers.get(scenario_id)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def missing(self, catalog: Iterable[PreventionMechanism]) -> list[str]:
        return sorted(
            f"{mechanism.id}:{scenario.id}"
            for mechanism in catalog
            for scenario in mechanism.scenarios
            if scenario.id not in self._handlers
        )

    def validate(self, catalog: Iterable[PreventionMechanism]) -> None:
        """Raise ConfigurationError if any catalog scenario has no handler."""
        missing = self.missing(catalog)
        if missing:
            raise ConfigurationError(
                f"Scenarios without a handler: {', '.join(missing)}", context={"missing": missing}
            )


# Fixture helpers


def _store(workdir: Path) -> ArtifactStore:
    return ArtifactStore(
        workdir,
        blueprints_dir="blueprints",
        blueprint_filename="blueprint.yaml",
        default_framework_version=FIXTURE_VERSION,
    )


def _write_blueprint(store: ArtifactStore, name: str, text: str) -> Path:
    path = store.blueprints_path / name / store.blueprint_filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _healing_engine(
    workdir: Path,
    engine_cls: Callable[..., BlueprintHealingEngine] = BlueprintHealingEngine,
    repair_log: RepairLog | None = None,
) -> BlueprintHealingEngine:
    store = _store(workdir)
    state = workdir / ".aegis"
    applier = RepairApplier(
        store,
        repair_log or RepairLog(state / REPAIR_LOG_FILENAME),
        lock_path=state / "repair.lock",
        lock_timeout=5.0,
    )
    return engine_cls(
        store,
        RuleEvaluator(framework_version=FIXTURE_VERSION),
        RepairPlanner(framework_version=FIXTURE_VERSION),
        applier,
    )


def _system_event(key: str) -> EventRecord:
    return EventRecord(
        source=SYSTEM_SOURCE,
        key=key,
        type="version-mismatch",
        timestamp=datetime.now(timezone.utc),
        severity=Severity.MEDIUM,
        evidence=(f"fixture occurrence of {key}",),
    )


def _template(pattern_id: str, base_confidence: float, **probes: tuple[ProbeSpec, ...]) -> CompliancePattern:
    return CompliancePattern(
        id=pattern_id,
        type=pattern_id,
        description="Validation fixture template",
        trigger_conditions=probes.get("triggers", ()),
        risk_indicators=probes.get("indicators", ()),
        predictive_signals=probes.get("signals", ()),
        prevention_actions=(),
        base_confidence=base_confidence,
        historical_prevention_success=0.0,
    )


def _fixture_alert() -> PredictiveAlert:
    return PredictiveAlert(
        id="alert-fixture",
        pattern_id="fixture-pattern",
        risk_level=Severity.CRITICAL,
        confidence=0.95,
        predicted_violation="fixture violation likely to occur",
        time_to_violation="Immediate (< 1 hour)",
        evidence=("fixture",),
        prevention_actions=("notify-fixture",),
        auto_preventable=True,
    )


_NOTIFY_FIXTURE = PreventionActionSpec(
    id="notify-fixture",
    kind=PreventionKind.NOTIFY,
    description="Fixture notification",
)


# Drift detection


def malformed_artifact(ctx: ScenarioContext) -> ScenarioOutcome:
    store = _store(ctx.workdir)
    path = _write_blueprint(store, "malformed", "id: [unclosed\nname: {broken\n")
    report = ctx.implementation(framework_version=FIXTURE_VERSION).evaluate(store.load(path))
    issue_ids = [issue.id for issue in report.issues]
    return ScenarioOutcome(report.status.value, f"status {report.status.value}, issues {issue_ids}")


def healthy_artifact(ctx: ScenarioContext) -> ScenarioOutcome:
    store = _store(ctx.workdir)
    path = _write_blueprint(store, "compliant", COMPLIANT_BLUEPRINT.format(id="compliant", version=FIXTURE_VERSION))
    report = ctx.implementation(framework_version=FIXTURE_VERSION).evaluate(store.load(path))
    return ScenarioOutcome(report.status.value, f"status {report.status.value}, score {report.score}")


# Self-healing


def invalid_version_detection(ctx: ScenarioContext) -> ScenarioOutcome:
    engine = _healing_engine(ctx.workdir, ctx.implementation)
    path = _write_blueprint(engine.store, "short-version", COMPLIANT_BLUEPRINT.format(id="short-version", version="1.2"))
    report = engine.analyze(engine.store.load(path))

    issue = next((i for i in report.issues if i.id == "invalid-version-format"), None)
    if issue is None:
        return ScenarioOutcome("missed", "invalid version format was not reported")
    action = next((a for a in report.actions if a.issue_id == issue.id), None)
    if not issue.auto_fixable or action is None:
        return ScenarioOutcome("unplanned", "invalid version format has no planned repair")
    return ScenarioOutcome("detected", f"{issue.severity.value} issue, repair to {action.new_value}")


def auto_repair_roundtrip(ctx: ScenarioContext) -> ScenarioOutcome:
    engine = _healing_engine(ctx.workdir, ctx.implementation)
    path = _write_blueprint(engine.store, "short-version", COMPLIANT_BLUEPRINT.format(id="short-version", version="1.2"))
    summary = engine.heal_all(auto_fix=True)

    version = engine.store.load(path).get("version")
    if version != "1.2.0":
        return ScenarioOutcome("not-repaired", f"version is {version!r} after healing")
    return ScenarioOutcome("repaired", f"version 1.2 repaired to {version}, {summary.issues_fixed} issues fixed")


def failed_repair_leaves_file_intact(ctx: ScenarioContext) -> ScenarioOutcome:
    engine = _healing_engine(ctx.workdir, ctx.implementation)
    path = _write_blueprint(engine.store, "broken-observability", BROKEN_OBSERVABILITY_BLUEPRINT)
    before = path.read_bytes()
    summary = engine.heal_all(auto_fix=True)

    if path.read_bytes() != before:
        return ScenarioOutcome("modified", "file changed although the repair could not be applied")
    if not summary.failures:
        return ScenarioOutcome("unreported", "repair failure was not reported")
    return ScenarioOutcome("unchanged", f"repair failed cleanly: {summary.failures[0].error}")


# Pattern recognition


def recurring_pattern_merge(ctx: ScenarioContext) -> ScenarioOutcome:
    store = ctx.implementation()
    event = _system_event("version-mismatch")
    store.ingest([event, _system_event("version-mismatch")])

    pattern = store.get(event.pattern_id)
    if pattern is None:
        return ScenarioOutcome("missing", f"pattern {event.pattern_id} was not created")
    expected_confidence = min(1.0, initial_confidence(event) + 0.1)
    if pattern.frequency != 2 or abs(pattern.confidence - expected_confidence) > 1e-9:
        return ScenarioOutcome(
            "not-merged", f"frequency {pattern.frequency}, confidence {pattern.confidence}"
        )
    return ScenarioOutcome("merged", f"frequency 2, confidence {pattern.confidence}")


def insight_generation(ctx: ScenarioContext) -> ScenarioOutcome:
    store = ctx.implementation()
    patterns = store.ingest([_system_event(key) for key in ("schema-drift", "schema-drift", "stale-docs", "stale-docs")])
    insights = [insight.pattern for insight in store.insights(patterns)]
    if "recurring-violations" not in insights:
        return ScenarioOutcome("none", f"insights: {insights}")
    return ScenarioOutcome("generated", f"insights: {insights}")


# Predictive compliance


def risk_bucketing(ctx: ScenarioContext) -> ScenarioOutcome:
    always = ProbeSpec(probe="always", description="Always satisfied")
    critical = _template("boundary-critical", 1.0, triggers=(always, always, always))
    high = _template("boundary-high", 0.99999, triggers=(always, always, always))
    monitor = ctx.implementation(
        (critical, high),
        probes=ProbeRegistry({"always": lambda probe_ctx: True}),
        auto_prevention=False,
    )
    probe_ctx = ProbeContext(project_root=ctx.workdir, repo=RepoState(ctx.workdir))

    levels = {}
    for template in (critical, high):
        alert = monitor.evaluate_template(template, probe_ctx)
        levels[template.id] = (alert.confidence, alert.risk_level) if alert else (None, None)

    if levels[critical.id][1] == Severity.CRITICAL and levels[high.id][1] == Severity.HIGH:
        return ScenarioOutcome("calibrated", f"0.9 -> critical, {levels[high.id][0]} -> high")
    return ScenarioOutcome("miscalibrated", f"levels: {levels}")


def recurring_indicator(ctx: ScenarioContext) -> ScenarioOutcome:
    store = PatternStore()
    event = _system_event("version-mismatch")
    patterns = store.ingest([event, _system_event("version-mismatch")])

    args = {"pattern_id": event.pattern_id, "min_frequency": 2}
    template = _template(
        "recurring-fixture",
        1.0,
        triggers=(ProbeSpec(probe="recurring-pattern", description="Pattern recurred", args=args),),
        indicators=(ProbeSpec(probe="recurring-pattern", description="Recurring pattern indicator", args=args),),
    )
    monitor = ctx.implementation((template,), probes=default_probe_registry(), auto_prevention=False)
    result = monitor.monitor(patterns, RepoState(ctx.workdir))

    alert = next((a for a in result.alerts if a.pattern_id == template.id), None)
    if alert is None:
        return ScenarioOutcome("silent", f"no alert for recurring pattern {event.pattern_id}")
    return ScenarioOutcome("alerted", f"confidence {alert.confidence}, {len(alert.evidence)} evidence items")


# Prevention execution


def dry_run_plans_only(ctx: ScenarioContext) -> ScenarioOutcome:
    ledger = JsonHistoryStore(ctx.workdir / "prevention-ledger.json")
    executor = ctx.implementation(ctx.workdir, ledger, dry_run=True)
    outcomes = executor.execute(_fixture_alert(), [_NOTIFY_FIXTURE], "fixture-state")
    statuses = {outcome.status.value for outcome in outcomes}
    if ledger.load():
        return ScenarioOutcome("recorded", "dry run wrote to the prevention ledger")
    return ScenarioOutcome(statuses.pop() if len(statuses) == 1 else "mixed", f"outcomes: {sorted(statuses)}")


def ledger_skips_repeat(ctx: ScenarioContext) -> ScenarioOutcome:
    ledger = JsonHistoryStore(ctx.workdir / "prevention-ledger.json")
    executor = ctx.implementation(ctx.workdir, ledger)
    first = executor.execute(_fixture_alert(), [_NOTIFY_FIXTURE], "fixture-state")
    second = executor.execute(_fixture_alert(), [_NOTIFY_FIXTURE], "fixture-state")
    return ScenarioOutcome(
        second[0].status.value,
        f"first run {first[0].status.value}, second run {second[0].status.value}",
    )


# Audit trail


def repair_logged(ctx: ScenarioContext) -> ScenarioOutcome:
    repair_log = ctx.implementation(ctx.workdir / ".aegis" / REPAIR_LOG_FILENAME)
    engine = _healing_engine(ctx.workdir, repair_log=repair_log)
    _write_blueprint(engine.store, "short-version", COMPLIANT_BLUEPRINT.format(id="short-version", version="1.2"))
    engine.heal_all(auto_fix=True)

    entries = repair_log.entries_for("short-version")
    logged = [action["issueId"] for entry in entries for action in entry.get("actions", [])]
    if "invalid-version-format" not in logged:
        return ScenarioOutcome("unlogged", f"logged actions: {logged}")
    return ScenarioOutcome("logged", f"{len(entries)} entries, actions {logged}")


BUILTIN_SCENARIOS: dict[str, ScenarioHandler] = {
    "malformed-artifact": malformed_artifact,
    "healthy-artifact": healthy_artifact,
    "invalid-version-detection": invalid_version_detection,
    "auto-repair-roundtrip": auto_repair_roundtrip,
    "failed-repair-leaves-file-intact": failed_repair_leaves_file_intact,
    "recurring-pattern-merge": recurring_pattern_merge,
    "insight-generation": insight_generation,
    "risk-bucketing": risk_bucketing,
    "recurring-indicator": recurring_indicator,
    "dry-run-plans-only": dry_run_plans_only,
    "ledger-skips-repeat": ledger_skips_repeat,
    "repair-logged": repair_logged,
}


def default_scenario_registry() -> ScenarioRegistry:
    return ScenarioRegistry(BUILTIN_SCENARIOS)
