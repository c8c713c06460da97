"""
Aegis orchestrator.

Wires the components for one project and sequences them per CLI invocation.
Settings are read here, once, and passed down as explicit constructor
arguments.

State layout under ``<project>/.aegis``::

    repair.lock
    healing/repair-log.jsonl
    healing/healing-history.json
    learning/pattern-analysis.json
    prediction/alert-history.json
    prediction/prevention-ledger.json
    validation/validation-history.json
    drift-log/validation-events.jsonl
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from aegis.blueprints.infrastructure.artifact_store import ArtifactStore
from aegis.drift.application.rule_evaluator import RuleEvaluator
from aegis.healing.applier import RepairApplier
from aegis.healing.engine import BlueprintHealingEngine
from aegis.healing.models import HealingSummary
from aegis.healing.planner import RepairPlanner
from aegis.healing.repair_log import REPAIR_LOG_FILENAME, RepairLog
from aegis.learning.event_log import DriftLogReader, append_events, parse_timestamp
from aegis.learning.models import PatternAnalysis
from aegis.learning.pattern_store import PatternStore
from aegis.prediction.catalog import load_compliance_catalog
from aegis.prediction.models import MonitoringResult
from aegis.prediction.monitor import PredictiveMonitor
from aegis.prediction.prevention import PreventionExecutor
from aegis.prediction.repo_state import RepoState
from aegis.shared.infrastructure.config import Settings, settings as default_settings
from aegis.shared.infrastructure.execution.command_runner import CommandRunner
from aegis.shared.infrastructure.history_store import JsonHistoryStore
from aegis.shared.infrastructure.logging import get_logger
from aegis.telemetry import TelemetrySink
from aegis.validation.catalog import load_mechanism_catalog
from aegis.validation.models import SystematicValidationReport
from aegis.validation.validator import MechanismValidator

logger = get_logger(__name__)

VALIDATION_EVENTS_LOG = "validation-events.jsonl"


@dataclass(frozen=True)
class StatePaths:
    root: Path

    @property
    def lock(self) -> Path:
        return self.root / "repair.lock"

    @property
    def repair_log(self) -> Path:
        return self.root / "healing" / REPAIR_LOG_FILENAME

    @property
    def healing_history(self) -> Path:
        return self.root / "healing" / "healing-history.json"

    @property
    def pattern_analysis(self) -> Path:
        return self.root / "learning" / "pattern-analysis.json"

    @property
    def alert_history(self) -> Path:
        return self.root / "prediction" / "alert-history.json"

    @property
    def prevention_ledger(self) -> Path:
        return self.root / "prediction" / "prevention-ledger.json"

    @property
    def validation_history(self) -> Path:
        return self.root / "validation" / "validation-history.json"

    @property
    def drift_log_dir(self) -> Path:
        return self.root / "drift-log"

    @property
    def validation_events(self) -> Path:
        return self.drift_log_dir / VALIDATION_EVENTS_LOG


class AegisOrchestrator:
    """Entry point for every engine operation on one project tree.

    Args:
        project_root: Project to operate on
        config: Settings to take defaults from; the global settings by default
        telemetry: Sink handed to every component
        compliance_catalog: Override for the compliance-pattern catalog file
        mechanism_catalog: Override for the prevention-mechanism catalog file
    """

    def __init__(
        self,
        project_root: Path,
        config: Settings | None = None,
        telemetry: TelemetrySink | None = None,
        compliance_catalog: Path | None = None,
        mechanism_catalog: Path | None = None,
    ) -> None:
        self.project_root = Path(project_root).resolve()
        self.config = config or default_settings
        self.telemetry = telemetry
        self.compliance_catalog = compliance_catalog
        self.mechanism_catalog = mechanism_catalog
        self.paths = StatePaths(self.config.state_path(self.project_root))
        self.store = ArtifactStore(
            self.project_root,
            blueprints_dir=self.config.blueprints_dir,
            blueprint_filename=self.config.blueprint_filename,
            default_framework_version=self.config.default_framework_version,
        )

    def healing_engine(self) -> BlueprintHealingEngine:
        framework_version = self.store.framework_version()
        applier = RepairApplier(
            self.store,
            RepairLog(self.paths.repair_log),
            lock_path=self.paths.lock,
            lock_timeout=self.config.lock_timeout,
            telemetry=self.telemetry,
        )
        return BlueprintHealingEngine(
            self.store,
            RuleEvaluator(framework_version=framework_version),
            RepairPlanner(framework_version=framework_version),
            applier,
            history=JsonHistoryStore(self.paths.healing_history, limit=self.config.healing_history_limit),
            telemetry=self.telemetry,
        )

    def command_runner(self) -> CommandRunner:
        return CommandRunner(default_timeout=self.config.command_timeout)

    def scan(self) -> HealingSummary:
        """Evaluate every blueprint without touching them."""
        return self.healing_engine().heal_all(auto_fix=False)

    def heal(self, auto_fix: bool = False) -> HealingSummary:
        return self.healing_engine().heal_all(auto_fix=auto_fix)

    def patterns(self, save: bool = True) -> PatternAnalysis:
        """Learn patterns from the project's drift logs and the engine's own event log."""
        reader = DriftLogReader([self.project_root / self.config.drift_log_dir, self.paths.drift_log_dir])
        events = reader.read()
        store = PatternStore(telemetry=self.telemetry)
        analysis = store.analyze(events, reader.errors)
        if save:
            try:
                store.save_analysis(self.paths.pattern_analysis, analysis)
            except OSError as e:
                logger.error("pattern_analysis_write_failed", path=str(self.paths.pattern_analysis), error=str(e))
        return analysis

    def monitor(self, dry_run: bool | None = None, auto_prevention: bool | None = None) -> MonitoringResult:
        """Score the compliance catalog against the current repository state.

        Raises:
            ConfigurationError: if the catalog is malformed or names an unknown probe
        """
        catalog = load_compliance_catalog(self.compliance_catalog)
        analysis = self.patterns(save=False)
        reports = self.healing_engine().scan()
        runner = self.command_runner()

        executor = PreventionExecutor(
            self.project_root,
            JsonHistoryStore(self.paths.prevention_ledger, limit=self.config.prevention_ledger_limit),
            healer=lambda: self.heal(auto_fix=True),
            runner=runner,
            state_dir=self.paths.root,
            dry_run=self.config.prevention_dry_run if dry_run is None else dry_run,
            telemetry=self.telemetry,
        )
        monitor = PredictiveMonitor(
            catalog,
            executor=executor,
            alert_history=JsonHistoryStore(self.paths.alert_history, limit=self.config.alert_history_limit),
            auto_prevention=self.config.auto_prevention_enabled if auto_prevention is None else auto_prevention,
            validation_max_age_hours=self.config.validation_max_age_hours,
            telemetry=self.telemetry,
        )
        return monitor.monitor(
            analysis.patterns,
            RepoState(self.project_root, runner=runner),
            reports=reports,
            last_validation_at=self.last_validation_at(),
        )

    def validate_mechanisms(self) -> SystematicValidationReport:
        """Run the mechanism self-tests and feed failures back into the drift log.

        Raises:
            ConfigurationError: if the catalog is malformed or a scenario has no handler
        """
        validator = MechanismValidator(
            load_mechanism_catalog(self.mechanism_catalog),
            history=JsonHistoryStore(self.paths.validation_history, limit=self.config.validation_history_limit),
            telemetry=self.telemetry,
        )
        report = validator.validate_all()

        events = PatternStore(telemetry=self.telemetry).record_validation(report)
        try:
            written = append_events(self.paths.validation_events, events)
        except OSError as e:
            logger.error("validation_events_write_failed", path=str(self.paths.validation_events), error=str(e))
        else:
            if written:
                logger.info("validation_feedback_recorded", events=written, path=str(self.paths.validation_events))
        return report

    def last_validation_at(self) -> datetime | None:
        last = JsonHistoryStore(self.paths.validation_history).last()
        return parse_timestamp(last.get("timestamp")) if last else None
