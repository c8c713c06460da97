"""
Prevention Executor.

Carries out the prevention actions of critical, auto-preventable alerts.

Every outcome is written to a bounded ledger keyed by action id and the
repository fingerprint. An action already executed against the same
repository state is recorded as ``skipped`` and not run again, so re-running
the monitor on an unchanged tree has no further side effects. Failed actions
are retried on the next run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from aegis.healing.models import HealingSummary
from aegis.prediction.models import (
    PredictiveAlert,
    PreventionActionSpec,
    PreventionKind,
    PreventionOutcome,
    PreventionStatus,
)
from aegis.shared.domain.enums import Severity
from aegis.shared.infrastructure.execution.command_runner import CommandRunner
from aegis.shared.infrastructure.history_store import JsonHistoryStore
from aegis.shared.infrastructure.logging import get_logger
from aegis.telemetry import TelemetryEventType, TelemetrySink, emit_event

logger = get_logger(__name__)

DEFAULT_DETACHED_LOG = "logs/prevention.log"


class PreventionExecutor:
    """Executes prevention actions idempotently and logs every one.

    Args:
        project_root: Working directory for commands
        ledger: Bounded history of executed actions
        healer: Callable running the healing engine with auto-fix
        runner: Command runner for blocking and detached commands
        state_dir: Where detached commands log when the action names no log
        dry_run: Record ``planned`` outcomes without executing anything
    """

    def __init__(
        self,
        project_root: Path,
        ledger: JsonHistoryStore,
        healer: Callable[[], HealingSummary] | None = None,
        runner: CommandRunner | None = None,
        state_dir: Path | None = None,
        dry_run: bool = False,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self.project_root = Path(project_root)
        self.ledger = ledger
        self.healer = healer
        self.runner = runner or CommandRunner()
        self.state_dir = Path(state_dir) if state_dir is not None else self.project_root / ".aegis"
        self.dry_run = dry_run
        self.telemetry = telemetry

    def execute(
        self,
        alert: PredictiveAlert,
        actions: Sequence[PreventionActionSpec],
        fingerprint: str,
    ) -> list[PreventionOutcome]:
        done = self._executed_keys()
        outcomes = []

        for action in actions:
            if (action.id, fingerprint) in done:
                outcome = self._outcome(action, alert, PreventionStatus.SKIPPED, "already executed for this state", fingerprint)
            elif self.dry_run:
                outcome = self._outcome(action, alert, PreventionStatus.PLANNED, action.description, fingerprint)
            else:
                outcome = self._run(action, alert, fingerprint)
                if outcome.status == PreventionStatus.EXECUTED:
                    done.add((action.id, fingerprint))

            logger.info(
                "prevention_action",
                action_id=action.id,
                pattern_id=alert.pattern_id,
                kind=action.kind.value,
                status=outcome.status.value,
                detail=outcome.detail,
            )
            outcomes.append(outcome)

        recorded = [o for o in outcomes if o.status in (PreventionStatus.EXECUTED, PreventionStatus.FAILED)]
        if recorded:
            try:
                self.ledger.append([o.to_json() for o in recorded])
            except OSError as e:
                logger.error("prevention_ledger_write_failed", path=str(self.ledger.path), error=str(e))

        emit_event(
            self.telemetry,
            TelemetryEventType.PREVENTION_EXECUTED,
            Severity.CRITICAL if any(o.status == PreventionStatus.FAILED for o in outcomes) else Severity.HIGH,
            pattern_id=alert.pattern_id,
            outcomes={o.action_id: o.status.value for o in outcomes},
        )
        return outcomes

    def _executed_keys(self) -> set[tuple[str, str]]:
        return {
            (entry.get("actionId"), entry.get("fingerprint"))
            for entry in self.ledger.load()
            if entry.get("status") == PreventionStatus.EXECUTED.value
        }

    def _run(self, action: PreventionActionSpec, alert: PredictiveAlert, fingerprint: str) -> PreventionOutcome:
        if action.kind == PreventionKind.NOTIFY:
            logger.warning("prevention_alert", pattern_id=alert.pattern_id, message=action.description)
            return self._outcome(action, alert, PreventionStatus.EXECUTED, action.description, fingerprint)

        if action.kind == PreventionKind.REPAIR:
            if self.healer is None:
                return self._outcome(action, alert, PreventionStatus.FAILED, "no healer configured", fingerprint)
            summary = self.healer()
            status = PreventionStatus.FAILED if summary.failures else PreventionStatus.EXECUTED
            detail = f"repaired {summary.repaired_count} blueprints, fixed {summary.issues_fixed} issues"
            return self._outcome(action, alert, status, detail, fingerprint)

        if action.kind == PreventionKind.DETACHED_COMMAND:
            log_path = self.project_root / action.log if action.log else self.state_dir / DEFAULT_DETACHED_LOG
            pid = self.runner.spawn_detached(action.command, log_path, cwd=self.project_root)
            if pid is None:
                return self._outcome(action, alert, PreventionStatus.FAILED, "could not start process", fingerprint)
            return self._outcome(action, alert, PreventionStatus.EXECUTED, f"pid {pid}, log {log_path}", fingerprint)

        result = self.runner.run(action.command, cwd=self.project_root, timeout=action.timeout)
        if result.is_success:
            return self._outcome(action, alert, PreventionStatus.EXECUTED, f"exit 0 in {result.duration:.1f}s", fingerprint)
        reason = "timed out" if result.is_timeout else f"exit {result.exit_code}"
        detail = f"{reason}: {result.stderr.strip()[:200]}" if result.stderr.strip() else reason
        return self._outcome(action, alert, PreventionStatus.FAILED, detail, fingerprint)

    @staticmethod
    def _outcome(
        action: PreventionActionSpec,
        alert: PredictiveAlert,
        status: PreventionStatus,
        detail: str,
        fingerprint: str,
    ) -> PreventionOutcome:
        return PreventionOutcome(
            action_id=action.id,
            pattern_id=alert.pattern_id,
            kind=action.kind,
            status=status,
            detail=detail,
            fingerprint=fingerprint,
        )
