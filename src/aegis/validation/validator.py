"""
Mechanism Validator.

Runs every registered prevention mechanism's scenarios against its real
entry point and rolls the results up into a SystematicValidationReport.

Mechanisms are opaque to the validator: it resolves the catalog's
implementation reference, hands it to the scenario handler and compares the
reported outcome with the expected one. Adding a mechanism means adding a
catalog entry and scenario handlers; nothing here changes.

Per scenario:
    outcome == expected          -> passed
    mismatch, scenario critical  -> error
    mismatch, otherwise          -> warning
    handler raised               -> error

Per mechanism: fail if any error, warning if any warning, else pass. An
unresolvable implementation is an ``error`` result with zero tests.

Report: fail if any critical mechanism is not pass, warning if any mechanism
is not pass, else pass.
"""

from __future__ import annotations

import tempfile
import time
from pathlib import Path
from typing import Sequence

from aegis.shared.domain.enums import Severity
from aegis.shared.infrastructure.history_store import JsonHistoryStore
from aegis.shared.infrastructure.logging import get_logger
from aegis.telemetry import TelemetryEventType, TelemetrySink, emit_event
from aegis.validation.catalog import resolve_implementation
from aegis.validation.models import (
    PreventionMechanism,
    SystematicValidationReport,
    TestScenario,
    ValidationResult,
    ValidationStatus,
)
from aegis.validation.scenarios import ScenarioContext, ScenarioRegistry, default_scenario_registry

logger = get_logger(__name__)

_FAILED = (ValidationStatus.FAIL, ValidationStatus.ERROR)

_STATUS_SEVERITY = {
    ValidationStatus.PASS: Severity.LOW,
    ValidationStatus.WARNING: Severity.MEDIUM,
    ValidationStatus.FAIL: Severity.CRITICAL,
    ValidationStatus.ERROR: Severity.CRITICAL,
}


class MechanismValidator:
    """Validates a catalog of prevention mechanisms.

    Args:
        catalog: Mechanisms to validate, in report order
        scenarios: Handler table; validated against the catalog here
        history: Bounded store receiving every result
        workspace: Parent directory for per-scenario scratch directories

    Raises:
        ConfigurationError: if a catalog scenario has no handler
    """

    def __init__(
        self,
        catalog: Sequence[PreventionMechanism],
        scenarios: ScenarioRegistry | None = None,
        history: JsonHistoryStore | None = None,
        workspace: Path | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self.catalog = tuple(catalog)
        self.scenarios = scenarios or default_scenario_registry()
        self.scenarios.validate(self.catalog)
        self.history = history
        self.workspace = workspace
        self.telemetry = telemetry

    def validate_all(self) -> SystematicValidationReport:
        logger.info("mechanism_validation_started", mechanisms=len(self.catalog))
        results = [self.validate_mechanism(mechanism) for mechanism in self.catalog]
        criticality = {mechanism.id: mechanism.criticality for mechanism in self.catalog}

        critical_not_passing = [
            r for r in results if criticality[r.mechanism_id] == Severity.CRITICAL and not r.passed
        ]
        if critical_not_passing:
            overall = ValidationStatus.FAIL
        elif any(not r.passed for r in results):
            overall = ValidationStatus.WARNING
        else:
            overall = ValidationStatus.PASS

        report = SystematicValidationReport(
            overall_status=overall,
            mechanisms_validated=len(results),
            mechanisms_passed=sum(1 for r in results if r.passed),
            mechanisms_failed=sum(1 for r in results if r.status in _FAILED),
            critical_failures=sum(1 for r in critical_not_passing if r.status in _FAILED),
            results=results,
            recommendations=_recommendations(results),
        )

        if self.history is not None and results:
            try:
                self.history.append([result.to_json() for result in results])
            except OSError as e:
                logger.error("validation_history_write_failed", path=str(self.history.path), error=str(e))

        logger.info(
            "mechanism_validation_completed",
            status=report.overall_status.value,
            passed=report.mechanisms_passed,
            failed=report.mechanisms_failed,
            critical_failures=report.critical_failures,
        )
        emit_event(
            self.telemetry,
            TelemetryEventType.VALIDATION_COMPLETED,
            _STATUS_SEVERITY[report.overall_status],
            overall_status=report.overall_status.value,
            mechanisms_validated=report.mechanisms_validated,
            mechanisms_failed=report.mechanisms_failed,
        )
        return report

    def validate_mechanism(self, mechanism: PreventionMechanism) -> ValidationResult:
        started = time.perf_counter()
        result = ValidationResult(
            mechanism_id=mechanism.id,
            status=ValidationStatus.PASS,
            criticality=mechanism.criticality,
        )

        try:
            implementation = resolve_implementation(mechanism.implementation_ref)
        except (ImportError, AttributeError, ValueError) as e:
            logger.error(
                "mechanism_unresolvable",
                mechanism_id=mechanism.id,
                implementation=mechanism.implementation_ref,
                error=str(e),
            )
            result.status = ValidationStatus.ERROR
            result.errors.append(f"Implementation not found: {mechanism.implementation_ref or '<none>'} ({e})")
            result.recommendations.append("Implement the missing mechanism entry point")
            result.execution_time_ms = _elapsed_ms(started)
            return result

        result.evidence.append(f"Implementation resolved: {mechanism.implementation_ref}")

        for scenario in mechanism.scenarios:
            result.tests_run += 1
            self._run_scenario(mechanism, scenario, implementation, result)

        if result.errors:
            result.status = ValidationStatus.FAIL
        elif result.warnings:
            result.status = ValidationStatus.WARNING

        if result.tests_failed:
            result.recommendations.append(f"Fix {result.tests_failed} failed test scenarios")
        if mechanism.criticality == Severity.CRITICAL and not result.passed:
            result.recommendations.append("Critical mechanism requires immediate attention")

        result.execution_time_ms = _elapsed_ms(started)
        logger.info(
            "mechanism_validated",
            mechanism_id=mechanism.id,
            status=result.status.value,
            tests_run=result.tests_run,
            tests_failed=result.tests_failed,
        )
        return result

    def _run_scenario(
        self,
        mechanism: PreventionMechanism,
        scenario: TestScenario,
        implementation: object,
        result: ValidationResult,
    ) -> None:
        handler = self.scenarios.get(scenario.id)
        if handler is None:
            # Only reachable when the registry was changed after construction.
            result.tests_failed += 1
            result.errors.append(f"{scenario.name}: no handler registered for scenario '{scenario.id}'")
            return

        try:
            with tempfile.TemporaryDirectory(prefix=f"aegis-{scenario.id}-", dir=self.workspace) as tmp:
                outcome = handler(
                    ScenarioContext(
                        mechanism=mechanism,
                        scenario=scenario,
                        implementation=implementation,
                        workdir=Path(tmp),
                    )
                )
        except Exception as e:
            logger.warning("scenario_crashed", mechanism_id=mechanism.id, scenario_id=scenario.id, error=str(e))
            result.tests_failed += 1
            result.errors.append(f"{scenario.name}: test execution failed - {type(e).__name__}: {e}")
            return

        if outcome.actual == scenario.expected_outcome:
            result.tests_passed += 1
            result.evidence.append(f"{scenario.name}: {outcome.message}")
            return

        result.tests_failed += 1
        message = f"{scenario.name}: expected '{scenario.expected_outcome}', got '{outcome.actual}' ({outcome.message})"
        if scenario.risk_level == Severity.CRITICAL:
            result.errors.append(message)
        else:
            result.warnings.append(message)
        logger.debug("scenario_mismatch", mechanism_id=mechanism.id, scenario_id=scenario.id, actual=outcome.actual)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def _recommendations(results: list[ValidationResult]) -> list[str]:
    recommendations = []

    failed = [r for r in results if r.status in _FAILED]
    if failed:
        recommendations.append(f"Address {len(failed)} failed prevention mechanisms immediately")

    warned = [r for r in results if r.status == ValidationStatus.WARNING]
    if warned:
        recommendations.append(f"Review {len(warned)} prevention mechanisms with warnings")

    for result in results:
        for item in result.recommendations:
            recommendations.append(f"{result.mechanism_id}: {item}")

    recommendations.append("Schedule regular validation every 7 days")
    return recommendations
