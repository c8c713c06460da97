"""Domain models for prevention-mechanism validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from aegis.shared.domain.base_model import BaseDomainModel
from aegis.shared.domain.enums import Severity

VALIDATION_INTERVAL = timedelta(days=7)


class ValidationStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class TestScenario(BaseDomainModel):
    """A synthetic situation a mechanism must handle.

    ``expected_outcome`` is compared verbatim with the ``actual`` string the
    scenario handler reports.
    """

    __test__ = False  # not a pytest test class

    id: str
    name: str
    expected_outcome: str
    risk_level: Severity = Severity.MEDIUM
    description: str = ""


@dataclass(frozen=True)
class PreventionMechanism(BaseDomainModel):
    """A remediation capability registered for self-testing.

    Attributes:
        id: Mechanism id
        name: Display name
        purpose: What the mechanism protects against
        implementation_ref: ``package.module:attribute`` of its entry point
        criticality: How much the system depends on it
        scenarios: Synthetic scenarios exercising the entry point
        expected_behavior: Free-text description of correct behavior
        failure_mode: What goes wrong when it breaks
    """

    id: str
    name: str
    purpose: str
    implementation_ref: str
    criticality: Severity
    scenarios: tuple[TestScenario, ...] = ()
    expected_behavior: str = ""
    failure_mode: str = ""


@dataclass
class ValidationResult(BaseDomainModel):
    mechanism_id: str
    status: ValidationStatus
    criticality: Severity
    tests_run: int = 0
    tests_passed: int = 0
    tests_failed: int = 0
    evidence: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    execution_time_ms: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def passed(self) -> bool:
        return self.status == ValidationStatus.PASS


@dataclass
class SystematicValidationReport(BaseDomainModel):
    """Roll-up of one validate_all() run."""

    overall_status: ValidationStatus = ValidationStatus.PASS
    mechanisms_validated: int = 0
    mechanisms_passed: int = 0
    mechanisms_failed: int = 0
    critical_failures: int = 0
    results: list[ValidationResult] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    next_validation: datetime | None = None

    def __post_init__(self) -> None:
        if self.next_validation is None:
            self.next_validation = self.timestamp + VALIDATION_INTERVAL

    @property
    def is_failing(self) -> bool:
        return self.overall_status == ValidationStatus.FAIL
