"""Domain models for predictive compliance monitoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from aegis.shared.domain.base_model import BaseDomainModel
from aegis.shared.domain.enums import Severity


class MonitorStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"
    CRITICAL = "critical"


class PreventionKind(str, Enum):
    """How a prevention action is carried out."""

    REPAIR = "repair"  # run the healing engine with auto-fix
    COMMAND = "command"  # blocking external command with timeout
    DETACHED_COMMAND = "detached-command"  # long-lived, own session, output to a log file
    NOTIFY = "notify"  # log and telemetry only


class PreventionStatus(str, Enum):
    EXECUTED = "executed"
    FAILED = "failed"
    SKIPPED = "skipped"
    PLANNED = "planned"


@dataclass(frozen=True)
class ProbeSpec(BaseDomainModel):
    """A named boolean probe against repository state, with arguments."""

    probe: str
    description: str
    args: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PreventionActionSpec(BaseDomainModel):
    id: str
    kind: PreventionKind
    description: str
    command: str | None = None
    log: str | None = None
    timeout: float | None = None


@dataclass(frozen=True)
class CompliancePattern(BaseDomainModel):
    """Static catalog template describing a known failure mode."""

    id: str
    type: str
    description: str
    trigger_conditions: tuple[ProbeSpec, ...]
    risk_indicators: tuple[ProbeSpec, ...]
    predictive_signals: tuple[ProbeSpec, ...]
    prevention_actions: tuple[PreventionActionSpec, ...]
    base_confidence: float
    historical_prevention_success: float

    def all_probes(self) -> list[ProbeSpec]:
        return [*self.trigger_conditions, *self.risk_indicators, *self.predictive_signals]


@dataclass(frozen=True)
class PredictiveAlert(BaseDomainModel):
    id: str
    pattern_id: str
    risk_level: Severity
    confidence: float
    predicted_violation: str
    time_to_violation: str
    evidence: tuple[str, ...]
    prevention_actions: tuple[str, ...]
    auto_preventable: bool
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class PreventionOutcome(BaseDomainModel):
    action_id: str
    pattern_id: str
    kind: PreventionKind
    status: PreventionStatus
    detail: str = ""
    fingerprint: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class MonitoringResult(BaseDomainModel):
    status: MonitorStatus = MonitorStatus.SAFE
    alerts: list[PredictiveAlert] = field(default_factory=list)
    patterns_detected: list[str] = field(default_factory=list)
    prevention_actions_recommended: list[str] = field(default_factory=list)
    prevention_outcomes: list[PreventionOutcome] = field(default_factory=list)
    auto_prevention_triggered: bool = False
    overall_risk_score: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
