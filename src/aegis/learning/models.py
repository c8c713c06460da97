"""Domain models for pattern recognition."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from aegis.shared.domain.base_model import BaseDomainModel
from aegis.shared.domain.enums import Severity

AGENT_SOURCE = "agent"
SYSTEM_SOURCE = "system"
VALIDATION_SOURCE = "validation"

# Initial pattern confidence when the event does not carry its own.
DEFAULT_CONFIDENCE = {
    AGENT_SOURCE: 0.5,
    SYSTEM_SOURCE: 0.8,
}
FALLBACK_CONFIDENCE = 0.8


@dataclass(frozen=True)
class EventRecord(BaseDomainModel):
    """One historical violation or drift record.

    Attributes:
        source: Log family (agent, system, validation, ...)
        key: Discriminator that, with the source, identifies the pattern
        type: Pattern type recorded for new patterns
        timestamp: When the event happened; None if the log omitted it
        severity: Event severity
        drift_type: Behavioral drift classification, when reported
        compliance_score: Agent compliance score in [0, 1], when reported
        user_correction: Free-text correction made by a user, when reported
        confidence: Explicit initial confidence, overriding the source default
        evidence: Free-text evidence fields
    """

    source: str
    key: str
    type: str
    timestamp: datetime | None = None
    severity: Severity = Severity.MEDIUM
    drift_type: str | None = None
    compliance_score: float | None = None
    user_correction: str | None = None
    confidence: float | None = None
    evidence: tuple[str, ...] = ()

    @property
    def pattern_id(self) -> str:
        return f"{self.source}-{self.key}"

    def to_log_line(self) -> dict[str, Any]:
        """JSON-lines representation understood by the drift log reader."""
        return {k: v for k, v in self.to_json().items() if v is not None and v != []}


@dataclass
class Pattern(BaseDomainModel):
    """A learned record of a recurring event class."""

    id: str
    type: str
    frequency: int
    severity: Severity
    confidence: float
    likelihood: float
    first_seen: datetime | None = None
    last_seen: datetime | None = None
    evidence: list[str] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    risk_factors: list[str] = field(default_factory=list)
    auto_correctable: bool = False

    @property
    def is_recurring(self) -> bool:
        return self.frequency > 1


@dataclass(frozen=True)
class Insight(BaseDomainModel):
    pattern: str
    insight: str
    confidence: float
    applicability: tuple[str, ...]
    recommendation: str


@dataclass(frozen=True)
class Prediction(BaseDomainModel):
    """Forecast that a learned pattern will recur."""

    pattern_id: str
    likelihood: float
    confidence: float
    conditions: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()


@dataclass
class PatternAnalysis(BaseDomainModel):
    """Everything one analysis pass produced, as persisted by save_analysis()."""

    patterns: list[Pattern] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)
    predictions: list[Prediction] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    load_errors: list[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
