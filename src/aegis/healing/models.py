"""Domain models for the healing module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from aegis.drift.domain.enums import HealthStatus
from aegis.drift.domain.models import HealthReport
from aegis.shared.domain.base_model import BaseDomainModel


@dataclass
class ApplyResult(BaseDomainModel):
    """Outcome of applying one report's safe repair actions.

    ``failed_issue`` names the action that aborted the batch. When it is set
    the artifact on disk is exactly what it was before the call.
    """

    artifact_id: str
    file_path: str
    modified: bool = False
    applied: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed_issue: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class HealingSummary(BaseDomainModel):
    """Result of one heal_all() pass over every blueprint."""

    blueprints_scanned: int = 0
    healthy_count: int = 0
    repaired_count: int = 0
    issues_detected: int = 0
    issues_fixed: int = 0
    critical_issues: int = 0
    overall_status: HealthStatus = HealthStatus.HEALTHY
    summary: str = ""
    recommendations: list[str] = field(default_factory=list)
    reports: list[HealthReport] = field(default_factory=list)
    failures: list[ApplyResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def history_entry(self) -> dict:
        """Summary without per-artifact detail, for the healing history."""
        data = self.to_json()
        data.pop("reports", None)
        data["failures"] = [failure.artifact_id for failure in self.failures]
        return data
