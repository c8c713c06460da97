"""Domain models for drift detection.

Issues and repair actions are immutable value objects produced fresh on every
evaluation. A HealthReport is recomputed in full on each scan.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from aegis.drift.domain.enums import HealthStatus, IssueCategory, RepairOperation, RepairRisk
from aegis.shared.domain.base_model import BaseDomainModel
from aegis.shared.domain.enums import Severity

HEALTHY_THRESHOLD = 90
WARNING_THRESHOLD = 70

# Pseudo-path for changes that edit the comment header instead of a field.
HEADER_PATH = "metadata-header"


@dataclass(frozen=True)
class Issue(BaseDomainModel):
    """A single rule violation detected on an artifact."""

    id: str
    category: IssueCategory
    severity: Severity
    description: str
    location: str
    expected: str
    actual: str
    suggestion: str
    auto_fixable: bool


@dataclass(frozen=True)
class RepairAction(BaseDomainModel):
    """A planned mutation that resolves exactly one Issue."""

    issue_id: str
    operation: RepairOperation
    path: str
    new_value: Any
    risk_level: RepairRisk
    requires_approval: bool
    description: str = ""
    rationale: str = ""
    old_value: Any = None

    @property
    def is_header_change(self) -> bool:
        return self.path == HEADER_PATH


@dataclass(frozen=True)
class HealthReport(BaseDomainModel):
    """Score, status and findings for one artifact at one point in time."""

    artifact_id: str
    file_path: str
    status: HealthStatus
    score: int
    issues: tuple[Issue, ...] = ()
    actions: tuple[RepairAction, ...] = ()
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_issues(cls, artifact_id: str, file_path: str, issues: list[Issue]) -> HealthReport:
        score = calculate_score(issues)
        return cls(
            artifact_id=artifact_id,
            file_path=file_path,
            status=determine_status(score, issues),
            score=score,
            issues=tuple(issues),
        )

    def with_actions(self, actions: list[RepairAction]) -> HealthReport:
        return dataclasses.replace(self, actions=tuple(actions))

    @property
    def auto_fixable_issues(self) -> list[Issue]:
        return [issue for issue in self.issues if issue.auto_fixable]

    @property
    def safe_actions(self) -> list[RepairAction]:
        return [action for action in self.actions if not action.requires_approval]

    @property
    def auto_repairable(self) -> bool:
        """True when there is something to repair and nothing needs approval."""
        return bool(self.actions) and all(not action.requires_approval for action in self.actions)

    def fingerprint(self) -> dict[str, Any]:
        """Report content without the generation timestamp."""
        data = self.to_json()
        data.pop("generatedAt", None)
        return data


def calculate_score(issues: list[Issue]) -> int:
    """100 minus the summed severity weights, floored at 0."""
    penalty = sum(issue.severity.weight for issue in issues)
    return max(0, 100 - penalty)


def determine_status(score: int, issues: list[Issue]) -> HealthStatus:
    if any(issue.severity == Severity.CRITICAL for issue in issues):
        return HealthStatus.CORRUPTED
    if score >= HEALTHY_THRESHOLD:
        return HealthStatus.HEALTHY
    if score >= WARNING_THRESHOLD:
        return HealthStatus.WARNING
    return HealthStatus.CRITICAL
