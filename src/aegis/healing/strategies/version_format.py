"""Version format repair."""

from __future__ import annotations

from aegis.blueprints.domain.models import Artifact
from aegis.drift.application.checks import VERSION_PATTERN, normalize_version
from aegis.drift.domain.enums import RepairOperation, RepairRisk
from aegis.drift.domain.models import Issue, RepairAction
from aegis.healing.strategies.base import IRepairStrategy, RepairContext


class VersionFormatStrategy(IRepairStrategy):
    """Rewrites a malformed version as a three-part semantic version."""

    @property
    def name(self) -> str:
        return "version_format"

    @property
    def handles(self) -> list[str]:
        return ["invalid-version-format"]

    def plan(self, issue: Issue, artifact: Artifact, context: RepairContext) -> RepairAction | None:
        current = artifact.get("version")
        normalized = normalize_version(current)
        if not VERSION_PATTERN.match(normalized):
            return None

        return RepairAction(
            issue_id=issue.id,
            operation=RepairOperation.UPDATE,
            path="version",
            old_value=current,
            new_value=normalized,
            risk_level=RepairRisk.SAFE,
            requires_approval=False,
            description=f"Auto-repair: {issue.suggestion}",
            rationale="Fix version format to semantic versioning",
        )
