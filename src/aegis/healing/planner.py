"""
Repair Planner.

Maps auto-fixable issues to repair actions through the strategy registry.
Planning never touches the file system.
"""

from __future__ import annotations

from typing import Iterable

from aegis.blueprints.domain.models import Artifact
from aegis.drift.application.checks import AUTO_FIXABLE_ISSUES
from aegis.drift.domain.models import HealthReport, Issue, RepairAction
from aegis.healing.registry import RepairStrategyRegistry
from aegis.healing.strategies import default_strategies
from aegis.healing.strategies.base import RepairContext
from aegis.shared.infrastructure.config import settings
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class RepairPlanner:
    """Derives at most one RepairAction per Issue.

    Args:
        registry: Strategy table; defaults to the built-in strategies
        framework_version: Version used for version and annotation repairs
        required_issues: Issue ids that must have a strategy. Checked at
            construction so a gap surfaces as a ConfigurationError instead of
            a silently unplanned repair.
    """

    def __init__(
        self,
        registry: RepairStrategyRegistry | None = None,
        framework_version: str | None = None,
        required_issues: Iterable[str] = AUTO_FIXABLE_ISSUES,
    ) -> None:
        self.registry = registry or RepairStrategyRegistry(default_strategies())
        self.registry.ensure_covers(required_issues)
        self.context = RepairContext(framework_version=framework_version or settings.default_framework_version)

    def plan(self, issue: Issue, artifact: Artifact) -> RepairAction | None:
        """Return the repair for ``issue``, or None if it is not auto-fixable."""
        if not issue.auto_fixable:
            return None

        strategy = self.registry.for_issue(issue.id)
        if strategy is None:
            logger.warning("repair_strategy_missing", issue_id=issue.id, artifact_id=artifact.id)
            return None

        action = strategy.plan(issue, artifact, self.context)
        if action is not None:
            logger.debug(
                "repair_planned",
                artifact_id=artifact.id,
                issue_id=issue.id,
                strategy=strategy.name,
                risk=action.risk_level.value,
            )
        return action

    def plan_report(self, report: HealthReport, artifact: Artifact) -> HealthReport:
        """Attach planned actions to a report, in issue order."""
        actions = []
        for issue in report.issues:
            action = self.plan(issue, artifact)
            if action is not None:
                actions.append(action)
        return report.with_actions(actions)
