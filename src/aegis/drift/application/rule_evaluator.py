"""
Rule Evaluator.

Runs the blueprint checks against one artifact and folds the findings into a
HealthReport. Evaluation is a pure function of the in-memory artifact:
nothing is read or written here.
"""

from __future__ import annotations

from typing import Sequence

from aegis.blueprints.domain.models import Artifact
from aegis.drift.application.checks import DEFAULT_CHECKS, Check, CheckContext, parse_error_issue
from aegis.drift.domain.models import HealthReport, Issue
from aegis.shared.infrastructure.config import settings
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class RuleEvaluator:
    """Evaluates artifacts against an ordered set of checks.

    Attributes:
        checks: Check functions, run in order
        framework_version: Version written into the framework annotation and
            accepted as-is by the version format check
    """

    def __init__(
        self,
        checks: Sequence[Check] = DEFAULT_CHECKS,
        framework_version: str | None = None,
    ) -> None:
        self.checks = tuple(checks)
        self.framework_version = framework_version or settings.default_framework_version

    def evaluate(self, artifact: Artifact) -> HealthReport:
        """Score one artifact.

        A parse failure short-circuits every other check and yields a single
        critical, non-fixable issue.
        """
        issues: list[Issue] = []
        if not artifact.is_parsed:
            issues.append(parse_error_issue(artifact))
        else:
            context = CheckContext(framework_version=self.framework_version)
            for check in self.checks:
                issues.extend(check(artifact, context))

        report = HealthReport.from_issues(artifact.id, artifact.file_path, issues)
        logger.debug(
            "artifact_evaluated",
            artifact_id=artifact.id,
            status=report.status.value,
            score=report.score,
            issues=len(issues),
        )
        return report

    def evaluate_all(self, artifacts: Sequence[Artifact]) -> list[HealthReport]:
        return [self.evaluate(artifact) for artifact in artifacts]
