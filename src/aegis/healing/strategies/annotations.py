"""Header annotation repair: prepend the framework and intent markers."""

from __future__ import annotations

from aegis.blueprints.domain.models import Artifact
from aegis.drift.application.checks import FRAMEWORK_ANNOTATION, INTENT_ANNOTATION
from aegis.drift.domain.enums import RepairOperation, RepairRisk
from aegis.drift.domain.models import HEADER_PATH, Issue, RepairAction
from aegis.healing.strategies.base import IRepairStrategy, RepairContext

DEFAULT_INTENT = "Blueprint implementation"


class AnnotationStrategy(IRepairStrategy):
    """Writes missing header annotations as comment lines."""

    @property
    def name(self) -> str:
        return "annotations"

    @property
    def handles(self) -> list[str]:
        return ["missing-framework-annotation", "missing-intent-annotation"]

    def plan(self, issue: Issue, artifact: Artifact, context: RepairContext) -> RepairAction | None:
        if issue.id == "missing-framework-annotation":
            return RepairAction(
                issue_id=issue.id,
                operation=RepairOperation.ADD,
                path=HEADER_PATH,
                new_value=f"{FRAMEWORK_ANNOTATION}: {context.framework_version}",
                risk_level=RepairRisk.SAFE,
                requires_approval=False,
                description=f"Auto-repair: {issue.suggestion}",
                rationale="Add required framework version annotation",
            )

        if issue.id == "missing-intent-annotation":
            # The intent is inferred from prose, so it is worth a second look.
            return RepairAction(
                issue_id=issue.id,
                operation=RepairOperation.ADD,
                path=HEADER_PATH,
                new_value=f"{INTENT_ANNOTATION}: {derive_intent(artifact)}",
                risk_level=RepairRisk.MODERATE,
                requires_approval=False,
                description=f"Auto-repair: {issue.suggestion}",
                rationale="Add intent annotation based on blueprint description",
            )
        return None


def derive_intent(artifact: Artifact) -> str:
    """Single-line intent text from the artifact description."""
    description = artifact.get("description")
    if not isinstance(description, str) or not description.strip():
        return DEFAULT_INTENT
    return " ".join(description.split())
