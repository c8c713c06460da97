"""Field defaults repair: fill missing required sections with safe defaults."""

from __future__ import annotations

import copy

from aegis.blueprints.domain.models import Artifact
from aegis.drift.domain.enums import RepairOperation, RepairRisk
from aegis.drift.domain.models import Issue, RepairAction
from aegis.healing.strategies.base import IRepairStrategy, RepairContext

DEFAULT_OBSERVABILITY_EVENTS = [
    {
        "name": "blueprint-initialized",
        "description": "Blueprint instance created",
        "level": "info",
    }
]

DEFAULT_ERROR_STATES = [
    {
        "name": "initialization-failed",
        "fallbackUX": "Show generic error message",
        "recovery": "Retry initialization",
    }
]


class FieldDefaultsStrategy(IRepairStrategy):
    """Adds version, observability events and error states when they are missing."""

    @property
    def name(self) -> str:
        return "field_defaults"

    @property
    def handles(self) -> list[str]:
        return ["missing-version", "missing-observability", "missing-error-states"]

    def plan(self, issue: Issue, artifact: Artifact, context: RepairContext) -> RepairAction | None:
        if issue.id == "missing-version":
            return self._add(issue, "version", context.framework_version, "Add current framework version")
        if issue.id == "missing-observability":
            return self._add(
                issue,
                "observability.events",
                copy.deepcopy(DEFAULT_OBSERVABILITY_EVENTS),
                "Add default observability events for telemetry",
            )
        if issue.id == "missing-error-states":
            return self._add(
                issue,
                "errorStates",
                copy.deepcopy(DEFAULT_ERROR_STATES),
                "Add default error state for fallback UX",
                # Present but empty is replaced rather than added.
                old_value=artifact.get("errorStates"),
            )
        return None

    @staticmethod
    def _add(issue: Issue, path: str, value: object, rationale: str, old_value: object = None) -> RepairAction:
        return RepairAction(
            issue_id=issue.id,
            operation=RepairOperation.ADD if old_value is None else RepairOperation.UPDATE,
            path=path,
            old_value=old_value,
            new_value=value,
            risk_level=RepairRisk.SAFE,
            requires_approval=False,
            description=f"Auto-repair: {issue.suggestion}",
            rationale=rationale,
        )
