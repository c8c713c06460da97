"""Drift detection: rule checks, issues and health reports."""

from aegis.drift.application.checks import AUTO_FIXABLE_ISSUES, normalize_version
from aegis.drift.application.rule_evaluator import RuleEvaluator
from aegis.drift.domain.enums import HealthStatus, IssueCategory, RepairOperation, RepairRisk
from aegis.drift.domain.models import HEADER_PATH, HealthReport, Issue, RepairAction

__all__ = [
    "AUTO_FIXABLE_ISSUES",
    "HEADER_PATH",
    "HealthReport",
    "HealthStatus",
    "Issue",
    "IssueCategory",
    "RepairAction",
    "RepairOperation",
    "RepairRisk",
    "RuleEvaluator",
    "normalize_version",
]
