"""
Blueprint rule checks.

Each check inspects one parsed artifact and returns zero or more Issues.
Checks are independent: none reads another's output, so the evaluator may
run them in any order and always gets the same issue set.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from aegis.blueprints.domain.models import Artifact
from aegis.drift.domain.enums import IssueCategory
from aegis.drift.domain.models import Issue
from aegis.shared.domain.enums import Severity

FRAMEWORK_ANNOTATION = "@aegisFrameworkVersion"
INTENT_ANNOTATION = "@intent"

REQUIRED_FIELDS = ("id", "name", "version")

VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+(-\w+)?$")

# Issue ids the repair planner is expected to handle.
AUTO_FIXABLE_ISSUES = frozenset(
    {
        "missing-version",
        "missing-observability",
        "missing-error-states",
        "missing-framework-annotation",
        "missing-intent-annotation",
        "invalid-version-format",
    }
)


@dataclass(frozen=True)
class CheckContext:
    """Inputs a check may need beyond the artifact itself."""

    framework_version: str


Check = Callable[[Artifact, CheckContext], list[Issue]]


def parse_error_issue(artifact: Artifact) -> Issue:
    """The single issue reported for a document that could not be parsed."""
    return Issue(
        id="parse-error",
        category=IssueCategory.SCHEMA_VIOLATION,
        severity=Severity.CRITICAL,
        description=f"Failed to parse blueprint: {artifact.parse_error}",
        location=artifact.file_path,
        expected="Valid YAML structure",
        actual="Parse error",
        suggestion="Fix YAML syntax errors",
        auto_fixable=False,
    )


def check_required_fields(artifact: Artifact, context: CheckContext) -> list[Issue]:
    issues = []
    for field_name in REQUIRED_FIELDS:
        if artifact.get(field_name):
            continue
        issues.append(
            Issue(
                id=f"missing-{field_name}",
                category=IssueCategory.MISSING_REQUIRED,
                severity=Severity.HIGH,
                description=f"Required field '{field_name}' is missing",
                location=f"{artifact.file_path}:root.{field_name}",
                expected=f"{field_name}: <value>",
                actual="undefined",
                suggestion=f"Add required {field_name} field to blueprint root",
                # Only the version can be derived without human input.
                auto_fixable=field_name == "version",
            )
        )
    return issues


def check_observability(artifact: Artifact, context: CheckContext) -> list[Issue]:
    if artifact.get("observability.events") is not None:
        return []
    return [
        Issue(
            id="missing-observability",
            category=IssueCategory.MISSING_REQUIRED,
            severity=Severity.MEDIUM,
            description="Observability events section is missing",
            location=f"{artifact.file_path}:observability.events",
            expected="observability.events: []",
            actual="undefined",
            suggestion="Add observability.events array for telemetry",
            auto_fixable=True,
        )
    ]


def check_error_states(artifact: Artifact, context: CheckContext) -> list[Issue]:
    if artifact.get("errorStates"):
        return []
    return [
        Issue(
            id="missing-error-states",
            category=IssueCategory.MISSING_REQUIRED,
            severity=Severity.MEDIUM,
            description="Error states are not defined",
            location=f"{artifact.file_path}:errorStates",
            expected="errorStates: [...]",
            actual="undefined or empty",
            suggestion="Add error state definitions for fallback UX",
            auto_fixable=True,
        )
    ]


def check_annotations(artifact: Artifact, context: CheckContext) -> list[Issue]:
    """Header markers are plain substrings of the raw text."""
    issues = []
    if FRAMEWORK_ANNOTATION not in artifact.raw_text:
        issues.append(
            Issue(
                id="missing-framework-annotation",
                category=IssueCategory.ANNOTATION_ERROR,
                severity=Severity.MEDIUM,
                description=f"Missing {FRAMEWORK_ANNOTATION} annotation",
                location=f"{artifact.file_path}:metadata",
                expected=f"{FRAMEWORK_ANNOTATION}: {context.framework_version}",
                actual="no annotation",
                suggestion="Add framework version annotation to blueprint header",
                auto_fixable=True,
            )
        )
    if INTENT_ANNOTATION not in artifact.raw_text:
        issues.append(
            Issue(
                id="missing-intent-annotation",
                category=IssueCategory.ANNOTATION_ERROR,
                severity=Severity.LOW,
                description=f"Missing {INTENT_ANNOTATION} annotation",
                location=f"{artifact.file_path}:metadata",
                expected=f"{INTENT_ANNOTATION}: <description>",
                actual="no annotation",
                suggestion="Add intent annotation describing blueprint purpose",
                auto_fixable=True,
            )
        )
    return issues


def check_rule_contracts(artifact: Artifact, context: CheckContext) -> list[Issue]:
    contracts = artifact.get("ruleContracts")
    if contracts is None:
        return []

    if not isinstance(contracts, dict):
        return [
            Issue(
                id="invalid-rule-contracts",
                category=IssueCategory.CONTRACT_INCONSISTENCY,
                severity=Severity.MEDIUM,
                description="ruleContracts must be a map of named contracts",
                location=f"{artifact.file_path}:ruleContracts",
                expected="Map of contract objects",
                actual=type(contracts).__name__,
                suggestion="Convert ruleContracts to a map keyed by rule id",
                auto_fixable=False,
            )
        ]

    issues = []
    for rule_id, contract in contracts.items():
        if isinstance(contract, dict):
            continue
        issues.append(
            Issue(
                id=f"invalid-contract-{rule_id}",
                category=IssueCategory.CONTRACT_INCONSISTENCY,
                severity=Severity.MEDIUM,
                description=f"Rule contract '{rule_id}' is invalid",
                location=f"{artifact.file_path}:ruleContracts.{rule_id}",
                expected="Valid contract object",
                actual="null" if contract is None else type(contract).__name__,
                suggestion="Fix or remove invalid rule contract",
                auto_fixable=False,
            )
        )
    return issues


def check_version_format(artifact: Artifact, context: CheckContext) -> list[Issue]:
    version = artifact.get("version")
    if not version:
        return []

    version_text = str(version)
    if version_text == context.framework_version or VERSION_PATTERN.match(version_text):
        return []

    return [
        Issue(
            id="invalid-version-format",
            category=IssueCategory.VERSION_MISMATCH,
            severity=Severity.MEDIUM,
            description="Blueprint version format is invalid",
            location=f"{artifact.file_path}:version",
            expected="Semantic version (e.g., 1.2.0-alpha)",
            actual=version_text,
            suggestion="Update to valid semantic version format",
            auto_fixable=True,
        )
    ]


def normalize_version(version: object) -> str:
    """Pad or truncate a version to three numeric components.

    A ``-suffix`` pre-release tag is kept when it is a single word.

    Examples:
        >>> normalize_version("1.2")
        '1.2.0'
        >>> normalize_version("v2")
        '2.0.0'
        >>> normalize_version("1.2-beta")
        '1.2.0-beta'
    """
    text = str(version or "").strip()
    if not text:
        return "1.0.0"

    base, _, suffix = text.partition("-")
    parts = [re.sub(r"\D", "", part) or "0" for part in base.split(".")]
    while len(parts) < 3:
        parts.append("0")

    normalized = ".".join(str(int(part)) for part in parts[:3])
    if suffix and re.fullmatch(r"\w+", suffix):
        normalized = f"{normalized}-{suffix}"
    return normalized


DEFAULT_CHECKS: tuple[Check, ...] = (
    check_required_fields,
    check_observability,
    check_error_states,
    check_annotations,
    check_rule_contracts,
    check_version_format,
)
