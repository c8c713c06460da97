"""Tests for RuleEvaluator and the blueprint checks."""

from __future__ import annotations

import pytest

from aegis.blueprints.domain.models import Artifact
from aegis.blueprints.infrastructure.artifact_store import ArtifactStore
from aegis.drift.application.checks import check_rule_contracts, CheckContext
from aegis.drift.application.rule_evaluator import RuleEvaluator
from aegis.drift.domain.enums import HealthStatus, IssueCategory
from aegis.shared.domain.enums import Severity


@pytest.fixture
def evaluator():
    return RuleEvaluator(framework_version="1.2.0")


@pytest.fixture
def load(project_root):
    store = ArtifactStore(project_root, blueprints_dir="blueprints", blueprint_filename="blueprint.yaml")
    return store.load


class TestRuleEvaluator:
    def test_compliant_blueprint_is_healthy(self, evaluator, load, write_blueprint):
        report = evaluator.evaluate(load(write_blueprint("auth")))
        assert report.issues == ()
        assert report.score == 100
        assert report.status == HealthStatus.HEALTHY

    def test_short_version_is_one_fixable_medium_issue(self, evaluator, load, write_blueprint):
        report = evaluator.evaluate(load(write_blueprint("auth", version="1.2")))

        assert [i.id for i in report.issues] == ["invalid-version-format"]
        issue = report.issues[0]
        assert issue.severity == Severity.MEDIUM
        assert issue.category == IssueCategory.VERSION_MISMATCH
        assert issue.auto_fixable is True
        assert issue.actual == "1.2"

    def test_missing_events_and_error_states_scores_94(self, evaluator, load, write_blueprint):
        path = write_blueprint("auth", observability=None, errorStates=None)
        report = evaluator.evaluate(load(path))

        assert sorted(i.id for i in report.issues) == ["missing-error-states", "missing-observability"]
        assert report.score == 94
        assert report.status == HealthStatus.HEALTHY

    def test_parse_error_short_circuits(self, evaluator, load, write_blueprint):
        report = evaluator.evaluate(load(write_blueprint("broken", text="id: [unclosed\n")))

        assert len(report.issues) == 1
        issue = report.issues[0]
        assert issue.id == "parse-error"
        assert issue.severity == Severity.CRITICAL
        assert issue.auto_fixable is False
        assert report.status == HealthStatus.CORRUPTED

    def test_non_mapping_document_is_a_parse_error(self, evaluator, load, write_blueprint):
        report = evaluator.evaluate(load(write_blueprint("listy", text="- a\n- b\n")))
        assert [i.id for i in report.issues] == ["parse-error"]

    def test_missing_annotations(self, evaluator, load, write_blueprint):
        report = evaluator.evaluate(load(write_blueprint("auth", header=False)))

        ids = {i.id: i for i in report.issues}
        assert set(ids) == {"missing-framework-annotation", "missing-intent-annotation"}
        assert ids["missing-framework-annotation"].severity == Severity.MEDIUM
        assert ids["missing-intent-annotation"].severity == Severity.LOW
        assert report.score == 96

    def test_missing_required_fields(self, evaluator, load, write_blueprint):
        report = evaluator.evaluate(load(write_blueprint("auth", id=None, name=None)))

        missing = {i.id: i for i in report.issues}
        assert set(missing) == {"missing-id", "missing-name"}
        assert all(i.severity == Severity.HIGH for i in missing.values())
        assert not any(i.auto_fixable for i in missing.values())
        assert report.score == 86
        assert report.status == HealthStatus.WARNING

    def test_missing_version_is_fixable(self, evaluator, load, write_blueprint):
        report = evaluator.evaluate(load(write_blueprint("auth", version=None)))
        assert [(i.id, i.auto_fixable) for i in report.issues] == [("missing-version", True)]

    def test_framework_version_is_accepted_verbatim(self, load, write_blueprint):
        evaluator = RuleEvaluator(framework_version="2.0-rc")
        path = write_blueprint("auth", version="2.0-rc", text=None)
        issues = [i.id for i in evaluator.evaluate(load(path)).issues]
        assert "invalid-version-format" not in issues

    def test_evaluation_is_idempotent(self, evaluator, load, write_blueprint):
        path = write_blueprint("auth", version="1.2", errorStates=None, ruleContracts={"r1": None})
        first = evaluator.evaluate(load(path))
        second = evaluator.evaluate(load(path))
        assert first.fingerprint() == second.fingerprint()
        assert "generatedAt" not in first.fingerprint()


class TestRuleContracts:
    def _artifact(self, contracts):
        return Artifact(id="auth", file_path="auth.yaml", root_fields={"ruleContracts": contracts})

    def test_null_entry_is_invalid(self):
        issues = check_rule_contracts(self._artifact({"ok": {"rule": "x"}, "bad": None}), CheckContext("1.2.0"))
        assert [(i.id, i.actual) for i in issues] == [("invalid-contract-bad", "null")]

    def test_non_mapping_section_is_invalid(self):
        issues = check_rule_contracts(self._artifact(["r1"]), CheckContext("1.2.0"))
        assert [i.id for i in issues] == ["invalid-rule-contracts"]
        assert issues[0].category == IssueCategory.CONTRACT_INCONSISTENCY

    def test_absent_section_is_fine(self):
        artifact = Artifact(id="auth", file_path="auth.yaml", root_fields={})
        assert check_rule_contracts(artifact, CheckContext("1.2.0")) == []
