"""Tests for RepairApplier."""

from __future__ import annotations

import yaml

from aegis.drift.domain.enums import RepairOperation, RepairRisk
from aegis.drift.domain.models import HealthReport, RepairAction
from aegis.shared.infrastructure.file_lock import file_lock
from aegis.telemetry import TelemetryEventType


class TestRepairApplier:
    def test_repairs_short_version(self, applier, analyze, write_blueprint):
        path = write_blueprint("auth", version="1.2")

        result = applier.apply(analyze(path))

        assert result.success
        assert result.modified
        assert result.applied == ["invalid-version-format"]
        text = path.read_text()
        assert text.startswith("# @aegisFrameworkVersion: 1.2.0\n# @intent: Handles user authentication\n")
        assert yaml.safe_load(text)["version"] == "1.2.0"

    def test_header_only_repair_keeps_body(self, applier, analyze, write_blueprint, make_text):
        body = make_text("auth", header=False)
        path = write_blueprint("auth", text="# Auth blueprint\n" + body)

        result = applier.apply(analyze(path))

        assert sorted(result.applied) == ["missing-framework-annotation", "missing-intent-annotation"]
        assert path.read_text() == (
            "# Auth blueprint\n"
            "# @aegisFrameworkVersion: 1.2.0\n"
            "# @intent: Handles user authentication\n" + body
        )

    def test_structured_repair_creates_missing_parents(self, applier, analyze, write_blueprint):
        path = write_blueprint("auth", observability=None)

        applier.apply(analyze(path))

        data = yaml.safe_load(path.read_text())
        assert data["observability"]["events"][0]["name"] == "blueprint-initialized"

    def test_second_apply_changes_nothing(self, applier, analyze, write_blueprint):
        path = write_blueprint("auth", version="1.2", header=False, errorStates=None)
        report = analyze(path)

        applier.apply(report)
        after_first = path.read_bytes()
        second = applier.apply(report)

        assert not second.modified
        assert path.read_bytes() == after_first
        assert sorted(second.unchanged) == sorted(a.issue_id for a in report.safe_actions)

    def test_failed_action_leaves_bytes_identical(self, applier, analyze, write_blueprint, make_text, repair_log):
        text = make_text("auth", version="1.2", observability=["login-succeeded"])
        path = write_blueprint("auth", text=text)
        before = path.read_bytes()

        result = applier.apply(analyze(path))

        assert not result.success
        assert result.failed_issue == "missing-observability"
        assert not result.modified
        assert path.read_bytes() == before
        assert repair_log.entries() == []

    def test_actions_requiring_approval_are_skipped(self, applier, write_blueprint):
        path = write_blueprint("auth")
        before = path.read_bytes()
        report = HealthReport.from_issues("auth", str(path), []).with_actions(
            [
                RepairAction(
                    issue_id="rewrite-contracts",
                    operation=RepairOperation.REMOVE,
                    path="ruleContracts",
                    new_value=None,
                    risk_level=RepairRisk.HIGH,
                    requires_approval=True,
                )
            ]
        )

        result = applier.apply(report)

        assert result.skipped == ["rewrite-contracts"]
        assert not result.modified
        assert path.read_bytes() == before

    def test_lock_timeout_is_a_failed_result(self, applier, analyze, write_blueprint, lock_path, telemetry):
        path = write_blueprint("auth", version="1.2")
        before = path.read_bytes()
        report = analyze(path)

        with file_lock(lock_path, timeout=1.0):
            result = applier.apply(report)

        assert not result.success
        assert "Could not acquire" in result.error
        assert path.read_bytes() == before
        assert telemetry.of_type(TelemetryEventType.REPAIR_FAILED)

    def test_applied_actions_are_logged(self, applier, analyze, write_blueprint, repair_log, telemetry):
        path = write_blueprint("auth", version="1.2")

        applier.apply(analyze(path))

        entries = repair_log.entries_for("auth")
        assert len(entries) == 1
        action = entries[0]["actions"][0]
        assert action["issueId"] == "invalid-version-format"
        assert action["changes"][0] == {
            "path": "version",
            "operation": "update",
            "oldValue": "1.2",
            "newValue": "1.2.0",
            "rationale": "Fix version format to semantic versioning",
        }
        assert entries[0]["automated"] is True
        assert len(telemetry.of_type(TelemetryEventType.REPAIR_APPLIED)) == 1

    def test_unparseable_artifact_is_not_touched(self, applier, write_blueprint):
        path = write_blueprint("broken", text="id: [unclosed\n")
        report = HealthReport.from_issues("broken", str(path), []).with_actions(
            [
                RepairAction(
                    issue_id="missing-version",
                    operation=RepairOperation.ADD,
                    path="version",
                    new_value="1.2.0",
                    risk_level=RepairRisk.SAFE,
                    requires_approval=False,
                )
            ]
        )

        result = applier.apply(report)

        assert not result.success
        assert path.read_text() == "id: [unclosed\n"
