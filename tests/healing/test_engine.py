"""Tests for BlueprintHealingEngine."""

from __future__ import annotations

from aegis.drift.domain.enums import HealthStatus
from aegis.healing.engine import BlueprintHealingEngine
from aegis.shared.infrastructure.history_store import JsonHistoryStore
from aegis.telemetry import TelemetryEventType


class TestBlueprintHealingEngine:
    def test_scan_without_auto_fix_leaves_files(self, engine, write_blueprint):
        path = write_blueprint("auth", version="1.2")
        before = path.read_bytes()

        summary = engine.heal_all(auto_fix=False)

        assert path.read_bytes() == before
        assert summary.blueprints_scanned == 1
        assert summary.repaired_count == 0
        assert [a.issue_id for a in summary.reports[0].actions] == ["invalid-version-format"]

    def test_auto_fix_resolves_every_fixable_issue(self, engine, store, write_blueprint):
        path = write_blueprint("auth", header=False, version=None, observability=None, errorStates=None)

        summary = engine.heal_all(auto_fix=True)

        assert summary.issues_detected == 5
        assert summary.issues_fixed == 5
        assert summary.repaired_count == 1
        report = summary.reports[0]
        assert report.issues == ()
        assert report.score == 100
        assert engine.evaluator.evaluate(store.load(path)).status == HealthStatus.HEALTHY

    def test_round_trip_introduces_no_new_issues(self, engine, evaluator, store, write_blueprint):
        path = write_blueprint("auth", version="1.2", errorStates=[], ruleContracts={"r1": None})
        before = evaluator.evaluate(store.load(path))

        engine.heal_all(auto_fix=True)
        after = evaluator.evaluate(store.load(path))

        before_ids = {i.id for i in before.issues}
        assert not any(i.auto_fixable for i in after.issues)
        assert {i.id for i in after.issues} <= before_ids
        assert [i.id for i in after.issues] == ["invalid-contract-r1"]

    def test_structured_repair_keeps_comments_below_the_header(
        self, engine, evaluator, store, write_blueprint, make_text
    ):
        first, rest = make_text("auth", header=False, version="1.2").split("\n", 1)
        comments = (
            "# @aegisFrameworkVersion: 1.2.0\n"
            "# @intent: Handles user authentication\n"
            "  # owned by the identity team\n"
        )
        path = write_blueprint("auth", text=f"{first}\n{comments}{rest}")
        before = evaluator.evaluate(store.load(path))

        engine.heal_all(auto_fix=True)

        text = path.read_text()
        after = evaluator.evaluate(store.load(path))
        assert [i.id for i in before.issues] == ["invalid-version-format"]
        assert after.issues == ()
        assert text.startswith(
            "# @aegisFrameworkVersion: 1.2.0\n# @intent: Handles user authentication\n# owned by the identity team\n"
        )
        assert text.count("@aegisFrameworkVersion") == 1

    def test_overall_status_is_worst(self, engine, write_blueprint):
        write_blueprint("auth")
        write_blueprint("broken", text="id: [unclosed\n")

        summary = engine.heal_all(auto_fix=True)

        assert summary.overall_status == HealthStatus.CORRUPTED
        assert summary.healthy_count == 1
        assert summary.critical_issues == 1
        assert any("cannot be repaired automatically" in r for r in summary.recommendations)

    def test_failed_repair_is_reported(self, engine, write_blueprint, make_text):
        path = write_blueprint("auth", text=make_text("auth", observability=["x"]))
        before = path.read_bytes()

        summary = engine.heal_all(auto_fix=True)

        assert path.read_bytes() == before
        assert [f.artifact_id for f in summary.failures] == ["auth"]
        assert "Inspect the repair log for failed repair batches" in summary.recommendations
        assert "1 repair failures" in summary.summary

    def test_history_and_telemetry(self, store, evaluator, planner, applier, telemetry, project_root, write_blueprint):
        history = JsonHistoryStore(project_root / ".aegis" / "healing" / "healing-history.json", limit=2)
        engine = BlueprintHealingEngine(store, evaluator, planner, applier, history=history, telemetry=telemetry)
        write_blueprint("auth")

        for _ in range(3):
            engine.heal_all()

        entries = history.load()
        assert len(entries) == 2
        assert entries[-1]["blueprintsScanned"] == 1
        assert "reports" not in entries[-1]
        assert len(telemetry.of_type(TelemetryEventType.SCAN_COMPLETED)) == 3

    def test_no_blueprints(self, engine):
        summary = engine.heal_all(auto_fix=True)
        assert summary.blueprints_scanned == 0
        assert summary.overall_status == HealthStatus.HEALTHY
