"""Tests for the probe registry and built-in probes."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import pytest

from aegis.drift.domain.enums import HealthStatus
from aegis.drift.domain.models import HealthReport
from aegis.learning.event_log import DriftLogReader
from aegis.learning.models import Pattern
from aegis.learning.pattern_store import PatternStore
from aegis.prediction.catalog import load_compliance_catalog
from aegis.prediction.models import CompliancePattern, ProbeSpec
from aegis.prediction.probes import (
    ProbeContext,
    ProbeRegistry,
    default_probe_registry,
    documentation_stale,
    recurring_pattern,
    staged_files_match,
    unhealthy_artifacts,
    validation_stale,
)
from aegis.shared.domain.enums import Severity
from aegis.shared.domain.exceptions import ConfigurationError


def template(*probe_names: str) -> CompliancePattern:
    return CompliancePattern(
        id="t",
        type="t",
        description="",
        trigger_conditions=tuple(ProbeSpec(probe=name, description=name) for name in probe_names),
        risk_indicators=(),
        predictive_signals=(),
        prevention_actions=(),
        base_confidence=1.0,
        historical_prevention_success=1.0,
    )


def pattern(pattern_id: str, frequency: int = 1, confidence: float = 0.8, type: str = "drift") -> Pattern:
    return Pattern(
        id=pattern_id,
        type=type,
        frequency=frequency,
        severity=Severity.MEDIUM,
        confidence=confidence,
        likelihood=0.3,
    )


@pytest.fixture
def context(project_root, repo_state):
    return ProbeContext(project_root=project_root, repo=repo_state)


class TestProbeRegistry:
    def test_default_registry_covers_default_catalog(self):
        default_probe_registry().validate(load_compliance_catalog())

    def test_unknown_probe_is_a_configuration_error(self):
        registry = ProbeRegistry({"known": lambda ctx: True})

        with pytest.raises(ConfigurationError) as exc:
            registry.validate([template("known", "missing")])

        assert exc.value.context["unknown"] == ["t:missing"]

    def test_duplicate_registration(self):
        registry = ProbeRegistry({"known": lambda ctx: True})
        with pytest.raises(ConfigurationError):
            registry.register("known", lambda ctx: False)

    def test_failing_probe_evaluates_false(self, context):
        def broken(ctx):
            raise RuntimeError("boom")

        registry = ProbeRegistry({"broken": broken})
        assert registry.evaluate("broken", context, {}) is False

    def test_bad_arguments_evaluate_false(self, context):
        registry = default_probe_registry()
        assert registry.evaluate("file-modified", context, {"nope": 1}) is False

    def test_unregistered_name_is_false(self, context):
        assert ProbeRegistry().evaluate("anything", context, {}) is False


class TestPatternProbes:
    def test_recurring_pattern_from_consecutive_log_entries(self, context, project_root, write_drift_log):
        write_drift_log(
            "framework-system-drift.json",
            {"driftEvents": [{"type": "version-mismatch"}, {"type": "version-mismatch"}]},
        )
        context.patterns = PatternStore().ingest(DriftLogReader([project_root / "framework" / "drift-log"]).read())

        assert recurring_pattern(context)
        assert recurring_pattern(context, pattern_id="system-version-mismatch")
        assert not recurring_pattern(context, min_frequency=3)

    def test_single_occurrence_is_not_recurring(self, context):
        context.patterns = [pattern("system-x")]
        assert not recurring_pattern(context)

    def test_pattern_type_and_confidence(self, context):
        context.patterns = [pattern("a", type="version-mismatch", confidence=0.6)]
        registry = default_probe_registry()

        assert registry.evaluate("pattern-type-seen", context, {"pattern_type": "version-mismatch"})
        assert registry.evaluate("low-confidence-patterns", context, {"threshold": 0.7})
        assert not registry.evaluate("low-confidence-patterns", context, {"threshold": 0.5})
        assert not registry.evaluate("mechanism-degradation", context, {})


class TestStateProbes:
    def test_validation_stale(self, context):
        assert validation_stale(context)

        context.last_validation_at = context.now - timedelta(hours=2)
        assert not validation_stale(context)
        assert validation_stale(context, max_age_hours=1)

    def test_documentation_stale(self, context, project_root):
        (project_root / "VERSION").write_text("1.2.0")
        (project_root / "README.md").write_text("docs")
        os.utime(project_root / "README.md", (1_000_000, 1_000_000))

        assert documentation_stale(context, reference="VERSION", paths=["README.md", "CHANGELOG.md"])
        assert not documentation_stale(context, reference="MISSING", paths=["README.md"])

    def test_unhealthy_artifacts(self, context):
        context.reports = [
            HealthReport(artifact_id="a", file_path="a.yaml", status=HealthStatus.WARNING, score=80),
        ]

        assert unhealthy_artifacts(context)
        assert not unhealthy_artifacts(context, min_status="critical")

    def test_staged_files_match(self, make_repo, project_root):
        repo, _ = make_repo({("diff", "--cached", "--name-only"): "blueprints/auth/blueprint.yaml\n"})
        ctx = ProbeContext(project_root=project_root, repo=repo, now=datetime.now(timezone.utc))

        assert staged_files_match(ctx, patterns=["blueprints/*"])
        assert not staged_files_match(ctx, patterns=["VERSION"])
