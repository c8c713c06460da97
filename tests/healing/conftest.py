"""Shared fixtures for healing tests."""

from __future__ import annotations

import pytest

from aegis.blueprints.infrastructure.artifact_store import ArtifactStore
from aegis.drift.application.rule_evaluator import RuleEvaluator
from aegis.healing.applier import RepairApplier
from aegis.healing.engine import BlueprintHealingEngine
from aegis.healing.planner import RepairPlanner
from aegis.healing.repair_log import RepairLog
from aegis.telemetry import MemoryTelemetrySink


@pytest.fixture
def store(project_root):
    return ArtifactStore(
        project_root,
        blueprints_dir="blueprints",
        blueprint_filename="blueprint.yaml",
        default_framework_version="1.2.0",
    )


@pytest.fixture
def telemetry():
    return MemoryTelemetrySink()


@pytest.fixture
def repair_log(project_root):
    return RepairLog(project_root / ".aegis" / "healing" / "repair-log.jsonl")


@pytest.fixture
def lock_path(project_root):
    return project_root / ".aegis" / "repair.lock"


@pytest.fixture
def applier(store, repair_log, lock_path, telemetry):
    return RepairApplier(store, repair_log, lock_path=lock_path, lock_timeout=0.2, telemetry=telemetry)


@pytest.fixture
def evaluator():
    return RuleEvaluator(framework_version="1.2.0")


@pytest.fixture
def planner():
    return RepairPlanner(framework_version="1.2.0")


@pytest.fixture
def analyze(store, evaluator, planner):
    """Load, evaluate and plan one blueprint file."""

    def _analyze(path):
        artifact = store.load(path)
        return planner.plan_report(evaluator.evaluate(artifact), artifact)

    return _analyze


@pytest.fixture
def engine(store, evaluator, planner, applier, telemetry):
    return BlueprintHealingEngine(store, evaluator, planner, applier, telemetry=telemetry)
