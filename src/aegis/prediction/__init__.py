"""Predictive compliance monitoring and prevention."""

from aegis.prediction.catalog import DEFAULT_CATALOG_PATH, load_compliance_catalog
from aegis.prediction.models import (
    CompliancePattern,
    MonitoringResult,
    MonitorStatus,
    PredictiveAlert,
    PreventionActionSpec,
    PreventionKind,
    PreventionOutcome,
    PreventionStatus,
    ProbeSpec,
)
from aegis.prediction.monitor import PredictiveMonitor, risk_level_for, time_to_violation_for
from aegis.prediction.prevention import PreventionExecutor
from aegis.prediction.probes import ProbeContext, ProbeRegistry, default_probe_registry
from aegis.prediction.repo_state import RepoState

__all__ = [
    "DEFAULT_CATALOG_PATH",
    "CompliancePattern",
    "MonitoringResult",
    "MonitorStatus",
    "PredictiveAlert",
    "PredictiveMonitor",
    "PreventionActionSpec",
    "PreventionExecutor",
    "PreventionKind",
    "PreventionOutcome",
    "PreventionStatus",
    "ProbeContext",
    "ProbeRegistry",
    "ProbeSpec",
    "RepoState",
    "default_probe_registry",
    "load_compliance_catalog",
    "risk_level_for",
    "time_to_violation_for",
]
