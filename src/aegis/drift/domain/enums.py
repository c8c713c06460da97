"""Enumerations for drift detection and repair planning."""

from enum import Enum


class IssueCategory(str, Enum):
    SCHEMA_VIOLATION = "schema-violation"
    MISSING_REQUIRED = "missing-required"
    VERSION_MISMATCH = "version-mismatch"
    ANNOTATION_ERROR = "annotation-error"
    CONTRACT_INCONSISTENCY = "contract-inconsistency"


class HealthStatus(str, Enum):
    """Artifact health, ordered from best to worst."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    CORRUPTED = "corrupted"

    @property
    def rank(self) -> int:
        return list(HealthStatus).index(self)

    @property
    def is_failing(self) -> bool:
        return self in (HealthStatus.CRITICAL, HealthStatus.CORRUPTED)


class RepairOperation(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


class RepairRisk(str, Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    HIGH = "high"
