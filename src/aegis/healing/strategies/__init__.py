"""Built-in repair strategies."""

from aegis.healing.strategies.annotations import AnnotationStrategy
from aegis.healing.strategies.base import IRepairStrategy, RepairContext
from aegis.healing.strategies.field_defaults import FieldDefaultsStrategy
from aegis.healing.strategies.version_format import VersionFormatStrategy

__all__ = [
    "AnnotationStrategy",
    "FieldDefaultsStrategy",
    "IRepairStrategy",
    "RepairContext",
    "VersionFormatStrategy",
    "default_strategies",
]


def default_strategies() -> list[IRepairStrategy]:
    return [FieldDefaultsStrategy(), AnnotationStrategy(), VersionFormatStrategy()]
