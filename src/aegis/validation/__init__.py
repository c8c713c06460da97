"""Reflexive self-tests for the prevention mechanisms."""

from aegis.validation.catalog import (
    DEFAULT_MECHANISM_CATALOG_PATH,
    load_mechanism_catalog,
    resolve_implementation,
)
from aegis.validation.models import (
    PreventionMechanism,
    SystematicValidationReport,
    TestScenario,
    ValidationResult,
    ValidationStatus,
)
from aegis.validation.scenarios import (
    ScenarioContext,
    ScenarioOutcome,
    ScenarioRegistry,
    default_scenario_registry,
)
from aegis.validation.validator import MechanismValidator

__all__ = [
    "DEFAULT_MECHANISM_CATALOG_PATH",
    "MechanismValidator",
    "PreventionMechanism",
    "ScenarioContext",
    "ScenarioOutcome",
    "ScenarioRegistry",
    "SystematicValidationReport",
    "TestScenario",
    "ValidationResult",
    "ValidationStatus",
    "default_scenario_registry",
    "load_mechanism_catalog",
    "resolve_implementation",
]
