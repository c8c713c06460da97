"""Prevention-mechanism catalog loader and implementation resolution."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

import yaml

from aegis.shared.domain.enums import Severity
from aegis.shared.domain.exceptions import ConfigurationError
from aegis.shared.infrastructure.logging import get_logger
from aegis.validation.models import PreventionMechanism, TestScenario

logger = get_logger(__name__)

DEFAULT_MECHANISM_CATALOG_PATH = Path(__file__).parent / "data" / "prevention_mechanisms.yaml"


def load_mechanism_catalog(path: Path | None = None) -> tuple[PreventionMechanism, ...]:
    """Load the mechanism registry.

    Raises:
        ConfigurationError: if the file is missing, malformed or has duplicate ids
    """
    path = Path(path) if path is not None else DEFAULT_MECHANISM_CATALOG_PATH
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot load mechanism catalog {path}: {e}", context={"path": str(path)})

    if not isinstance(data, dict) or not isinstance(data.get("mechanisms"), list):
        raise ConfigurationError(f"Mechanism catalog {path} must contain a 'mechanisms' list")

    mechanisms = tuple(parse_mechanism(entry) for entry in data["mechanisms"])

    seen: set[str] = set()
    for mechanism in mechanisms:
        if mechanism.id in seen:
            raise ConfigurationError(f"Duplicate prevention mechanism id '{mechanism.id}'")
        seen.add(mechanism.id)

    logger.debug("mechanism_catalog_loaded", path=str(path), mechanisms=len(mechanisms))
    return mechanisms


def parse_mechanism(entry: Any) -> PreventionMechanism:
    if not isinstance(entry, dict) or not entry.get("id"):
        raise ConfigurationError(f"Mechanism entry must be a mapping with an id: {entry!r}")

    mechanism_id = str(entry["id"])
    scenarios = []
    for raw in entry.get("scenarios") or []:
        if not isinstance(raw, dict) or not raw.get("id") or "expectedOutcome" not in raw:
            raise ConfigurationError(
                f"Mechanism '{mechanism_id}': every scenario needs an id and an expectedOutcome"
            )
        scenarios.append(
            TestScenario(
                id=str(raw["id"]),
                name=str(raw.get("name", raw["id"])),
                expected_outcome=str(raw["expectedOutcome"]),
                risk_level=_severity(raw.get("riskLevel"), mechanism_id),
                description=str(raw.get("description", "")),
            )
        )

    return PreventionMechanism(
        id=mechanism_id,
        name=str(entry.get("name", mechanism_id)),
        purpose=str(entry.get("purpose", "")),
        implementation_ref=str(entry.get("implementation") or ""),
        criticality=_severity(entry.get("criticality"), mechanism_id),
        scenarios=tuple(scenarios),
        expected_behavior=str(entry.get("expectedBehavior", "")),
        failure_mode=str(entry.get("failureMode", "")),
    )


def _severity(value: Any, mechanism_id: str) -> Severity:
    if value is None:
        return Severity.MEDIUM
    try:
        return Severity(str(value).lower())
    except ValueError:
        raise ConfigurationError(f"Mechanism '{mechanism_id}': unknown severity {value!r}")


def resolve_implementation(ref: str) -> Any:
    """Import ``package.module:attribute`` and return the attribute.

    Raises:
        ImportError: if the module cannot be imported
        AttributeError: if the module has no such attribute
        ValueError: if the reference is not in ``module:attribute`` form
    """
    module_name, sep, attribute = ref.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Implementation reference must be 'module:attribute', got {ref!r}")

    target: Any = importlib.import_module(module_name)
    for part in attribute.split("."):
        target = getattr(target, part)
    return target
