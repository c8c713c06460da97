"""Compliance-pattern catalog loader.

The catalog is immutable configuration: it is read once, validated, and
handed to the monitor as a tuple of frozen templates.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from aegis.prediction.models import CompliancePattern, PreventionActionSpec, PreventionKind, ProbeSpec
from aegis.shared.domain.exceptions import ConfigurationError
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "compliance_patterns.yaml"

_COMMAND_KINDS = (PreventionKind.COMMAND, PreventionKind.DETACHED_COMMAND)


def load_compliance_catalog(path: Path | None = None) -> tuple[CompliancePattern, ...]:
    """Load and validate compliance-pattern templates.

    Raises:
        ConfigurationError: if the file is missing, malformed or inconsistent
    """
    path = Path(path) if path is not None else DEFAULT_CATALOG_PATH
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot load compliance catalog {path}: {e}", context={"path": str(path)})

    if not isinstance(data, dict) or not isinstance(data.get("patterns"), list):
        raise ConfigurationError(f"Compliance catalog {path} must contain a 'patterns' list")

    patterns = tuple(parse_pattern(entry) for entry in data["patterns"])

    seen: set[str] = set()
    for pattern in patterns:
        if pattern.id in seen:
            raise ConfigurationError(f"Duplicate compliance pattern id '{pattern.id}'")
        seen.add(pattern.id)

    logger.debug("compliance_catalog_loaded", path=str(path), patterns=len(patterns))
    return patterns


def parse_pattern(entry: Any) -> CompliancePattern:
    if not isinstance(entry, dict) or not entry.get("id"):
        raise ConfigurationError(f"Compliance pattern entry must be a mapping with an id: {entry!r}")

    pattern_id = str(entry["id"])
    base_confidence = _unit_float(entry, "baseConfidence", pattern_id)
    success = _unit_float(entry, "historicalPreventionSuccess", pattern_id)

    return CompliancePattern(
        id=pattern_id,
        type=str(entry.get("type", pattern_id)),
        description=str(entry.get("description", "")),
        trigger_conditions=_probes(entry, "triggerConditions", pattern_id),
        risk_indicators=_probes(entry, "riskIndicators", pattern_id),
        predictive_signals=_probes(entry, "predictiveSignals", pattern_id),
        prevention_actions=tuple(_action(a, pattern_id) for a in entry.get("preventionActions") or []),
        base_confidence=base_confidence,
        historical_prevention_success=success,
    )


def _unit_float(entry: dict, key: str, pattern_id: str) -> float:
    value = entry.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"Pattern '{pattern_id}': {key} must be a number in [0, 1], got {value!r}")
    return float(value)


def _probes(entry: dict, key: str, pattern_id: str) -> tuple[ProbeSpec, ...]:
    probes = []
    for raw in entry.get(key) or []:
        if not isinstance(raw, dict) or not raw.get("probe"):
            raise ConfigurationError(f"Pattern '{pattern_id}': every {key} entry needs a 'probe' name")
        args = raw.get("args") or {}
        if not isinstance(args, dict):
            raise ConfigurationError(f"Pattern '{pattern_id}': args of probe '{raw['probe']}' must be a mapping")
        probes.append(
            ProbeSpec(
                probe=str(raw["probe"]),
                description=str(raw.get("description", raw["probe"])),
                args=dict(args),
            )
        )
    return tuple(probes)


def _action(raw: Any, pattern_id: str) -> PreventionActionSpec:
    if not isinstance(raw, dict) or not raw.get("id"):
        raise ConfigurationError(f"Pattern '{pattern_id}': prevention actions need an id")
    try:
        kind = PreventionKind(raw.get("kind", ""))
    except ValueError:
        raise ConfigurationError(
            f"Pattern '{pattern_id}': unknown prevention kind {raw.get('kind')!r} for '{raw['id']}'"
        )
    if kind in _COMMAND_KINDS and not raw.get("command"):
        raise ConfigurationError(f"Pattern '{pattern_id}': action '{raw['id']}' of kind {kind.value} needs a command")

    timeout = raw.get("timeout")
    return PreventionActionSpec(
        id=str(raw["id"]),
        kind=kind,
        description=str(raw.get("description", raw["id"])),
        command=raw.get("command"),
        log=raw.get("log"),
        timeout=float(timeout) if timeout is not None else None,
    )
