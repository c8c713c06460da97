"""Shared test fixtures for the Aegis Core test suite."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

FRAMEWORK_VERSION = "1.2.0"

HEADER = f"# @aegisFrameworkVersion: {FRAMEWORK_VERSION}\n# @intent: Handles user authentication\n"


def blueprint_text(
    blueprint_id: str = "auth",
    *,
    header: bool = True,
    **overrides,
) -> str:
    """A compliant blueprint document; ``overrides`` replace or (with None) drop fields."""
    fields = {
        "id": blueprint_id,
        "name": f"{blueprint_id.title()} Blueprint",
        "version": FRAMEWORK_VERSION,
        "description": "Handles user authentication",
        "observability": {"events": [{"name": "login-succeeded"}]},
        "errorStates": [{"name": "login-failed", "fallback": "Show retry prompt"}],
    }
    for key, value in overrides.items():
        if value is None:
            fields.pop(key, None)
        else:
            fields[key] = value
    body = yaml.safe_dump(fields, sort_keys=False)
    return (HEADER if header else "") + body


@pytest.fixture
def project_root(tmp_path):
    """Create a temporary project root directory."""
    return tmp_path


@pytest.fixture
def write_blueprint(project_root):
    """Factory writing ``blueprints/<name>/blueprint.yaml``; returns the path."""

    def _write(name: str, /, text: str | None = None, **overrides) -> Path:
        path = project_root / "blueprints" / name / "blueprint.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text if text is not None else blueprint_text(name, **overrides), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_drift_log(project_root):
    """Factory writing a JSON drift log under ``framework/drift-log``."""

    def _write(filename: str, data) -> Path:
        path = project_root / "framework" / "drift-log" / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        if filename.endswith(".jsonl"):
            path.write_text("".join(json.dumps(line) + "\n" for line in data), encoding="utf-8")
        else:
            path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_text():
    """The ``blueprint_text`` builder, for tests that need the document itself."""
    return blueprint_text
