"""Tests for the prevention-mechanism catalog."""

from __future__ import annotations

import json

import pytest
import yaml

from aegis.healing.engine import BlueprintHealingEngine
from aegis.shared.domain.enums import Severity
from aegis.shared.domain.exceptions import ConfigurationError
from aegis.validation.catalog import load_mechanism_catalog, resolve_implementation


def write_catalog(tmp_path, mechanisms):
    path = tmp_path / "mechanisms.yaml"
    path.write_text(yaml.safe_dump({"mechanisms": mechanisms}))
    return path


class TestLoadMechanismCatalog:
    def test_default_catalog(self):
        catalog = load_mechanism_catalog()

        assert [m.id for m in catalog] == [
            "drift-detection",
            "blueprint-self-healing",
            "pattern-recognition",
            "predictive-compliance",
            "prevention-execution",
            "repair-audit-trail",
        ]
        healing = catalog[1]
        assert healing.criticality == Severity.CRITICAL
        assert healing.implementation_ref == "aegis.healing.engine:BlueprintHealingEngine"
        assert [s.expected_outcome for s in healing.scenarios] == ["detected", "repaired", "unchanged"]

    def test_defaults(self, tmp_path):
        [mechanism] = load_mechanism_catalog(
            write_catalog(tmp_path, [{"id": "bare", "scenarios": [{"id": "s1", "expectedOutcome": "ok"}]}])
        )

        assert mechanism.name == "bare"
        assert mechanism.criticality == Severity.MEDIUM
        assert mechanism.implementation_ref == ""
        assert mechanism.scenarios[0].name == "s1"
        assert mechanism.scenarios[0].risk_level == Severity.MEDIUM

    @pytest.mark.parametrize(
        "mechanisms",
        [
            [{"name": "no id"}],
            [{"id": "m", "criticality": "apocalyptic"}],
            [{"id": "m", "scenarios": [{"id": "s1"}]}],
            [{"id": "m"}, {"id": "m"}],
        ],
    )
    def test_invalid_catalogs(self, tmp_path, mechanisms):
        with pytest.raises(ConfigurationError):
            load_mechanism_catalog(write_catalog(tmp_path, mechanisms))

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "mechanisms.yaml"
        path.write_text("mechanisms: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_mechanism_catalog(path)


class TestResolveImplementation:
    def test_resolves_attribute(self):
        assert resolve_implementation("aegis.healing.engine:BlueprintHealingEngine") is BlueprintHealingEngine
        assert resolve_implementation("json:JSONDecoder.decode") is json.JSONDecoder.decode

    @pytest.mark.parametrize(
        "ref, error",
        [
            ("aegis.nowhere:Thing", ImportError),
            ("aegis.healing.engine:Missing", AttributeError),
            ("aegis.healing.engine", ValueError),
            ("", ValueError),
        ],
    )
    def test_unresolvable(self, ref, error):
        with pytest.raises(error):
            resolve_implementation(ref)
