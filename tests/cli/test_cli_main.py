"""Tests for the aegis command-line interface."""

from __future__ import annotations

import pytest
import yaml
from typer.testing import CliRunner

from aegis import __version__
from aegis.cli.main import app
from aegis.shared.domain.exceptions import ConfigurationError
from aegis.shared.infrastructure.config import settings

runner = CliRunner()


@pytest.fixture
def project(project_root):
    (project_root / "VERSION").write_text("1.2.0\n")
    return project_root


def invoke(*args):
    return runner.invoke(app, [str(arg) for arg in args])


class TestScanAndHeal:
    def test_healthy_project(self, project, write_blueprint):
        write_blueprint("auth")

        result = invoke("scan", "--project", project)

        assert result.exit_code == 0
        assert "auth" in result.output

    def test_corrupted_blueprint_exits_non_zero(self, project, write_blueprint):
        write_blueprint("broken", text="id: [unclosed\n")

        result = invoke("scan", "-p", project, "--verbose")

        assert result.exit_code == 1

    def test_heal_without_auto_fix_only_suggests(self, project, write_blueprint):
        path = write_blueprint("auth", version="1.2")
        before = path.read_bytes()

        result = invoke("heal", "-p", project)

        assert result.exit_code == 0
        assert "--auto-fix" in result.output
        assert path.read_bytes() == before

    def test_heal_auto_fix(self, project, write_blueprint):
        path = write_blueprint("auth", version="1.2")

        result = invoke("heal", "-p", project, "--auto-fix", "--json")

        assert result.exit_code == 0
        assert '"issuesFixed": 1' in result.output
        assert yaml.safe_load(path.read_text())["version"] == "1.2.0"

    def test_failed_repair_exits_non_zero(self, project, write_blueprint, make_text):
        write_blueprint("auth", text=make_text("auth", observability=["login-succeeded"]))

        result = invoke("heal", "-p", project, "--auto-fix")

        assert result.exit_code == 1


class TestLearningAndPrediction:
    def test_patterns(self, project, write_drift_log):
        write_drift_log(
            "framework-system-drift.json",
            {"driftEvents": [{"type": "version-mismatch"}, {"type": "version-mismatch"}]},
        )

        result = invoke("patterns", "-p", project, "--json")

        assert result.exit_code == 0
        assert "system-version-mismatch" in result.output
        assert (project / ".aegis" / "learning" / "pattern-analysis.json").exists()

    def test_patterns_without_logs(self, project):
        result = invoke("patterns", "-p", project)

        assert result.exit_code == 0
        assert "No drift patterns" in result.output

    def test_monitor_dry_run(self, project, write_blueprint):
        write_blueprint("auth")

        result = invoke("monitor", "-p", project, "--dry-run", "--no-prevention")

        assert result.exit_code == 0
        assert "SAFE" in result.output


class TestValidateMechanisms:
    def test_shipped_mechanisms_pass(self, project):
        result = invoke("validate-mechanisms", "-p", project)

        assert result.exit_code == 0
        assert "drift-detection" in result.output
        assert (project / ".aegis" / "validation" / "validation-history.json").exists()

    def test_configuration_error_exits_2(self, project, monkeypatch):
        def broken_catalog(path=None):
            raise ConfigurationError("Mechanism catalog is broken")

        monkeypatch.setattr("aegis.orchestrator.load_mechanism_catalog", broken_catalog)

        result = invoke("validate-mechanisms", "-p", project)

        assert result.exit_code == 2
        assert "Mechanism catalog is broken" in result.output


class TestVersion:
    def test_version_panel(self, project):
        result = invoke("version", "-p", project)

        assert result.exit_code == 0
        assert __version__ in result.output
        assert "1.2.0" in result.output

    def test_version_panel_shows_configured_app_name(self, project, monkeypatch):
        monkeypatch.setattr(settings, "app_name", "acme-guard")

        result = invoke("version", "-p", project)

        assert "acme-guard" in result.output
