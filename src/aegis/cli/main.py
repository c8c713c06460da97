"""
Aegis CLI - blueprint compliance engine
Main entry point for the command-line interface

Usage:
    aegis scan                   # Score every blueprint
    aegis heal --auto-fix        # Repair safe blueprint issues
    aegis patterns               # Learn patterns from drift logs
    aegis monitor --dry-run      # Predict violations, plan prevention only
    aegis validate-mechanisms    # Self-test the prevention mechanisms
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from aegis import __version__
from aegis.cli.display import (
    render_healing_summary,
    render_monitoring_result,
    render_pattern_analysis,
    render_validation_report,
)
from aegis.orchestrator import AegisOrchestrator
from aegis.prediction.models import MonitorStatus
from aegis.shared.domain.exceptions import AegisError
from aegis.shared.infrastructure.logging import configure_logging
from aegis.telemetry import LoggingTelemetrySink

app = typer.Typer(
    name="aegis",
    help="Aegis - blueprint compliance scanning, drift prediction and self-healing",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

PROJECT_OPTION = typer.Option(
    Path("."),
    "--project",
    "-p",
    help="Project root containing blueprints/ and the drift logs",
    file_okay=False,
    resolve_path=True,
)
JSON_OPTION = typer.Option(False, "--json", help="Print the result as JSON instead of tables")


@app.callback()
def _setup() -> None:
    configure_logging()


def _orchestrator(project: Path) -> AegisOrchestrator:
    return AegisOrchestrator(project, telemetry=LoggingTelemetrySink())


def _print_json(data: dict) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def _fail(error: AegisError) -> None:
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(2)


@app.command()
def scan(
    project: Path = PROJECT_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List every issue"),
    as_json: bool = JSON_OPTION,
):
    """Score every blueprint without modifying anything"""
    try:
        summary = _orchestrator(project).scan()
    except AegisError as e:
        _fail(e)

    if as_json:
        _print_json(summary.to_json())
    else:
        render_healing_summary(console, summary, verbose=verbose)

    if summary.overall_status.is_failing:
        raise typer.Exit(1)


@app.command()
def heal(
    project: Path = PROJECT_OPTION,
    auto_fix: bool = typer.Option(False, "--auto-fix", help="Apply safe repairs to the blueprint files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List every remaining issue"),
    as_json: bool = JSON_OPTION,
):
    """Plan, and with --auto-fix apply, blueprint repairs"""
    try:
        summary = _orchestrator(project).heal(auto_fix=auto_fix)
    except AegisError as e:
        _fail(e)

    if as_json:
        _print_json(summary.to_json())
    else:
        render_healing_summary(console, summary, verbose=verbose)
        if not auto_fix and any(r.safe_actions for r in summary.reports):
            console.print("\n[dim]Run with --auto-fix to apply the safe repairs[/dim]")

    if summary.overall_status.is_failing or summary.failures:
        raise typer.Exit(1)


@app.command()
def patterns(
    project: Path = PROJECT_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Learn recurring violation patterns from the drift logs"""
    try:
        analysis = _orchestrator(project).patterns()
    except AegisError as e:
        _fail(e)

    if as_json:
        _print_json(analysis.to_json())
    else:
        render_pattern_analysis(console, analysis)


@app.command()
def monitor(
    project: Path = PROJECT_OPTION,
    dry_run: bool = typer.Option(False, "--dry-run", help="Record prevention plans without executing them"),
    no_prevention: bool = typer.Option(False, "--no-prevention", help="Never auto-execute prevention actions"),
    as_json: bool = JSON_OPTION,
):
    """Predict likely compliance violations and run automatic prevention"""
    try:
        result = _orchestrator(project).monitor(
            dry_run=True if dry_run else None,
            auto_prevention=False if no_prevention else None,
        )
    except AegisError as e:
        _fail(e)

    if as_json:
        _print_json(result.to_json())
    else:
        render_monitoring_result(console, result)

    if result.status == MonitorStatus.CRITICAL:
        raise typer.Exit(1)


@app.command("validate-mechanisms")
def validate_mechanisms(
    project: Path = PROJECT_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Self-test every registered prevention mechanism"""
    try:
        report = _orchestrator(project).validate_mechanisms()
    except AegisError as e:
        _fail(e)

    if as_json:
        _print_json(report.to_json())
    else:
        render_validation_report(console, report)

    if report.is_failing:
        raise typer.Exit(1)


@app.command()
def version(project: Path = PROJECT_OPTION):
    """Show Aegis version information"""
    orchestrator = _orchestrator(project)
    framework_version = orchestrator.store.framework_version()
    console.print(Panel.fit(
        f"[bold cyan]{orchestrator.config.app_name}[/bold cyan]\n"
        f"[dim]Version:[/dim] {__version__}\n"
        f"[dim]Framework version:[/dim] {framework_version}\n",
        title="About Aegis",
        border_style="cyan"
    ))


def main():
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
