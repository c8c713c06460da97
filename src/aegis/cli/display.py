"""Rich rendering for CLI results."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from aegis.drift.domain.enums import HealthStatus
from aegis.healing.models import HealingSummary
from aegis.learning.models import PatternAnalysis
from aegis.prediction.models import MonitoringResult, MonitorStatus, PreventionStatus
from aegis.shared.domain.enums import Severity
from aegis.validation.models import SystematicValidationReport, ValidationStatus

HEALTH_STYLES = {
    HealthStatus.HEALTHY: "green",
    HealthStatus.WARNING: "yellow",
    HealthStatus.CRITICAL: "red",
    HealthStatus.CORRUPTED: "bold red",
}

SEVERITY_STYLES = {
    Severity.LOW: "dim",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "red",
    Severity.CRITICAL: "bold red",
}

MONITOR_STYLES = {
    MonitorStatus.SAFE: "green",
    MonitorStatus.WARNING: "yellow",
    MonitorStatus.DANGER: "red",
    MonitorStatus.CRITICAL: "bold red",
}

VALIDATION_STYLES = {
    ValidationStatus.PASS: "green",
    ValidationStatus.WARNING: "yellow",
    ValidationStatus.FAIL: "red",
    ValidationStatus.ERROR: "bold red",
}


def _recommendations(console: Console, recommendations: list[str]) -> None:
    if not recommendations:
        return
    console.print("\n[bold]Recommendations:[/bold]")
    for item in recommendations:
        console.print(f"  • {item}")


def render_healing_summary(console: Console, summary: HealingSummary, verbose: bool = False) -> None:
    style = HEALTH_STYLES[summary.overall_status]
    console.print(
        Panel.fit(
            f"[bold]{summary.summary}[/bold]\n"
            f"[dim]Issues detected:[/dim] {summary.issues_detected}   "
            f"[dim]Fixed:[/dim] {summary.issues_fixed}   "
            f"[dim]Critical:[/dim] {summary.critical_issues}",
            title=f"Blueprint Health: [{style}]{summary.overall_status.value.upper()}[/{style}]",
            border_style=style,
        )
    )

    if summary.reports:
        table = Table(box=box.SIMPLE_HEAVY)
        table.add_column("Blueprint", style="cyan")
        table.add_column("Status")
        table.add_column("Score", justify="right")
        table.add_column("Issues", justify="right")
        table.add_column("Auto-fixable", justify="right")
        for report in summary.reports:
            report_style = HEALTH_STYLES[report.status]
            table.add_row(
                report.artifact_id,
                f"[{report_style}]{report.status.value}[/{report_style}]",
                str(report.score),
                str(len(report.issues)),
                str(len(report.auto_fixable_issues)),
            )
        console.print(table)

    if verbose:
        for report in summary.reports:
            for issue in report.issues:
                issue_style = SEVERITY_STYLES[issue.severity]
                console.print(
                    f"  [{issue_style}]{issue.severity.value:>8}[/{issue_style}] "
                    f"{report.artifact_id}: {issue.description}"
                )

    for failure in summary.failures:
        console.print(f"[red]Repair failed for {failure.artifact_id}: {failure.error}[/red]")

    _recommendations(console, summary.recommendations)


def render_pattern_analysis(console: Console, analysis: PatternAnalysis) -> None:
    if not analysis.patterns:
        console.print("[yellow]No drift patterns found in the drift logs[/yellow]")
    else:
        table = Table(title="Learned Patterns", box=box.SIMPLE_HEAVY)
        table.add_column("Pattern", style="cyan")
        table.add_column("Type")
        table.add_column("Freq", justify="right")
        table.add_column("Severity")
        table.add_column("Confidence", justify="right")
        table.add_column("Likelihood", justify="right")
        for pattern in sorted(analysis.patterns, key=lambda p: (-p.frequency, p.id)):
            severity_style = SEVERITY_STYLES[pattern.severity]
            table.add_row(
                pattern.id,
                pattern.type,
                str(pattern.frequency),
                f"[{severity_style}]{pattern.severity.value}[/{severity_style}]",
                f"{pattern.confidence:.2f}",
                f"{pattern.likelihood:.2f}",
            )
        console.print(table)

    for insight in analysis.insights:
        console.print(f"[bold magenta]Insight[/bold magenta] {insight.pattern}: {insight.insight}")

    for error in analysis.load_errors:
        console.print(f"[yellow]Skipped unreadable log: {error}[/yellow]")

    _recommendations(console, analysis.recommendations)


def render_monitoring_result(console: Console, result: MonitoringResult) -> None:
    style = MONITOR_STYLES[result.status]
    console.print(
        Panel.fit(
            f"[dim]Overall risk score:[/dim] {result.overall_risk_score:.2f}   "
            f"[dim]Alerts:[/dim] {len(result.alerts)}",
            title=f"Compliance Risk: [{style}]{result.status.value.upper()}[/{style}]",
            border_style=style,
        )
    )

    for alert in result.alerts:
        alert_style = SEVERITY_STYLES[alert.risk_level]
        console.print(
            f"\n[{alert_style}]{alert.risk_level.value.upper()}[/{alert_style}] "
            f"[bold]{alert.pattern_id}[/bold] ({alert.confidence:.0%}) - {alert.time_to_violation}"
        )
        for item in alert.evidence:
            console.print(f"    [dim]•[/dim] {item}")

    if result.prevention_outcomes:
        table = Table(title="Prevention Actions", box=box.SIMPLE_HEAVY)
        table.add_column("Action", style="cyan")
        table.add_column("Kind")
        table.add_column("Status")
        table.add_column("Detail")
        for outcome in result.prevention_outcomes:
            status_style = "red" if outcome.status == PreventionStatus.FAILED else "green"
            table.add_row(
                outcome.action_id,
                outcome.kind.value,
                f"[{status_style}]{outcome.status.value}[/{status_style}]",
                outcome.detail,
            )
        console.print(table)

    _recommendations(console, result.prevention_actions_recommended)


def render_validation_report(console: Console, report: SystematicValidationReport) -> None:
    style = VALIDATION_STYLES[report.overall_status]
    console.print(
        Panel.fit(
            f"[dim]Validated:[/dim] {report.mechanisms_validated}   "
            f"[dim]Passed:[/dim] {report.mechanisms_passed}   "
            f"[dim]Failed:[/dim] {report.mechanisms_failed}   "
            f"[dim]Critical failures:[/dim] {report.critical_failures}",
            title=f"Prevention Mechanisms: [{style}]{report.overall_status.value.upper()}[/{style}]",
            border_style=style,
        )
    )

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Mechanism", style="cyan")
    table.add_column("Status")
    table.add_column("Tests", justify="right")
    table.add_column("Time (ms)", justify="right")
    for result in report.results:
        result_style = VALIDATION_STYLES[result.status]
        table.add_row(
            result.mechanism_id,
            f"[{result_style}]{result.status.value}[/{result_style}]",
            f"{result.tests_passed}/{result.tests_run}",
            f"{result.execution_time_ms:.0f}",
        )
    console.print(table)

    for result in report.results:
        for error in result.errors:
            console.print(f"[red]✗ {result.mechanism_id}: {error}[/red]")
        for warning in result.warnings:
            console.print(f"[yellow]! {result.mechanism_id}: {warning}[/yellow]")

    _recommendations(console, report.recommendations)
    if report.next_validation is not None:
        console.print(f"\n[dim]Next validation due: {report.next_validation:%Y-%m-%d}[/dim]")
