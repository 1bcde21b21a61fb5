"""Rich rendering of an AnalysisReport for the terminal."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..report import AnalysisReport
from ._common import GRADE_STYLES, HEALTH_STYLES, SEVERITY_STYLES, styled

# Module table is capped; the JSON output always has everything.
_MAX_MODULE_ROWS = 25


def render_report(report: AnalysisReport, console: Console, verbose: bool = False) -> None:
    _print_summary(report, console)
    _print_distributions(report, console)
    _print_issues(report, console, verbose)
    _print_hotspots(report, console)
    _print_modules(report, console)
    _print_skipped(report, console)


def _print_summary(report: AnalysisReport, console: Console) -> None:
    s = report.summary
    grade = styled(s.health_grade, GRADE_STYLES.get(s.health_grade, ""))
    if s.history_status == "available":
        history = f"{s.commits_analyzed} commits over {s.history_window_months} months"
    else:
        history = f"[yellow]unavailable[/yellow] ({escape(s.history_reason or 'unknown')})"

    lines = [
        f"Health grade: [bold]{grade}[/bold]",
        f"Modules: {s.module_count}   External crates: {s.external_crate_count}",
        f"Internal couplings: {s.internal_edge_count}   "
        f"External couplings: {s.external_edge_count}",
        f"Average balance: {s.average_balance:.2f}",
        f"Files analyzed: {s.files_analyzed}   Skipped: {s.files_skipped}",
        f"History: {history}",
    ]
    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold cyan]Coupling Insight[/bold cyan] {escape(report.root)}",
            expand=False,
        )
    )


def _print_distributions(report: AnalysisReport, console: Console) -> None:
    s = report.summary
    table = Table(title="Internal couplings", show_header=True, header_style="bold")
    table.add_column("Dimension")
    table.add_column("Distribution")
    for label, counts in (
        ("Strength", s.strength_distribution),
        ("Distance", s.distance_distribution),
        ("Volatility", s.volatility_distribution),
        ("Classification", s.classification_counts),
        ("Balance", s.interpretation_counts),
    ):
        table.add_row(label, "  ".join(f"{k}: {v}" for k, v in counts.items() if v))
    console.print(table)


def _print_issues(report: AnalysisReport, console: Console, verbose: bool) -> None:
    issues = report.issues if verbose else report.top_priorities
    if not issues:
        console.print("[green]No coupling issues found.[/green]")
        return

    title = "Issues" if verbose else f"Top priorities ({len(issues)} of {len(report.issues)})"
    table = Table(title=title, show_header=True, header_style="bold", show_lines=verbose)
    table.add_column("Severity")
    table.add_column("Issue")
    table.add_column("Subject")
    table.add_column("Balance", justify="right")
    table.add_column("Suggestion" if verbose else "Description")
    for issue in issues:
        severity = issue.severity.value
        table.add_row(
            styled(severity, SEVERITY_STYLES.get(severity, "")),
            issue.kind.value.replace("_", " "),
            escape(" -> ".join(issue.subject)),
            f"{issue.balance_score:.2f}",
            escape(issue.suggestion if verbose else issue.description),
        )
    console.print(table)


def _print_hotspots(report: AnalysisReport, console: Console) -> None:
    if not report.hotspots:
        return

    table = Table(title="Hotspots", show_header=True, header_style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Module")
    table.add_column("Issues", justify="right")
    table.add_column("Cycle")
    table.add_column("Suggestion")
    for spot in report.hotspots:
        table.add_row(
            str(spot.score),
            escape(spot.module),
            str(len(spot.issues)),
            styled("yes", "red") if spot.in_cycle else "",
            escape(spot.suggestion),
        )
    console.print(table)


def _print_modules(report: AnalysisReport, console: Console) -> None:
    modules = [m for m in report.modules if not m.external]
    if not modules:
        return
    table = Table(title="Modules", show_header=True, header_style="bold")
    table.add_column("Module")
    table.add_column("Fns", justify="right")
    table.add_column("Types", justify="right")
    table.add_column("Impls", justify="right")
    table.add_column("Volatility")
    table.add_column("Health")
    for node in modules[:_MAX_MODULE_ROWS]:
        table.add_row(
            escape(node.name),
            str(node.function_count),
            str(node.type_count),
            str(node.impl_count),
            node.volatility.value,
            styled(node.health, HEALTH_STYLES.get(node.health, "")),
        )
    console.print(table)
    if len(modules) > _MAX_MODULE_ROWS:
        console.print(f"[dim]... {len(modules) - _MAX_MODULE_ROWS} more (use --format json)[/dim]")


def _print_skipped(report: AnalysisReport, console: Console) -> None:
    if not report.skipped:
        return
    console.print(f"[yellow]Skipped {len(report.skipped)} file(s):[/yellow]")
    for unit in report.skipped:
        where = f":{unit.line}" if unit.line else ""
        console.print(f"  {escape(unit.path)}{where}  [dim]{escape(unit.reason)}[/dim]")
