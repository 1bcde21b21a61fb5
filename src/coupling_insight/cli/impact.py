"""Change impact command: what a change to one module can break."""

import json
from pathlib import Path
from typing import Optional

import click
import typer
from rich.markup import escape
from rich.table import Table

from ..exceptions import CouplingInsightError
from ..logging_config import setup_logging
from ..report import ImpactAnalysis
from . import app
from ._common import RISK_STYLES, console, run_analysis, styled


@app.command()
def impact(
    module: str = typer.Argument(..., help="Module name, e.g. 'level::enemy' or just 'enemy'"),
    path: Path = typer.Option(
        Path("."),
        "--path",
        "-p",
        help="Crate root to analyze (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    output_format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="Output format",
        click_type=click.Choice(["rich", "json"], case_sensitive=False),
    ),
    no_history: bool = typer.Option(
        False,
        "--no-history",
        help="Skip git history mining (every module gets Medium volatility)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
):
    """
    Show dependents, dependencies and change risk of one module.

    [bold cyan]Examples:[/bold cyan]

      coupling-insight impact level::enemy

      coupling-insight impact storage --path crates/engine --format json
    """
    logger = setup_logging(quiet=True)

    try:
        report = run_analysis(path, config, no_history=no_history, quiet=True)
    except CouplingInsightError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    result = report.impact(module)
    if result is None:
        console.print(f"[red]Error:[/red] no module named {escape(module)!r}")
        raise typer.Exit(1)

    if output_format.lower() == "json":
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return
    _print_impact(result)


def _print_impact(result: ImpactAnalysis) -> None:
    risk = styled(result.risk_level, RISK_STYLES.get(result.risk_level, ""))
    console.print(
        f"[bold cyan]{escape(result.module)}[/bold cyan]  risk {result.risk_score}/100 ({risk})"
    )
    console.print(
        f"Volatility: {result.volatility.value}   "
        f"In cycle: {'yes' if result.in_cycle else 'no'}   "
        f"Affected: {result.total_affected} modules ({result.affected_percentage:.1f}%)"
    )

    for title, neighbors in (
        ("Depends on", result.dependencies),
        ("Depended on by", result.dependents),
    ):
        if not neighbors:
            continue
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Module")
        table.add_column("Strength")
        table.add_column("Distance")
        table.add_column("References", justify="right")
        for info in neighbors:
            table.add_row(
                escape(info.module),
                info.strength.value,
                info.distance.value,
                str(info.reference_count),
            )
        console.print(table)

    if result.second_order:
        console.print(f"Second order: {escape(', '.join(result.second_order))}")
