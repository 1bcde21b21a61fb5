"""Quality gate command for CI pipelines."""

import json
from pathlib import Path
from typing import Optional

import click
import typer
from rich.markup import escape

from ..balance import Severity
from ..exceptions import CouplingInsightError
from ..logging_config import setup_logging
from ..report import QualityGate, run_check
from . import app
from ._common import GRADE_STYLES, console, run_analysis, styled


@app.command()
def check(
    path: Path = typer.Argument(
        Path("."),
        help="Crate root to analyze (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    min_grade: str = typer.Option(
        "C",
        "--min-grade",
        help="Worst acceptable health grade",
        click_type=click.Choice(["A", "B", "C", "D", "F"], case_sensitive=False),
    ),
    max_critical: int = typer.Option(
        0, "--max-critical", help="Most critical issues allowed", min=0
    ),
    max_circular: int = typer.Option(
        0, "--max-circular", help="Most circular dependencies allowed", min=0
    ),
    fail_on: Optional[str] = typer.Option(
        None,
        "--fail-on",
        help="Fail on any issue at this severity or above",
        click_type=click.Choice([s.value for s in Severity], case_sensitive=False),
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
    Fail (exit code 1) when coupling quality is below the given limits.

    [bold cyan]Examples:[/bold cyan]

      coupling-insight check

      coupling-insight check --min-grade B --fail-on high

      coupling-insight check --max-circular 2 --format json
    """
    logger = setup_logging(quiet=True)

    try:
        gate = QualityGate(
            min_grade=min_grade.upper(),
            max_critical=max_critical,
            max_circular=max_circular,
            fail_on=Severity(fail_on.lower()) if fail_on else None,
        )
        report = run_analysis(path, config, no_history=no_history, quiet=True)
        result = run_check(report, gate)
    except CouplingInsightError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    if output_format.lower() == "json":
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        grade = styled(result.grade, GRADE_STYLES.get(result.grade, ""))
        console.print(
            f"Grade [bold]{grade}[/bold]  critical: {result.critical_count}  "
            f"high: {result.high_count}  medium: {result.medium_count}  "
            f"cycles: {result.circular_count}"
        )
        if result.passed:
            console.print("[green]Quality gate passed[/green]")
        else:
            console.print("[red]Quality gate failed:[/red]")
            for failure in result.failures:
                console.print(f"  - {escape(failure)}")

    if not result.passed:
        raise typer.Exit(1)
