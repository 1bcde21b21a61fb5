"""Main analysis command."""

from pathlib import Path
from typing import Optional

import click
import typer
from rich.console import Console
from rich.markup import escape

from ..exceptions import CouplingInsightError
from ..logging_config import setup_logging
from . import app
from ._common import console, run_analysis
from ._display import render_report


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
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
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the report to this file instead of stdout",
        dir_okay=False,
    ),
    no_history: bool = typer.Option(
        False,
        "--no-history",
        help="Skip git history mining (every module gets Medium volatility)",
    ),
    months: Optional[int] = typer.Option(
        None,
        "--months",
        help="History window in months (default: 6)",
        min=1,
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel parse workers (default: auto-detect)",
        min=1,
        max=32,
    ),
    include_tests: Optional[bool] = typer.Option(
        None,
        "--include-tests/--exclude-tests",
        help="Count test-only code (#[cfg(test)], #[test]) as coupling",
    ),
    show_hidden: bool = typer.Option(
        False,
        "--show-hidden",
        help="Also report low-severity smells (public fields, primitive obsession)",
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
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging and the full issue list",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
):
    """
    Measure coupling strength, distance and volatility between modules.

    Builds the module graph of a Rust crate, scores every dependency for
    balance and reports cycles, hubs, boundary violations and god modules.

    [bold cyan]Examples:[/bold cyan]

      coupling-insight analyze

      coupling-insight analyze path/to/crate --format json -o coupling.json

      coupling-insight analyze --no-history --show-hidden
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        report = run_analysis(
            path,
            config,
            no_history=no_history,
            months=months,
            verbose=verbose,
            quiet=quiet,
            workers=workers,
            exclude_tests=None if include_tests is None else not include_tests,
            show_hidden_issues=True if show_hidden else None,
        )

        if output_format.lower() == "json":
            text = report.to_json()
            if output:
                output.write_text(text + "\n", encoding="utf-8")
                console.print(f"[green]Report written to {output}[/green]")
            else:
                typer.echo(text)
        elif output:
            with open(output, "w", encoding="utf-8") as f:
                render_report(report, _file_console(f), verbose=verbose)
            console.print(f"[green]Report written to {output}[/green]")
        else:
            render_report(report, console, verbose=verbose)

    except CouplingInsightError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)


def _file_console(stream) -> Console:
    return Console(file=stream, width=120, no_color=True)
