"""CLI entry point: registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="coupling-insight",
    help="Coupling Insight - strength, distance and volatility of Rust module coupling",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(
            f"[bold cyan]Coupling Insight[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit(0)


@app.callback()
def _root(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Analyze how Rust modules couple to each other."""


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
from .check import check as _check  # noqa: F401, E402
from .impact import impact as _impact  # noqa: F401, E402


def main() -> None:
    app()
