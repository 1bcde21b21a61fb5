"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import load_config
from ..pipeline import CouplingPipeline
from ..report import AnalysisReport

console = Console()

SEVERITY_STYLES = {
    "critical": "red bold",
    "high": "red",
    "medium": "yellow",
    "low": "dim",
}

GRADE_STYLES = {
    "A": "green bold",
    "B": "green",
    "C": "yellow",
    "D": "red",
    "F": "red bold",
}

HEALTH_STYLES = {
    "good": "green",
    "acceptable": "cyan",
    "needs_review": "yellow",
    "critical": "red",
}

RISK_STYLES = {
    "low": "green",
    "medium": "yellow",
    "high": "red bold",
}


def styled(text: str, style: str) -> str:
    return f"[{style}]{text}[/{style}]" if style else text


def run_analysis(
    path: Path,
    config: Optional[Path] = None,
    no_history: bool = False,
    months: Optional[int] = None,
    verbose: bool = False,
    quiet: bool = False,
    **overrides,
) -> AnalysisReport:
    """Load layered configuration from CLI options and run one analysis."""
    settings = load_config(
        path,
        config_file=config,
        history_enabled=False if no_history else None,
        history_months=months,
        verbose=verbose,
        quiet=quiet,
        **overrides,
    )
    return CouplingPipeline(path, settings).run()
