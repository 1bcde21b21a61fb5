"""Public API for Coupling Insight.

Example:
    >>> from coupling_insight import analyze
    >>>
    >>> report = analyze("/path/to/crate")
    >>> report.health_grade
    'B'
    >>>
    >>> # With customization
    >>> report = analyze("/path/to/crate", history_enabled=False, exclude_tests=True)
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .config import load_config
from .logging_config import get_logger
from .pipeline import CouplingPipeline
from .report import AnalysisReport

logger = get_logger(__name__)


def analyze(
    path: str | Path = ".",
    config_file: Optional[Path] = None,
    **overrides,
) -> AnalysisReport:
    """Analyze a Rust source tree and return its coupling report.

    Orchestrates the full run:
    1. Load configuration (discovered TOML, env vars, then ``overrides``)
    2. Discover ``.rs`` files and start mining git history
    3. Parse units in parallel, build the module graph
    4. Score edges, detect issues and aggregate the report

    Args:
        path: Root of the source tree (default: current directory)
        config_file: Optional explicit config file path
        **overrides: Configuration overrides (e.g. ``history_months=12``)

    Returns:
        The AnalysisReport. Units that failed to parse are listed in
        ``report.skipped`` rather than raised.

    Raises:
        ConfigurationError: If the configuration is invalid (before any work)
        InvalidPathError: If ``path`` is not a directory
        InvariantViolationError: If the graph came out inconsistent
    """
    root = Path(path)
    config = load_config(root, config_file=config_file, **overrides)
    logger.debug(f"Configuration loaded: {config.verbosity} mode")
    return CouplingPipeline(root, config).run()
