"""Exception hierarchy for Coupling Insight."""

from .analysis import (
    AnalysisError,
    FileAccessError,
    HistoryUnavailableError,
    InvariantViolationError,
    ParsingError,
)
from .base import CouplingInsightError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)

__all__ = [
    "CouplingInsightError",
    "AnalysisError",
    "FileAccessError",
    "ParsingError",
    "HistoryUnavailableError",
    "InvariantViolationError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
]
