"""Analysis-related exceptions: file access, parsing, history, invariants."""

from pathlib import Path
from typing import Dict, Optional

from .base import CouplingInsightError


class AnalysisError(CouplingInsightError):
    """Base class for analysis-related errors."""
    pass


class FileAccessError(AnalysisError):
    """Raised when a source unit cannot be read or decoded."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class ParsingError(AnalysisError):
    """Raised when a source unit does not produce a clean syntax tree."""

    def __init__(self, filepath: Path, reason: str, line: Optional[int] = None):
        details: Dict[str, str] = {"filepath": str(filepath), "reason": reason}
        if line is not None:
            details["line"] = str(line)
        super().__init__(f"Failed to parse Rust file: {filepath}", details=details)
        self.filepath = filepath
        self.reason = reason
        self.line = line


class HistoryUnavailableError(AnalysisError):
    """Raised inside the history miner when git history cannot be read.

    Never escapes the miner: it is converted into degraded volatility.
    """

    def __init__(self, reason: str):
        super().__init__(f"Change history unavailable: {reason}", details={"reason": reason})
        self.reason = reason


class InvariantViolationError(AnalysisError):
    """Raised when the coupling graph is internally inconsistent.

    This is a defect, not a recoverable condition: the run aborts rather
    than emitting numbers that look plausible but are wrong.
    """

    def __init__(self, invariant: str, subject: str):
        super().__init__(
            f"Internal invariant violated: {invariant}",
            details={"subject": subject},
        )
        self.invariant = invariant
        self.subject = subject
