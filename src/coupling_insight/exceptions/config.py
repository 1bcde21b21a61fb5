"""Configuration exceptions: config files, thresholds, analysis root.

All of these are fatal and raised before any analysis work starts.
"""

from pathlib import Path
from typing import Any

from .base import CouplingInsightError


class ConfigurationError(CouplingInsightError):
    """Base class for configuration-related errors."""

    pass


class InvalidPathError(ConfigurationError):
    """Raised when the analysis root or a config file path is unusable."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value fails validation."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
