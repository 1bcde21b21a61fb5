"""Configuration loading and management for Coupling Insight.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined in AnalysisConfig / ThresholdConfig)
    2. Project config (.coupling.toml or coupling.toml, searched from the
       analysis root upward)
    3. Explicit config file (if config_file provided)
    4. Environment variables (COUPLING_* prefix)
    5. Keyword overrides (typically from CLI flags)

Example:
    >>> config = load_config(Path("."), history_enabled=False)
    >>> config.history_enabled
    False

Project file layout::

    [analysis]
    exclude_tests = true
    prelude_modules = ["src/lib.rs", "src/prelude.rs"]
    exclude = ["src/generated/*"]
    history_months = 6

    [volatility]
    high = ["src/pricing/*"]
    low = ["src/core/*"]

    [thresholds]
    max_dependencies = 15
    max_dependents = 20

    [weights.distance]
    same_module = 0.3
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .dimensions import WeightTable
from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

CONFIG_FILE_NAMES = (".coupling.toml", "coupling.toml")
ENV_PREFIX = "COUPLING_"


def matches_any(path: str, patterns: list[str] | tuple[str, ...]) -> bool:
    """True if the POSIX-style relative ``path`` matches one of ``patterns``.

    ``*`` crosses directory separators, so ``src/core/*`` covers the whole
    subtree.
    """
    return any(fnmatchcase(path, pattern) for pattern in patterns)


@dataclass(frozen=True)
class ThresholdConfig:
    """Classification and issue-detector thresholds.

    Attributes:
        Balance classification (compared against dimension weights):
            strong_coupling: Strength at or above this is "strong" (Functional+)
            weak_coupling: Strength at or below this is "weak" (Model-)
            close_distance: Distance at or below this is "close"
            far_distance: Distance at or above this is "far"
            high_volatility: Volatility at or above this is "volatile"

        Fan-out / fan-in:
            max_efferent_coupling: Outgoing internal edges tolerated per module
            max_afferent_coupling: Incoming internal edges tolerated per module

        God module:
            max_functions: Free functions tolerated per module
            max_types: Data types tolerated per module
            max_impls: Impl blocks (trait + inherent) tolerated per module

        Primitive obsession:
            min_primitive_params: Minimum parameter count before checking
            primitive_param_ratio: Share of primitive parameters that triggers

        Volatility buckets (commit counts within the history window):
            volatility_low_max: Highest count still Low
            volatility_medium_max: Highest count still Medium
    """

    strong_coupling: float = 0.75
    weak_coupling: float = 0.50
    close_distance: float = 0.25
    far_distance: float = 0.50
    high_volatility: float = 0.75

    max_efferent_coupling: int = 15
    max_afferent_coupling: int = 20

    max_functions: int = 30
    max_types: int = 15
    max_impls: int = 20

    min_primitive_params: int = 3
    primitive_param_ratio: float = 0.6

    volatility_low_max: int = 2
    volatility_medium_max: int = 10

    def __post_init__(self) -> None:
        """Validate threshold configuration."""
        for name in (
            "strong_coupling",
            "weak_coupling",
            "close_distance",
            "far_distance",
            "high_volatility",
            "primitive_param_ratio",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidConfigError(name, value, "must be between 0.0 and 1.0")

        for name in (
            "max_efferent_coupling",
            "max_afferent_coupling",
            "max_functions",
            "max_types",
            "max_impls",
            "min_primitive_params",
        ):
            value = getattr(self, name)
            if value < 1:
                raise InvalidConfigError(name, value, "must be at least 1")

        if self.close_distance >= self.far_distance:
            raise InvalidConfigError(
                "close_distance", self.close_distance, "must be below far_distance"
            )
        if self.volatility_low_max < 0:
            raise InvalidConfigError(
                "volatility_low_max", self.volatility_low_max, "must be non-negative"
            )
        if self.volatility_medium_max <= self.volatility_low_max:
            raise InvalidConfigError(
                "volatility_medium_max",
                self.volatility_medium_max,
                "must be greater than volatility_low_max",
            )


DEFAULT_THRESHOLDS = ThresholdConfig()

# Keys accepted under [thresholds] that map onto differently named fields.
_THRESHOLD_ALIASES = {
    "max_dependencies": "max_efferent_coupling",
    "max_dependents": "max_afferent_coupling",
}


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for one analysis run.

    Attributes:
        Execution:
            workers: Parse worker pool size (None = auto-detect)

        History mining:
            history_enabled: Mine git history for volatility
            history_months: Size of the history window in months
            history_timeout_seconds: Hard cap on the git subprocess

        Scope:
            exclude_tests: Drop test-only declarations and references
            exclude_patterns: Globs (relative paths) never analyzed
            prelude_modules: Globs of module files exempt from fan-in warnings
            ignored_crates: External crates dropped entirely (fundamentals)

        Volatility overrides (globs over relative file paths):
            volatility_high / volatility_medium / volatility_low

        Reporting:
            show_hidden_issues: Emit low-severity structural smells
            max_cycles: Cap on enumerated elementary cycles
            top_priorities: Number of issues copied into the summary
            verbosity: Logging verbosity level
    """

    workers: Optional[int] = None

    history_enabled: bool = True
    history_months: int = 6
    history_timeout_seconds: float = 30.0

    exclude_tests: bool = False
    exclude_patterns: list[str] = field(default_factory=list)
    prelude_modules: list[str] = field(default_factory=list)
    ignored_crates: list[str] = field(default_factory=lambda: ["std", "core", "alloc"])

    volatility_high: list[str] = field(default_factory=list)
    volatility_medium: list[str] = field(default_factory=list)
    volatility_low: list[str] = field(default_factory=list)

    show_hidden_issues: bool = False
    max_cycles: int = 100
    top_priorities: int = 10
    verbosity: Verbosity = "normal"

    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    weights: WeightTable = field(default_factory=WeightTable)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.history_months < 1:
            raise InvalidConfigError("history_months", self.history_months, "must be at least 1")
        if self.history_timeout_seconds <= 0:
            raise InvalidConfigError(
                "history_timeout_seconds", self.history_timeout_seconds, "must be positive"
            )
        if self.max_cycles < 1:
            raise InvalidConfigError("max_cycles", self.max_cycles, "must be at least 1")
        if self.top_priorities < 0:
            raise InvalidConfigError(
                "top_priorities", self.top_priorities, "must be non-negative"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "must be quiet/normal/verbose")
        problems = self.weights.problems()
        if problems:
            raise InvalidConfigError("weights", "; ".join(problems), "malformed weight table")

    def volatility_override(self, rel_path: str) -> Optional[str]:
        """Return "high", "medium" or "low" if a pattern pins ``rel_path``."""
        if matches_any(rel_path, self.volatility_high):
            return "high"
        if matches_any(rel_path, self.volatility_medium):
            return "medium"
        if matches_any(rel_path, self.volatility_low):
            return "low"
        return None


def find_config_file(start: Path) -> Optional[Path]:
    """Search ``start`` and its parents for a project config file."""
    current = start.parent if start.is_file() else start
    current = current.resolve()
    for directory in (current, *current.parents):
        for name in CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def load_config(
    root: Optional[Path] = None, config_file: Optional[Path] = None, **overrides
) -> AnalysisConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        root: Analysis root used to discover a project config file
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so that unset CLI options keep file values.

    Returns:
        Validated AnalysisConfig instance

    Raises:
        ConfigurationError: If a config file is unreadable or any value is
            invalid. Raised before any analysis work starts.
    """
    merged: dict[str, Any] = {}
    threshold_values: dict[str, Any] = {}
    weight_values: dict[str, Any] = {}

    sources: list[Path] = []
    if root is not None:
        discovered = find_config_file(root)
        if discovered is not None:
            sources.append(discovered)
    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        sources.append(config_file)

    for source in sources:
        try:
            raw = _load_toml_file(source)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(f"Invalid config file '{source}': {e}")
        fields, thresholds, weights = _flatten_sections(raw, source)
        merged.update(fields)
        threshold_values.update(thresholds)
        for section, values in weights.items():
            weight_values.setdefault(section, {}).update(values)

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides.pop("verbose"):
            overrides["verbosity"] = "verbose"
    if "quiet" in overrides:
        if overrides.pop("quiet"):
            overrides["verbosity"] = "quiet"

    override_thresholds = overrides.pop("thresholds", None)
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        if isinstance(override_thresholds, ThresholdConfig):
            merged["thresholds"] = override_thresholds
        elif threshold_values:
            merged["thresholds"] = ThresholdConfig(**threshold_values)
        if weight_values:
            merged["weights"] = WeightTable.from_mapping(weight_values)
        return AnalysisConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _flatten_sections(
    raw: dict[str, Any], source: Path
) -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
    """Map the sectioned TOML layout onto AnalysisConfig field names."""
    fields: dict[str, Any] = {}

    analysis = dict(raw.get("analysis", {}))
    if "exclude" in analysis:
        fields["exclude_patterns"] = list(analysis.pop("exclude"))
    fields.update(analysis)

    volatility = raw.get("volatility", {})
    for level in ("high", "medium", "low"):
        if level in volatility:
            fields[f"volatility_{level}"] = list(volatility[level])
    if "ignore" in volatility:
        # Older layout: [volatility].ignore is the same as [analysis].exclude.
        fields["exclude_patterns"] = fields.get("exclude_patterns", []) + list(
            volatility["ignore"]
        )

    thresholds = {
        _THRESHOLD_ALIASES.get(key, key): value
        for key, value in raw.get("thresholds", {}).items()
    }
    weights = raw.get("weights", {})

    unknown = set(raw) - {"analysis", "volatility", "thresholds", "weights"}
    if unknown:
        raise ConfigurationError(
            f"Unknown section(s) in '{source}': {', '.join(sorted(unknown))}"
        )
    return fields, thresholds, weights


def _load_toml_file(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from COUPLING_* environment variables.

    Supported environment variables (scalar fields only):
        COUPLING_WORKERS: int
        COUPLING_HISTORY_ENABLED: bool (true/false/1/0)
        COUPLING_HISTORY_MONTHS: int
        COUPLING_HISTORY_TIMEOUT_SECONDS: float
        COUPLING_EXCLUDE_TESTS: bool
        COUPLING_SHOW_HIDDEN_ISSUES: bool
        COUPLING_MAX_CYCLES: int
        COUPLING_TOP_PRIORITIES: int
        COUPLING_VERBOSITY: quiet/normal/verbose

    Returns:
        Dict of field_name -> parsed_value for any COUPLING_* vars found.
    """
    type_hints = get_type_hints(AnalysisConfig)
    result: dict[str, Any] = {}

    for field_name in AnalysisConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for field types that cannot be expressed as one scalar.
    """
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none = [t for t in args if t is not type(None)]
        if non_none:
            type_hint = non_none[0]

    if getattr(type_hint, "__origin__", None) is Literal:
        if value not in type_hint.__args__:
            raise ValueError(f"expected one of {', '.join(type_hint.__args__)}, got '{value}'")
        return value

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    return None
