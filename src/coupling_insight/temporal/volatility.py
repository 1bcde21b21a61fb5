"""Commit counts -> Volatility levels.

    0 .. volatility_low_max                     -> Low
    volatility_low_max+1 .. volatility_medium_max -> Medium
    above volatility_medium_max                 -> High

Degraded history maps every file to Medium. Config override patterns are
applied last and win over the mined signal.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..config import AnalysisConfig, ThresholdConfig
from ..dimensions import Volatility
from .models import ChangeHistory, ChangeRecord

DEGRADED_VOLATILITY = Volatility.MEDIUM

_OVERRIDE_LEVELS = {
    "high": Volatility.HIGH,
    "medium": Volatility.MEDIUM,
    "low": Volatility.LOW,
}


def classify_volatility(commit_count: int, thresholds: ThresholdConfig) -> Volatility:
    if commit_count <= thresholds.volatility_low_max:
        return Volatility.LOW
    if commit_count <= thresholds.volatility_medium_max:
        return Volatility.MEDIUM
    return Volatility.HIGH


def build_change_records(
    paths: Iterable[str], history: ChangeHistory, config: AnalysisConfig
) -> dict[str, ChangeRecord]:
    """One ChangeRecord per analyzed path."""
    records: dict[str, ChangeRecord] = {}
    for path in paths:
        count = history.commit_count(path)
        if history.degraded:
            level = DEGRADED_VOLATILITY
        else:
            level = classify_volatility(count, config.thresholds)

        override = config.volatility_override(path)
        if override is not None:
            records[path] = ChangeRecord(path, count, _OVERRIDE_LEVELS[override], pinned=True)
        else:
            records[path] = ChangeRecord(path, count, level)
    return records
