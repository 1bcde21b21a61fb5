"""Data models for change-history (volatility) analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..dimensions import Volatility


@dataclass(frozen=True)
class ChangeRecord:
    path: str  # relative to the analysis root
    commit_count: int  # commits touching the file within the window
    volatility: Volatility
    pinned: bool = False  # set by a [volatility] override pattern


@dataclass
class ChangeHistory:
    """Per-file commit counts mined from git, or a degraded placeholder."""

    counts: dict[str, int] = field(default_factory=dict)
    total_commits: int = 0
    window_months: int = 0
    degraded: bool = False
    reason: Optional[str] = None  # why history is degraded
    elapsed_seconds: float = 0.0

    @classmethod
    def unavailable(cls, reason: str, window_months: int = 0) -> ChangeHistory:
        return cls(window_months=window_months, degraded=True, reason=reason)

    def commit_count(self, path: str) -> int:
        return self.counts.get(path, 0)

    @property
    def status(self) -> str:
        return "degraded" if self.degraded else "available"
