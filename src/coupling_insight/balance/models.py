"""Data models for balance scoring and issue detection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..scanning.models import SourceLocation


class Classification(Enum):
    """Where an edge falls in the strength/distance/volatility space."""

    HIGH_COHESION = "high_cohesion"  # strong and close
    LOOSE_COUPLING = "loose_coupling"  # weak and far
    PAIN = "pain"  # strong, far and volatile: needs refactoring
    ACCEPTABLE = "acceptable"  # strong and far, but stable
    LOCAL_COMPLEXITY = "local_complexity"  # weak and close
    NEUTRAL = "neutral"

    @property
    def label(self) -> str:
        return _CLASSIFICATION_LABELS[self]


_CLASSIFICATION_LABELS = {
    Classification.HIGH_COHESION: "High cohesion",
    Classification.LOOSE_COUPLING: "Loose coupling",
    Classification.PAIN: "Pain (needs refactoring)",
    Classification.ACCEPTABLE: "Acceptable",
    Classification.LOCAL_COMPLEXITY: "Local complexity",
    Classification.NEUTRAL: "Neutral",
}


class BalanceInterpretation(Enum):
    BALANCED = "balanced"
    ACCEPTABLE = "acceptable"
    NEEDS_REVIEW = "needs_review"
    NEEDS_REFACTORING = "needs_refactoring"
    CRITICAL = "critical"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class IssueKind(Enum):
    CIRCULAR_DEPENDENCY = "circular_dependency"
    GLOBAL_COMPLEXITY = "global_complexity"
    CASCADING_CHANGE_RISK = "cascading_change_risk"
    HIGH_EFFERENT_COUPLING = "high_efferent_coupling"
    HIGH_AFFERENT_COUPLING = "high_afferent_coupling"
    INAPPROPRIATE_INTIMACY = "inappropriate_intimacy"
    GOD_MODULE = "god_module"
    PUBLIC_FIELD_EXPOSURE = "public_field_exposure"
    PRIMITIVE_OBSESSION = "primitive_obsession"

    @property
    def is_edge_issue(self) -> bool:
        """True for issues whose subject is one (source, target) edge."""
        return self in _EDGE_ISSUE_KINDS


_EDGE_ISSUE_KINDS = frozenset(
    {
        IssueKind.GLOBAL_COMPLEXITY,
        IssueKind.CASCADING_CHANGE_RISK,
        IssueKind.INAPPROPRIATE_INTIMACY,
    }
)


@dataclass(frozen=True)
class Issue:
    """One detected design problem.

    Attributes:
        kind: Detector that produced the issue
        severity: Low / Medium / High / Critical
        subject: Module names involved: one module, an edge (source, target),
            a cycle (rotated so its smallest module comes first) or a
            module plus a declaration name for structural smells
        description: Human-readable explanation
        suggestion: Refactoring advice
        balance_score: Balance of the subject in [0, 1], for ranking
        location: A source location to start looking at, when known
    """

    kind: IssueKind
    severity: Severity
    subject: tuple[str, ...]
    description: str
    suggestion: str
    balance_score: float
    location: Optional[SourceLocation] = None

    @property
    def identity(self) -> tuple[str, tuple[str, ...]]:
        return (self.kind.value, self.subject)

    @property
    def sort_key(self) -> tuple:
        """Most severe first, then worst balance, then by kind and subject."""
        return (
            -self.severity.rank,
            self.balance_score,
            list(IssueKind).index(self.kind),
            self.subject,
        )
