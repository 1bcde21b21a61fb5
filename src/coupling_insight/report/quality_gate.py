"""Pass/fail gate over a finished report, for CI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..balance.models import IssueKind, Severity
from ..exceptions import InvalidConfigError

if TYPE_CHECKING:
    from .models import AnalysisReport

GRADES = ("A", "B", "C", "D", "F")


@dataclass(frozen=True)
class QualityGate:
    """Limits a report must stay within. ``None`` disables a check.

    Attributes:
        min_grade: Worst acceptable health grade
        max_critical: Most critical issues allowed
        max_circular: Most circular dependencies allowed
        fail_on: Fail on any issue at this severity or above
    """

    min_grade: Optional[str] = "C"
    max_critical: Optional[int] = 0
    max_circular: Optional[int] = 0
    fail_on: Optional[Severity] = None

    def __post_init__(self) -> None:
        """Validate gate limits."""
        if self.min_grade is not None and self.min_grade not in GRADES:
            raise InvalidConfigError("min_grade", self.min_grade, f"must be one of {GRADES}")
        for key in ("max_critical", "max_circular"):
            value = getattr(self, key)
            if value is not None and value < 0:
                raise InvalidConfigError(key, value, "must be >= 0")


@dataclass(frozen=True)
class CheckResult:
    passed: bool
    grade: str
    average_balance: float
    critical_count: int
    high_count: int
    medium_count: int
    circular_count: int
    failures: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "grade": self.grade,
            "average_balance": round(self.average_balance, 4),
            "critical_count": self.critical_count,
            "high_count": self.high_count,
            "medium_count": self.medium_count,
            "circular_count": self.circular_count,
            "failures": list(self.failures),
        }


def run_check(report: AnalysisReport, gate: QualityGate) -> CheckResult:
    summary = report.summary
    counts = summary.issues_by_severity
    critical = counts.get(Severity.CRITICAL.value, 0)
    high = counts.get(Severity.HIGH.value, 0)
    medium = counts.get(Severity.MEDIUM.value, 0)
    circular = sum(1 for i in report.issues if i.kind is IssueKind.CIRCULAR_DEPENDENCY)

    failures: list[str] = []
    if gate.min_grade is not None and GRADES.index(summary.health_grade) > GRADES.index(
        gate.min_grade
    ):
        failures.append(f"Grade {summary.health_grade} is below minimum {gate.min_grade}")
    if gate.max_critical is not None and critical > gate.max_critical:
        failures.append(f"{critical} critical issues (max: {gate.max_critical})")
    if gate.max_circular is not None and circular > gate.max_circular:
        failures.append(f"{circular} circular dependencies (max: {gate.max_circular})")
    if gate.fail_on is not None:
        count = sum(1 for i in report.issues if i.severity.rank >= gate.fail_on.rank)
        if count:
            failures.append(f"{count} issues at {gate.fail_on.value} severity or higher")

    return CheckResult(
        passed=not failures,
        grade=summary.health_grade,
        average_balance=summary.average_balance,
        critical_count=critical,
        high_count=high,
        medium_count=medium,
        circular_count=circular,
        failures=tuple(failures),
    )
