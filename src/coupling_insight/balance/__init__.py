"""Balance scoring, edge classification and issue detection."""

from .detectors import ALL_DETECTORS, run_detectors
from .engine import BalanceEngine, balance_score, classify_balance, interpret, node_health
from .models import BalanceInterpretation, Classification, Issue, IssueKind, Severity

__all__ = [
    "ALL_DETECTORS",
    "BalanceEngine",
    "BalanceInterpretation",
    "Classification",
    "Issue",
    "IssueKind",
    "Severity",
    "balance_score",
    "classify_balance",
    "interpret",
    "node_health",
    "run_detectors",
]
