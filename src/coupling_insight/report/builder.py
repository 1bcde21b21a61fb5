"""Report Aggregator.

A ``ReportBuilder`` is owned by the single aggregation step at the end of
the pipeline: it is fed the scored graph, the issues, the skipped units and
the history outcome, and produces one AnalysisReport. Every count and
distribution is computed over internal edges only; external crates are
outside the analyzed code's control.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional

from ..balance.models import BalanceInterpretation, Classification, Issue, Severity
from ..config import AnalysisConfig
from ..dimensions import Distance, Strength, Volatility
from ..graph.models import CouplingGraph
from ..logging_config import get_logger
from ..scanning.models import SkippedUnit
from ..temporal.models import ChangeHistory
from .hotspots import find_hotspots
from .models import AnalysisReport, ReportSummary

logger = get_logger(__name__)

HOTSPOT_LIMIT = 10


def health_grade(issues_by_severity: dict[str, int], internal_edges: int) -> str:
    """Letter grade from issue counts and densities (issues per internal edge).

    A needs at least 10 internal edges: too small a graph says too little
    to earn the top grade.
    """
    if internal_edges == 0:
        return "B"

    critical = issues_by_severity.get(Severity.CRITICAL.value, 0)
    high = issues_by_severity.get(Severity.HIGH.value, 0)
    medium = issues_by_severity.get(Severity.MEDIUM.value, 0)

    if critical > 3:
        return "F"

    high_density = high / internal_edges
    medium_density = medium / internal_edges
    total_density = (critical + high + medium) / internal_edges

    if critical > 0 or high_density > 0.05:
        return "D"
    if high > 0 or medium_density > 0.25:
        return "C"
    if medium_density > 0.05 or total_density > 0.10:
        return "B"
    if internal_edges >= 10:
        return "A"
    return "B"


def _distribution(levels: Iterable, members: Iterable) -> dict[str, int]:
    counts = Counter(levels)
    return {member.value: counts.get(member, 0) for member in members}


class ReportBuilder:
    """Explicit mutable state for the aggregation step."""

    def __init__(self, root: str, config: AnalysisConfig):
        self.root = root
        self.config = config
        self._graph: Optional[CouplingGraph] = None
        self._issues: list[Issue] = []
        self._skipped: list[SkippedUnit] = []
        self._history: Optional[ChangeHistory] = None

    def add_graph(self, graph: CouplingGraph) -> ReportBuilder:
        self._graph = graph
        return self

    def add_issues(self, issues: Iterable[Issue]) -> ReportBuilder:
        self._issues.extend(issues)
        return self

    def add_skipped(self, skipped: Iterable[SkippedUnit]) -> ReportBuilder:
        self._skipped.extend(skipped)
        return self

    def set_history(self, history: ChangeHistory) -> ReportBuilder:
        self._history = history
        return self

    def build(self) -> AnalysisReport:
        graph = self._graph if self._graph is not None else CouplingGraph()
        issues = sorted(self._issues, key=lambda issue: issue.sort_key)
        skipped = sorted(self._skipped, key=lambda s: s.path)

        report = AnalysisReport(
            root=self.root,
            graph=graph,
            issues=issues,
            top_priorities=issues[: self.config.top_priorities],
            skipped=skipped,
            summary=self._summarize(graph, issues, skipped),
            hotspots=find_hotspots(graph, issues, HOTSPOT_LIMIT),
        )
        logger.info(
            f"Report: {report.summary.module_count} modules, "
            f"{report.summary.internal_edge_count} internal edges, "
            f"{len(issues)} issues, grade {report.summary.health_grade}"
        )
        return report

    def _summarize(
        self, graph: CouplingGraph, issues: list[Issue], skipped: list[SkippedUnit]
    ) -> ReportSummary:
        internal = graph.internal_edges
        history = self._history or ChangeHistory.unavailable("history not collected")

        by_severity = _distribution((i.severity for i in issues), Severity)
        by_kind = Counter(i.kind.value for i in issues)

        summary = ReportSummary(
            module_count=len(graph.internal_nodes),
            external_crate_count=len(graph.nodes) - len(graph.internal_nodes),
            internal_edge_count=len(internal),
            external_edge_count=len(graph.edges) - len(internal),
            strength_distribution=_distribution((e.strength for e in internal), Strength),
            distance_distribution=_distribution((e.distance for e in internal), Distance),
            volatility_distribution=_distribution((e.volatility for e in internal), Volatility),
            classification_counts=_distribution(
                (e.classification for e in internal), Classification
            ),
            interpretation_counts=_distribution(
                (e.interpretation for e in internal), BalanceInterpretation
            ),
            issues_by_severity=by_severity,
            issues_by_kind=dict(sorted(by_kind.items())),
            health_grade=health_grade(by_severity, len(internal)),
            files_analyzed=sum(len(n.files) for n in graph.internal_nodes),
            files_skipped=len(skipped),
            history_status=history.status,
            history_reason=history.reason,
            commits_analyzed=history.total_commits,
            history_window_months=history.window_months,
        )
        if internal:
            summary.average_balance = sum(e.balance for e in internal) / len(internal)
        return summary
