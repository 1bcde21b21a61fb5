"""Balance Engine: per-edge balance scores, classification and issues.

The score combines the three dimension weights (all in [0, 1])::

    alignment         = 1 - |strength - (1 - distance)|
    volatility_impact = 1 - volatility * strength
    balance           = alignment * volatility_impact

Strong coupling is fine when it is close, weak coupling is fine when it is
far, and strong coupling onto volatile code is penalized whatever the
distance. ``classify_balance`` and ``balance_score`` are pure functions of
the weights so any edge can be re-derived from its own fields.
"""

from __future__ import annotations

from ..config import DEFAULT_THRESHOLDS, AnalysisConfig, ThresholdConfig
from ..graph.models import CouplingEdge, CouplingGraph, ModuleNode
from ..logging_config import get_logger
from .detectors import run_detectors
from .models import BalanceInterpretation, Classification, Issue

logger = get_logger(__name__)


def balance_score(strength: float, distance: float, volatility: float) -> float:
    alignment = 1.0 - abs(strength - (1.0 - distance))
    volatility_impact = 1.0 - volatility * strength
    return min(max(alignment * volatility_impact, 0.0), 1.0)


def classify_balance(
    strength: float,
    distance: float,
    volatility: float,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> Classification:
    """First matching rule wins; the order matters."""
    strong = strength >= thresholds.strong_coupling
    weak = strength <= thresholds.weak_coupling
    close = distance <= thresholds.close_distance
    far = distance >= thresholds.far_distance

    if strong and close:
        return Classification.HIGH_COHESION
    if weak and far:
        return Classification.LOOSE_COUPLING
    if strong and far:
        if volatility >= thresholds.high_volatility:
            return Classification.PAIN
        return Classification.ACCEPTABLE
    if weak and close:
        return Classification.LOCAL_COMPLEXITY
    return Classification.NEUTRAL


def interpret(score: float) -> BalanceInterpretation:
    if score >= 0.8:
        return BalanceInterpretation.BALANCED
    if score >= 0.6:
        return BalanceInterpretation.ACCEPTABLE
    if score >= 0.4:
        return BalanceInterpretation.NEEDS_REVIEW
    if score >= 0.2:
        return BalanceInterpretation.NEEDS_REFACTORING
    return BalanceInterpretation.CRITICAL


def node_health(average_balance: float) -> str:
    if average_balance >= 0.8:
        return "good"
    if average_balance >= 0.6:
        return "acceptable"
    if average_balance >= 0.4:
        return "needs_review"
    return "critical"


class BalanceEngine:
    """Scores every edge of a graph and runs the issue detectors.

    Single-threaded; mutates the graph's edges and nodes in place.
    """

    def __init__(self, config: AnalysisConfig):
        self.config = config

    def score_edge(self, edge: CouplingEdge) -> None:
        weights = self.config.weights
        strength = weights.weight_of(edge.strength)
        distance = weights.weight_of(edge.distance)
        volatility = weights.weight_of(edge.volatility)

        edge.balance = balance_score(strength, distance, volatility)
        edge.classification = classify_balance(
            strength, distance, volatility, self.config.thresholds
        )
        edge.interpretation = interpret(edge.balance)

    def analyze(self, graph: CouplingGraph) -> list[Issue]:
        """Score edges, detect issues and derive node health.

        Returns:
            Deduplicated issues, most severe first.
        """
        for edge in graph.edges:
            self.score_edge(edge)

        issues = run_detectors(graph, self.config)
        self._attach_edge_issues(graph, issues)
        for node in graph.internal_nodes:
            node.health = self._health_of(graph, node)

        logger.info(f"Scored {len(graph.edges)} edges, found {len(issues)} issues")
        return issues

    @staticmethod
    def _attach_edge_issues(graph: CouplingGraph, issues: list[Issue]) -> None:
        # Issues arrive most severe first, so the first one per edge wins.
        by_edge = {graph.edge_key(edge): edge for edge in graph.edges}
        for issue in issues:
            if not issue.kind.is_edge_issue:
                continue
            edge = by_edge.get(issue.subject)
            if edge is not None and edge.issue is None:
                edge.issue = issue

    @staticmethod
    def _health_of(graph: CouplingGraph, node: ModuleNode) -> str:
        outgoing = [e.balance for e in graph.edges if e.source_id == node.id]
        if not outgoing:
            return "good"
        return node_health(sum(outgoing) / len(outgoing))
