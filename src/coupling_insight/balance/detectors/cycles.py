"""CIRCULAR_DEPENDENCY: modules that (transitively) depend on each other.

Severity: Critical

Cycles are enumerated inside each strongly connected component of the
internal module graph (self edges ignored) and reported once each, rotated
so the smallest module path comes first.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...graph.algorithms import find_cycles
from ...logging_config import get_logger
from ..models import Issue, IssueKind, Severity

if TYPE_CHECKING:
    from ...config import AnalysisConfig
    from ...graph.models import CouplingEdge, CouplingGraph

logger = get_logger(__name__)


class CircularDependencyDetector:
    """Reports every elementary dependency cycle between modules."""

    kind = IssueKind.CIRCULAR_DEPENDENCY
    hidden = False

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        cycles, truncated = find_cycles(graph.adjacency(), config.max_cycles)
        if truncated:
            logger.warning(
                f"Stopped cycle enumeration at {config.max_cycles} cycles; "
                f"raise max_cycles to see the rest"
            )

        edges = {edge.endpoints: edge for edge in graph.internal_edges}
        issues: list[Issue] = []
        for cycle in cycles:
            names = tuple(graph.node(node_id).name for node_id in cycle)
            hops = [edges[(a, b)] for a, b in zip(cycle, cycle[1:] + cycle[:1])]
            weakest = min(hops, key=lambda e: (e.strength.rank, graph.edge_key(e)))
            chain = " -> ".join(names + names[:1])
            issues.append(
                Issue(
                    kind=self.kind,
                    severity=Severity.CRITICAL,
                    subject=names,
                    description=f"Circular dependency between {len(names)} modules: {chain}",
                    suggestion=self._build_suggestion(graph, weakest),
                    balance_score=min(e.balance for e in hops),
                    location=hops[0].location,
                )
            )
        return issues

    @staticmethod
    def _build_suggestion(graph: CouplingGraph, weakest: CouplingEdge) -> str:
        source, target = graph.edge_key(weakest)
        return (
            f"Break the cycle at its weakest link ({source} -> {target}, "
            f"{weakest.strength.value} coupling): define a trait in {source} "
            f"that {target} implements, or move the shared items into a module "
            f"both can depend on."
        )
