"""Change impact of one module: who depends on it, and how far that reaches.

Only internal edges count; external crates cannot be broken by a change
to the analyzed code. Self edges are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..dimensions import Distance, Strength, Volatility
from ..graph.models import CouplingEdge, CouplingGraph, ModuleNode
from ..scanning.models import InteractionKind
from .hotspots import cycle_members

DEPENDENT_RISK = 10
SECOND_ORDER_RISK = 5
CYCLE_RISK = 30
VOLATILITY_RISK = {Volatility.LOW: 0, Volatility.MEDIUM: 10, Volatility.HIGH: 20}
MAX_RISK = 100


@dataclass(frozen=True)
class DependencyInfo:
    """One neighbor of the analyzed module, from the edge between them."""

    module: str
    strength: Strength
    distance: Distance
    reference_count: int
    interactions: dict[InteractionKind, int]

    def to_dict(self) -> dict:
        return {
            "module": self.module,
            "strength": self.strength.value,
            "distance": self.distance.value,
            "reference_count": self.reference_count,
            "interactions": {kind.value: count for kind, count in self.interactions.items()},
        }


@dataclass(frozen=True)
class ImpactAnalysis:
    """What a change to ``module`` can break.

    Attributes:
        module: The analyzed module
        risk_score: 0-100
        risk_level: "low", "medium" or "high"
        dependencies: Modules it depends on
        dependents: Modules depending on it directly
        second_order: Modules depending on a direct dependent, but not on it
        affected_percentage: Direct plus second-order dependents as a share
            of all internal modules, in percent
        in_cycle: Whether the module lies on a dependency cycle
        volatility: Highest volatility across its incoming edges
    """

    module: str
    risk_score: int
    risk_level: str
    dependencies: tuple[DependencyInfo, ...]
    dependents: tuple[DependencyInfo, ...]
    second_order: tuple[str, ...]
    affected_percentage: float
    in_cycle: bool
    volatility: Volatility

    @property
    def total_affected(self) -> int:
        return len(self.dependents) + len(self.second_order)

    def to_dict(self) -> dict:
        return {
            "module": self.module,
            "risk_score": self.risk_score,
            "risk_level": self.risk_level,
            "in_cycle": self.in_cycle,
            "volatility": self.volatility.value,
            "dependencies": [d.to_dict() for d in self.dependencies],
            "dependents": [d.to_dict() for d in self.dependents],
            "second_order": list(self.second_order),
            "total_affected": self.total_affected,
            "affected_percentage": round(self.affected_percentage, 4),
        }


def find_module(graph: CouplingGraph, name: str) -> Optional[ModuleNode]:
    """Internal module called ``name``, or else the first whose name ends in ``::name``."""
    internal = graph.internal_nodes
    for node in internal:
        if node.name == name:
            return node
    for node in internal:
        if node.name.endswith("::" + name):
            return node
    return None


def risk_level(score: int) -> str:
    if score >= 70:
        return "high"
    if score >= 40:
        return "medium"
    return "low"


def analyze_impact(graph: CouplingGraph, name: str) -> Optional[ImpactAnalysis]:
    """Impact analysis for the module ``name``; None if no module matches."""
    node = find_module(graph, name)
    if node is None:
        return None

    edges = [e for e in graph.internal_edges if not e.is_self_edge]
    outgoing = [e for e in edges if e.source_id == node.id]
    incoming = [e for e in edges if e.target_id == node.id]

    direct = {e.source_id for e in incoming}
    second = {
        e.source_id for e in edges if e.target_id in direct and e.source_id != node.id
    } - direct

    volatility = max((e.volatility for e in incoming), default=Volatility.LOW)
    in_cycle = node.id in cycle_members(graph)

    score = DEPENDENT_RISK * len(direct) + SECOND_ORDER_RISK * len(second)
    if in_cycle:
        score += CYCLE_RISK
    score = min(score + VOLATILITY_RISK[volatility], MAX_RISK)

    module_count = len(graph.internal_nodes)
    affected = len(direct) + len(second)
    return ImpactAnalysis(
        module=node.name,
        risk_score=score,
        risk_level=risk_level(score),
        dependencies=tuple(_info(e, graph.target(e)) for e in outgoing),
        dependents=tuple(_info(e, graph.source(e)) for e in incoming),
        second_order=tuple(sorted(graph.node(i).name for i in second)),
        affected_percentage=100.0 * affected / module_count if module_count else 0.0,
        in_cycle=in_cycle,
        volatility=volatility,
    )


def _info(edge: CouplingEdge, neighbor: ModuleNode) -> DependencyInfo:
    return DependencyInfo(
        module=neighbor.name,
        strength=edge.strength,
        distance=edge.distance,
        reference_count=edge.reference_count,
        interactions=dict(edge.interactions),
    )
