"""Edge-level detectors: one issue per offending internal edge.

GLOBAL_COMPLEXITY      (High)    Pain edge crossing a far boundary
CASCADING_CHANGE_RISK  (High)    strong coupling onto a volatile module
INAPPROPRIATE_INTIMACY (Medium)  intrusive coupling across a module boundary

External edges are never reported: the analyzed code cannot change a
dependency's internals.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...dimensions import Strength
from ..models import Classification, Issue, IssueKind, Severity

if TYPE_CHECKING:
    from ...config import AnalysisConfig
    from ...graph.models import CouplingEdge, CouplingGraph


def _type_name(module_name: str) -> str:
    """``level::enemy`` -> ``Enemy``, for suggested trait names."""
    last = module_name.split("::")[-1]
    return "".join(part.capitalize() for part in last.split("_")) or "Module"


def _edge_issue(
    graph: CouplingGraph,
    edge: CouplingEdge,
    kind: IssueKind,
    severity: Severity,
    description: str,
    suggestion: str,
) -> Issue:
    return Issue(
        kind=kind,
        severity=severity,
        subject=graph.edge_key(edge),
        description=description,
        suggestion=suggestion,
        balance_score=edge.balance,
        location=edge.location,
    )


class GlobalComplexityDetector:
    """Strong, distant and volatile: the edge classified as Pain."""

    kind = IssueKind.GLOBAL_COMPLEXITY
    hidden = False

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        issues = []
        for edge in graph.internal_edges:
            if edge.classification is not Classification.PAIN:
                continue
            if config.weights.weight_of(edge.distance) < config.thresholds.far_distance:
                continue
            source, target = graph.edge_key(edge)
            issues.append(
                _edge_issue(
                    graph,
                    edge,
                    self.kind,
                    Severity.HIGH,
                    f"{source} has {edge.strength.value} coupling to the distant, "
                    f"frequently changed module {target}",
                    f"Introduce a trait `{_type_name(target)}Trait` exposing what "
                    f"{source} needs, or move the coupled code next to {target}.",
                )
            )
        return issues


class CascadingChangeRiskDetector:
    """Strong coupling onto volatile code, at any distance."""

    kind = IssueKind.CASCADING_CHANGE_RISK
    hidden = False

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        weights, thresholds = config.weights, config.thresholds
        issues = []
        for edge in graph.internal_edges:
            if weights.weight_of(edge.strength) < thresholds.strong_coupling:
                continue
            if weights.weight_of(edge.volatility) < thresholds.high_volatility:
                continue
            source, target = graph.edge_key(edge)
            issues.append(
                _edge_issue(
                    graph,
                    edge,
                    self.kind,
                    Severity.HIGH,
                    f"{source} depends on implementation details of {target}, "
                    f"which changes frequently; its changes will cascade",
                    f"Stabilize {target} behind an interface "
                    f"(`{_type_name(target)}Interface`) and depend on that instead.",
                )
            )
        return issues


class InappropriateIntimacyDetector:
    """Intrusive access (fields, representation) outside the owning module."""

    kind = IssueKind.INAPPROPRIATE_INTIMACY
    hidden = False

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        issues = []
        for edge in graph.internal_edges:
            if edge.strength is not Strength.INTRUSIVE:
                continue
            if config.weights.weight_of(edge.distance) < config.thresholds.close_distance:
                continue
            source, target = graph.edge_key(edge)
            issues.append(
                _edge_issue(
                    graph,
                    edge,
                    self.kind,
                    Severity.MEDIUM,
                    f"{source} reaches into the internals of {target} "
                    f"(field access, construction or foreign impl blocks)",
                    f"Expose only the operations {source} needs through an API "
                    f"(`{_type_name(target)}Api`) and keep the fields private.",
                )
            )
        return issues
