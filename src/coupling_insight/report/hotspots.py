"""Hotspot ranking: which modules to refactor first.

A module's hotspot score adds up the issues it is the source of (weighted
by severity), a flat bonus for sitting on a dependency cycle, and two
points per internal edge into or out of it. Modules on a cycle that no
detector reported on are still listed, with the cycle bonus alone.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

from ..balance.detectors.fan import fan_counts
from ..balance.models import Issue, IssueKind, Severity
from ..graph.algorithms import tarjan_scc
from ..graph.models import CouplingGraph

SEVERITY_POINTS = {
    Severity.CRITICAL: 50,
    Severity.HIGH: 30,
    Severity.MEDIUM: 15,
    Severity.LOW: 5,
}
CYCLE_POINTS = 40
EDGE_POINTS = 2

CYCLE_SUGGESTION = (
    "Break the circular dependency by extracting shared types or inverting it with a trait"
)


@dataclass(frozen=True)
class Hotspot:
    """A module that needs attention.

    Attributes:
        module: Module name
        score: Higher is more urgent
        issues: Issues attributed to the module, most severe first
        suggestion: What to do first
        files: Source files of the module
        in_cycle: Whether the module lies on a dependency cycle
    """

    module: str
    score: int
    issues: tuple[Issue, ...]
    suggestion: str
    files: tuple[str, ...]
    in_cycle: bool


def cycle_members(graph: CouplingGraph) -> set[int]:
    """Ids of internal modules on at least one dependency cycle."""
    adjacency = graph.adjacency()
    members: set[int] = set()
    for component in tarjan_scc(adjacency, adjacency.keys()):
        if len(component) > 1:
            members.update(component)
    return members


def find_hotspots(graph: CouplingGraph, issues: list[Issue], limit: int = 10) -> list[Hotspot]:
    """Rank modules by hotspot score, highest first (ties by module name).

    ``issues`` must already be in priority order; each issue counts toward
    the first module of its subject.
    """
    by_module: dict[str, list[Issue]] = defaultdict(list)
    for issue in issues:
        by_module[issue.subject[0]].append(issue)

    efferent, afferent = fan_counts(graph)
    in_cycle = cycle_members(graph)

    hotspots: list[Hotspot] = []
    for node in graph.internal_nodes:
        own = by_module.get(node.name, [])
        cyclic = node.id in in_cycle
        if own:
            score = sum(SEVERITY_POINTS[i.severity] for i in own)
            score += EDGE_POINTS * (efferent[node.id] + afferent[node.id])
            if cyclic:
                score += CYCLE_POINTS
        elif cyclic:
            # Reported on only as a member of someone else's cycle.
            own = [
                i
                for i in issues
                if i.kind is IssueKind.CIRCULAR_DEPENDENCY and node.name in i.subject
            ]
            score = CYCLE_POINTS
        else:
            continue

        hotspots.append(
            Hotspot(
                module=node.name,
                score=score,
                issues=tuple(own),
                suggestion=CYCLE_SUGGESTION if cyclic else own[0].suggestion,
                files=tuple(node.files),
                in_cycle=cyclic,
            )
        )

    hotspots.sort(key=lambda h: (-h.score, h.module))
    return hotspots[:limit]
