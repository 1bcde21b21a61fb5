"""HIGH_EFFERENT_COUPLING / HIGH_AFFERENT_COUPLING: hub modules.

Severity: Medium above the threshold, High above twice the threshold.

Only internal edges between two distinct modules count. Prelude modules
exist to be imported everywhere and are exempt from the fan-in check.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from ..models import Issue, IssueKind, Severity

if TYPE_CHECKING:
    from ...config import AnalysisConfig
    from ...graph.models import CouplingGraph


def fan_counts(graph: CouplingGraph) -> tuple[Counter, Counter]:
    """(outgoing, incoming) internal edge counts per node id."""
    efferent: Counter = Counter()
    afferent: Counter = Counter()
    for edge in graph.internal_edges:
        if edge.is_self_edge:
            continue
        efferent[edge.source_id] += 1
        afferent[edge.target_id] += 1
    return efferent, afferent


def _severity(count: int, limit: int) -> Severity:
    return Severity.HIGH if count > 2 * limit else Severity.MEDIUM


def _score(count: int, limit: int) -> float:
    return 1.0 - min(count / (3 * limit), 1.0)


class HighEfferentCouplingDetector:
    """Modules that depend on too many others."""

    kind = IssueKind.HIGH_EFFERENT_COUPLING
    hidden = False

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        limit = config.thresholds.max_efferent_coupling
        efferent, _ = fan_counts(graph)
        issues = []
        for node_id, count in sorted(efferent.items()):
            if count <= limit:
                continue
            name = graph.node(node_id).name
            issues.append(
                Issue(
                    kind=self.kind,
                    severity=_severity(count, limit),
                    subject=(name,),
                    description=(
                        f"{name} depends on {count} other modules (threshold: {limit})"
                    ),
                    suggestion=(
                        f"Split {name} by responsibility (e.g. {name}_core and "
                        f"{name}_integration) so each part needs fewer collaborators."
                    ),
                    balance_score=_score(count, limit),
                )
            )
        return issues


class HighAfferentCouplingDetector:
    """Modules that too many others depend on."""

    kind = IssueKind.HIGH_AFFERENT_COUPLING
    hidden = False

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        limit = config.thresholds.max_afferent_coupling
        _, afferent = fan_counts(graph)
        issues = []
        for node_id, count in sorted(afferent.items()):
            node = graph.node(node_id)
            if count <= limit or node.prelude:
                continue
            issues.append(
                Issue(
                    kind=self.kind,
                    severity=_severity(count, limit),
                    subject=(node.name,),
                    description=(
                        f"{node.name} is depended on by {count} other modules "
                        f"(threshold: {limit})"
                    ),
                    suggestion=(
                        f"Give {node.name} a small, stable public API (traits or a "
                        f"facade) so dependents stop reaching into its details; if it "
                        f"is meant to be shared everywhere, list it in prelude_modules."
                    ),
                    balance_score=_score(count, limit),
                )
            )
        return issues
