"""Report data model handed to renderers.

``AnalysisReport.to_dict()`` is the stable, serializable shape: key order is
fixed, lists are already sorted and floats are rounded, so two runs over the
same input serialize to identical bytes. Nothing in it depends on timing.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from ..balance.models import Issue
from ..graph.models import CouplingEdge, CouplingGraph, ModuleNode
from ..scanning.models import SkippedUnit, SourceLocation
from .hotspots import Hotspot
from .impact import ImpactAnalysis, analyze_impact

_PRECISION = 4


def _round(value: float) -> float:
    return round(value, _PRECISION)


def _location_dict(location: Optional[SourceLocation]) -> Optional[dict[str, Any]]:
    if location is None:
        return None
    return {"path": location.path, "line": location.line, "column": location.column}


@dataclass
class ReportSummary:
    module_count: int = 0
    external_crate_count: int = 0
    internal_edge_count: int = 0
    external_edge_count: int = 0
    average_balance: float = 1.0  # over internal edges; 1.0 when there are none
    strength_distribution: dict[str, int] = field(default_factory=dict)
    distance_distribution: dict[str, int] = field(default_factory=dict)
    volatility_distribution: dict[str, int] = field(default_factory=dict)
    classification_counts: dict[str, int] = field(default_factory=dict)
    interpretation_counts: dict[str, int] = field(default_factory=dict)
    issues_by_severity: dict[str, int] = field(default_factory=dict)
    issues_by_kind: dict[str, int] = field(default_factory=dict)
    health_grade: str = "B"
    files_analyzed: int = 0
    files_skipped: int = 0
    history_status: str = "degraded"
    history_reason: Optional[str] = None
    commits_analyzed: int = 0
    history_window_months: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "module_count": self.module_count,
            "external_crate_count": self.external_crate_count,
            "internal_edge_count": self.internal_edge_count,
            "external_edge_count": self.external_edge_count,
            "average_balance": _round(self.average_balance),
            "health_grade": self.health_grade,
            "files_analyzed": self.files_analyzed,
            "files_skipped": self.files_skipped,
            "history": {
                "status": self.history_status,
                "reason": self.history_reason,
                "commits_analyzed": self.commits_analyzed,
                "window_months": self.history_window_months,
            },
            "distributions": {
                "strength": dict(self.strength_distribution),
                "distance": dict(self.distance_distribution),
                "volatility": dict(self.volatility_distribution),
            },
            "classifications": dict(self.classification_counts),
            "interpretations": dict(self.interpretation_counts),
            "issues_by_severity": dict(self.issues_by_severity),
            "issues_by_kind": dict(self.issues_by_kind),
        }


@dataclass
class AnalysisReport:
    """Complete result of one analysis run.

    Owns the graph (modules and edges, both already sorted), the issues in
    priority order and the units that could not be analyzed.
    """

    root: str
    graph: CouplingGraph
    issues: list[Issue]
    top_priorities: list[Issue]
    skipped: list[SkippedUnit]
    summary: ReportSummary
    hotspots: list[Hotspot] = field(default_factory=list)

    @property
    def modules(self) -> list[ModuleNode]:
        return self.graph.nodes

    @property
    def edges(self) -> list[CouplingEdge]:
        return self.graph.edges

    @property
    def health_grade(self) -> str:
        return self.summary.health_grade

    def impact(self, module: str) -> Optional[ImpactAnalysis]:
        """Change impact of ``module`` (exact name or ``::``-suffix), if it exists."""
        return analyze_impact(self.graph, module)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "summary": self.summary.to_dict(),
            "modules": [self._module_dict(node) for node in self.graph.nodes],
            "edges": [self._edge_dict(edge) for edge in self.graph.edges],
            "issues": [self._issue_dict(issue) for issue in self.issues],
            "top_priorities": [self._issue_dict(issue) for issue in self.top_priorities],
            "hotspots": [self._hotspot_dict(h) for h in self.hotspots],
            "skipped": [
                {"path": s.path, "reason": s.reason, "line": s.line} for s in self.skipped
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    # ── Serialization helpers ──────────────────────────────────────

    @staticmethod
    def _module_dict(node: ModuleNode) -> dict[str, Any]:
        return {
            "name": node.name,
            "crate": node.crate or None,
            "external": node.external,
            "files": list(node.files),
            "function_count": node.function_count,
            "type_count": node.type_count,
            "trait_count": node.trait_count,
            "trait_impl_count": node.trait_impl_count,
            "inherent_impl_count": node.inherent_impl_count,
            "volatility": node.volatility.value,
            "commit_count": node.commit_count,
            "health": node.health,
        }

    def _edge_dict(self, edge: CouplingEdge) -> dict[str, Any]:
        source, target = self.graph.edge_key(edge)
        return {
            "source": source,
            "target": target,
            "external": edge.external,
            "strength": edge.strength.value,
            "distance": edge.distance.value,
            "volatility": edge.volatility.value,
            "balance": _round(edge.balance),
            "classification": edge.classification.value if edge.classification else None,
            "interpretation": edge.interpretation.value if edge.interpretation else None,
            "reference_count": edge.reference_count,
            "interactions": {kind.value: count for kind, count in edge.interactions.items()},
            "location": _location_dict(edge.location),
            "issue": edge.issue.kind.value if edge.issue else None,
        }

    @staticmethod
    def _issue_dict(issue: Issue) -> dict[str, Any]:
        return {
            "kind": issue.kind.value,
            "severity": issue.severity.value,
            "subject": list(issue.subject),
            "description": issue.description,
            "suggestion": issue.suggestion,
            "balance_score": _round(issue.balance_score),
            "location": _location_dict(issue.location),
        }

    @staticmethod
    def _hotspot_dict(hotspot: Hotspot) -> dict[str, Any]:
        return {
            "module": hotspot.module,
            "score": hotspot.score,
            "in_cycle": hotspot.in_cycle,
            "files": list(hotspot.files),
            "issues": [
                {"kind": i.kind.value, "severity": i.severity.value, "description": i.description}
                for i in hotspot.issues
            ],
            "suggestion": hotspot.suggestion,
        }

