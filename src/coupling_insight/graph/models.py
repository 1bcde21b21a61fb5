"""Module-level coupling graph.

Nodes live in an arena (``CouplingGraph.nodes``) and are addressed by their
integer id; edges are ``(source_id, target_id)`` pairs carrying the three
coupling dimensions plus the balance results filled in later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..dimensions import Distance, Strength, Volatility
from ..exceptions import InvariantViolationError
from ..scanning.models import (
    Declaration,
    DeclarationKind,
    InteractionKind,
    SourceLocation,
    render_module_path,
)

if TYPE_CHECKING:
    from ..balance.models import BalanceInterpretation, Classification, Issue

EXTERNAL_PREFIX = "::"

# ── Nodes ──────────────────────────────────────────────────────────


@dataclass
class ModuleNode:
    """One module of the analyzed tree, or a synthetic external crate.

    External nodes carry no declarations and never a volatility penalty.
    ``crate`` names the workspace member owning the module; it is empty for
    the crate at the analysis root and for external crates.
    """

    id: int
    path: tuple[str, ...]
    external: bool = False
    crate: str = ""
    files: list[str] = field(default_factory=list)
    declarations: list[Declaration] = field(default_factory=list)
    volatility: Volatility = Volatility.LOW
    commit_count: int = 0
    prelude: bool = False  # exempt from fan-in warnings
    health: str = "good"  # set by the balance engine

    @property
    def name(self) -> str:
        if self.external:
            return EXTERNAL_PREFIX + self.path[0]
        return render_module_path(self.path, self.crate)

    @property
    def function_count(self) -> int:
        """Free functions (methods are not counted)."""
        return sum(
            1 for d in self.declarations if d.kind is DeclarationKind.FUNCTION and d.owner is None
        )

    @property
    def type_count(self) -> int:
        return sum(1 for d in self.declarations if d.kind is DeclarationKind.DATA_TYPE)

    @property
    def trait_count(self) -> int:
        return sum(1 for d in self.declarations if d.kind is DeclarationKind.INTERFACE)

    @property
    def trait_impl_count(self) -> int:
        return sum(1 for d in self.declarations if d.is_trait_impl)

    @property
    def inherent_impl_count(self) -> int:
        return sum(
            1
            for d in self.declarations
            if d.kind is DeclarationKind.IMPLEMENTATION and d.trait_name is None
        )

    @property
    def impl_count(self) -> int:
        return self.trait_impl_count + self.inherent_impl_count


# ── Edges ──────────────────────────────────────────────────────────


@dataclass
class CouplingEdge:
    """Aggregated coupling from one module onto another.

    Strength is the maximum over the aggregated references, Volatility is
    the target module's level. ``balance`` / ``classification`` /
    ``interpretation`` / ``issue`` are filled in by the balance engine.
    """

    source_id: int
    target_id: int
    strength: Strength
    distance: Distance
    volatility: Volatility
    reference_count: int
    location: SourceLocation  # one sample for traceability
    interactions: dict[InteractionKind, int] = field(default_factory=dict)
    external: bool = False

    balance: float = 0.0
    classification: Optional[Classification] = None
    interpretation: Optional[BalanceInterpretation] = None
    issue: Optional[Issue] = None

    @property
    def endpoints(self) -> tuple[int, int]:
        return (self.source_id, self.target_id)

    @property
    def is_self_edge(self) -> bool:
        return self.source_id == self.target_id


# ── Graph ──────────────────────────────────────────────────────────


@dataclass
class CouplingGraph:
    nodes: list[ModuleNode] = field(default_factory=list)
    edges: list[CouplingEdge] = field(default_factory=list)
    _index: dict[tuple[bool, str, tuple[str, ...]], int] = field(default_factory=dict, repr=False)

    def add_node(
        self, path: tuple[str, ...], external: bool = False, crate: str = ""
    ) -> ModuleNode:
        key = (external, crate, path)
        if key in self._index:
            return self.nodes[self._index[key]]
        node = ModuleNode(id=len(self.nodes), path=path, external=external, crate=crate)
        self.nodes.append(node)
        self._index[key] = node.id
        return node

    def find(
        self, path: tuple[str, ...], external: bool = False, crate: str = ""
    ) -> Optional[ModuleNode]:
        node_id = self._index.get((external, crate, path))
        return None if node_id is None else self.nodes[node_id]

    def node(self, node_id: int) -> ModuleNode:
        return self.nodes[node_id]

    def by_name(self, name: str) -> Optional[ModuleNode]:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def source(self, edge: CouplingEdge) -> ModuleNode:
        return self.nodes[edge.source_id]

    def target(self, edge: CouplingEdge) -> ModuleNode:
        return self.nodes[edge.target_id]

    @property
    def internal_nodes(self) -> list[ModuleNode]:
        return [n for n in self.nodes if not n.external]

    @property
    def internal_edges(self) -> list[CouplingEdge]:
        return [e for e in self.edges if not e.external]

    def adjacency(self) -> dict[int, list[int]]:
        """Internal module graph without self loops: id -> sorted target ids."""
        adjacency: dict[int, list[int]] = {n.id: [] for n in self.internal_nodes}
        for edge in self.internal_edges:
            if not edge.is_self_edge:
                adjacency[edge.source_id].append(edge.target_id)
        for targets in adjacency.values():
            targets.sort()
        return adjacency

    def edge_key(self, edge: CouplingEdge) -> tuple[str, str]:
        return (self.nodes[edge.source_id].name, self.nodes[edge.target_id].name)

    def validate(self) -> None:
        """Check structural invariants.

        Raises:
            InvariantViolationError: On any inconsistency; these are defects.
        """
        seen_files: dict[str, int] = {}
        for position, node in enumerate(self.nodes):
            if node.id != position:
                raise InvariantViolationError("node id matches arena slot", node.name)
            if node.external and (node.declarations or node.files):
                raise InvariantViolationError("external nodes own no declarations", node.name)
            for path in node.files:
                if path in seen_files:
                    raise InvariantViolationError("each unit belongs to one module", path)
                seen_files[path] = node.id
        for node in self.nodes:
            for decl in node.declarations:
                if seen_files.get(decl.unit_path) != node.id:
                    raise InvariantViolationError(
                        "declaration owned by its unit's module", f"{node.name}::{decl.name}"
                    )

        seen_pairs: set[tuple[int, int]] = set()
        for edge in self.edges:
            for node_id in edge.endpoints:
                if not 0 <= node_id < len(self.nodes):
                    raise InvariantViolationError("edge endpoints are known modules", str(node_id))
            if edge.endpoints in seen_pairs:
                raise InvariantViolationError(
                    "one edge per module pair", " -> ".join(self.edge_key(edge))
                )
            seen_pairs.add(edge.endpoints)
            if self.nodes[edge.source_id].external:
                raise InvariantViolationError(
                    "external modules have no outgoing edges", " -> ".join(self.edge_key(edge))
                )
            if edge.external != self.nodes[edge.target_id].external:
                raise InvariantViolationError(
                    "edge external flag matches target", " -> ".join(self.edge_key(edge))
                )
