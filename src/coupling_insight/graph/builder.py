"""Graph Builder: item-level facts -> module-level coupling graph.

Runs once, after every parse worker and the history miner have finished.
Each Reference is resolved to a target module (longest known module prefix
of its absolute symbol path, or a synthetic external crate node), its
target kind is refined from the crate-wide declaration registry, and all
references between one ordered module pair collapse into a single
CouplingEdge whose Strength is the strongest among them.

Modules are identified by ``(crate, module path)``. ``crate::`` paths
resolve inside the referencing unit's own crate; paths headed by a crate
alias (the package name, or a workspace member's name) resolve inside the
crate it names. Any other head is an external crate.

Node ids follow module path order (internal modules first, root crate
before workspace members, then external crates by name), so ids, edges
and everything derived from them come out in the same order on every run.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import replace
from typing import Iterable, Optional

from ..config import AnalysisConfig, matches_any
from ..dimensions import Distance, Volatility
from ..logging_config import get_logger
from ..modules import is_ancestor
from ..scanning.classify import strongest
from ..scanning.models import (
    DeclarationKind,
    FileFacts,
    InteractionKind,
    Reference,
    TargetKind,
)
from ..temporal.models import ChangeRecord
from ..temporal.volatility import DEGRADED_VOLATILITY
from .models import CouplingEdge, CouplingGraph, ModuleNode

logger = get_logger(__name__)

Path = tuple[str, ...]
# (crate, module path); crate is "" for the root crate and for external crates
ModuleKey = tuple[str, Path]

# Re-export chains longer than this are not followed.
_MAX_REEXPORT_HOPS = 4


class GraphBuilder:
    """Assembles the ModuleNode / CouplingEdge graph.

    Args:
        config: Analysis configuration (test filter, ignored crates, preludes)
        crate_aliases: Names that mean an analyzed crate besides ``crate``,
            mapped to that crate (``""`` for the root crate). A plain list of
            names all refer to the root crate, e.g. the package name used by
            ``main.rs`` and integration tests.
    """

    def __init__(
        self,
        config: AnalysisConfig,
        crate_aliases: Mapping[str, str] | Iterable[str] = (),
    ):
        self.config = config
        if isinstance(crate_aliases, Mapping):
            self.crate_aliases = dict(crate_aliases)
        else:
            self.crate_aliases = {alias: "" for alias in crate_aliases}
        self._modules: set[ModuleKey] = set()
        self._registry: dict[ModuleKey, dict[str, DeclarationKind]] = {}
        self._reexports: dict[tuple[ModuleKey, str], ModuleKey] = {}
        self.dropped_references = 0

    def build(
        self, facts: Iterable[FileFacts], change_records: dict[str, ChangeRecord]
    ) -> CouplingGraph:
        units = sorted(facts, key=lambda f: f.unit.path)
        if self.config.exclude_tests:
            units = [_without_tests(f) for f in units]

        graph = CouplingGraph()
        for crate, module_path in sorted({_unit_key(f) for f in units}):
            graph.add_node(module_path, crate=crate)
        self._modules = {(n.crate, n.path) for n in graph.nodes}

        for unit_facts in units:
            node = graph.find(unit_facts.unit.module_path, crate=unit_facts.unit.crate)
            node.files.append(unit_facts.unit.path)
            node.declarations.extend(unit_facts.declarations)
        for node in graph.nodes:
            self._attach_history(node, change_records)
            node.prelude = matches_any_file(node.files, self.config.prelude_modules)

        self._registry = self._build_registry(units)
        self._reexports = self._build_reexports(units)

        resolved: list[tuple[ModuleKey, bool, ModuleKey, Reference]] = []
        for unit_facts in units:
            crate = unit_facts.unit.crate
            for ref in unit_facts.references:
                target = self._resolve(ref, crate, unit_facts.glob_imports)
                if target is None:
                    self.dropped_references += 1
                    continue
                external, key, refined = target
                resolved.append((_unit_key(unit_facts), external, key, refined))

        for _, external_crate in sorted({k for _, external, k, _ in resolved if external}):
            graph.add_node(external_crate, external=True)

        grouped: dict[tuple[int, int], list[Reference]] = defaultdict(list)
        for (source_crate, source_path), external, (crate, module_path), ref in resolved:
            source = graph.find(source_path, crate=source_crate)
            target = graph.find(module_path, external=external, crate=crate)
            grouped[(source.id, target.id)].append(ref)

        for source_id, target_id in sorted(grouped):
            graph.edges.append(
                self._make_edge(graph, source_id, target_id, grouped[(source_id, target_id)])
            )

        graph.validate()
        logger.info(
            f"Built graph: {len(graph.internal_nodes)} modules, "
            f"{len(graph.nodes) - len(graph.internal_nodes)} external crates, "
            f"{len(graph.edges)} edges"
        )
        if self.dropped_references:
            logger.debug(f"Dropped {self.dropped_references} unresolvable references")
        return graph

    # ── Nodes ──────────────────────────────────────────────────────

    @staticmethod
    def _attach_history(node: ModuleNode, change_records: dict[str, ChangeRecord]) -> None:
        levels: list[Volatility] = []
        for path in node.files:
            record = change_records.get(path)
            if record is None:
                levels.append(DEGRADED_VOLATILITY)
            else:
                levels.append(record.volatility)
                node.commit_count += record.commit_count
        if levels:
            node.volatility = max(levels)

    @staticmethod
    def _build_registry(units: list[FileFacts]) -> dict[ModuleKey, dict[str, DeclarationKind]]:
        """module key -> {item name: kind} for every non-method item."""
        registry: dict[ModuleKey, dict[str, DeclarationKind]] = defaultdict(dict)
        for unit_facts in units:
            items = registry[_unit_key(unit_facts)]
            for decl in unit_facts.declarations:
                if decl.kind is DeclarationKind.IMPLEMENTATION or decl.owner is not None:
                    continue
                items.setdefault(decl.name, decl.kind)
        return dict(registry)

    def _build_reexports(self, units: list[FileFacts]) -> dict[tuple[ModuleKey, str], ModuleKey]:
        # Module-level imports nothing else used are re-export candidates
        # (``pub use models::User;`` in lib.rs).
        reexports: dict[tuple[ModuleKey, str], ModuleKey] = {}
        for unit_facts in units:
            for ref in unit_facts.references:
                if ref.interaction is not InteractionKind.IMPORT or ref.origin is not None:
                    continue
                target = self._internal(ref.target, unit_facts.unit.crate)
                if target is not None and target[1]:
                    reexports.setdefault((_unit_key(unit_facts), target[1][-1]), target)
        return reexports

    # ── Reference resolution ───────────────────────────────────────

    def _internal(self, target: Path, crate: str) -> Optional[ModuleKey]:
        """(crate, symbol path inside it) for an analyzed-crate path, else None."""
        if target[0] == "crate":
            return crate, target[1:]
        if target[0] in self.crate_aliases:
            return self.crate_aliases[target[0]], target[1:]
        return None

    def _resolve(
        self, ref: Reference, crate: str, globs: tuple[Path, ...]
    ) -> Optional[tuple[bool, ModuleKey, Reference]]:
        """Return (external, module key, refined reference) or None to drop."""
        if not ref.resolved:
            return self._resolve_through_globs(ref, crate, globs)

        internal = self._internal(ref.target, crate)
        if internal is None:
            if ref.target[0] in self.config.ignored_crates:
                return None
            return True, ("", (ref.target[0],)), ref

        located = self._locate(*internal)
        if located is None:
            logger.debug(f"No module for {ref.target_name} ({ref.location})")
            return None
        key, kind = located
        if ref.target_kind is TargetKind.UNKNOWN:
            ref = replace(ref, target_kind=kind)
        return False, key, replace(ref, target=("crate",) + internal[1])

    def _resolve_through_globs(
        self, ref: Reference, crate: str, globs: tuple[Path, ...]
    ) -> Optional[tuple[bool, ModuleKey, Reference]]:
        for glob in globs:
            internal = self._internal(glob, crate)
            if internal is None:
                continue
            target_crate, prefix = internal
            located = self._locate(target_crate, prefix + ref.target, require_item=True)
            if located is None:
                continue
            key, kind = located
            target_kind = kind if ref.target_kind is TargetKind.UNKNOWN else ref.target_kind
            return (
                False,
                key,
                replace(
                    ref,
                    target=("crate",) + prefix + ref.target,
                    target_kind=target_kind,
                    resolved=True,
                ),
            )
        return None

    def _locate(
        self, crate: str, symbol: Path, require_item: bool = False
    ) -> Optional[tuple[ModuleKey, TargetKind]]:
        """Longest known module prefix of a symbol path inside ``crate``, with
        the symbol's refined kind. Follows re-exports (possibly into another
        crate) when the item is not declared where the path points."""
        for _ in range(_MAX_REEXPORT_HOPS + 1):
            module_path = self._longest_module(crate, symbol)
            if module_path is None:
                return None
            key = (crate, module_path)
            item = symbol[len(module_path) :]
            if not item:
                return None if require_item else (key, TargetKind.UNKNOWN)

            kind = self._registry.get(key, {}).get(item[0])
            if kind is not None:
                return key, _target_kind(kind, member=len(item) > 1)

            reexport = self._reexports.get((key, item[0]))
            if reexport is None or reexport == (crate, symbol[: len(module_path) + 1]):
                break
            crate, symbol = reexport[0], reexport[1] + item[1:]

        if require_item:
            return None
        return key, TargetKind.UNKNOWN

    def _longest_module(self, crate: str, symbol: Path) -> Optional[Path]:
        for size in range(len(symbol), -1, -1):
            if (crate, symbol[:size]) in self._modules:
                return symbol[:size]
        return None

    # ── Edges ──────────────────────────────────────────────────────

    def _make_edge(
        self, graph: CouplingGraph, source_id: int, target_id: int, refs: list[Reference]
    ) -> CouplingEdge:
        source, target = graph.node(source_id), graph.node(target_id)
        interactions: dict[InteractionKind, int] = defaultdict(int)
        for ref in refs:
            interactions[ref.interaction] += 1
        return CouplingEdge(
            source_id=source_id,
            target_id=target_id,
            strength=strongest(ref.strength for ref in refs),
            distance=module_distance(source, target),
            # External crates are not penalized for their own churn.
            volatility=Volatility.LOW if target.external else target.volatility,
            reference_count=len(refs),
            location=min(
                (ref.location for ref in refs), key=lambda loc: (loc.path, loc.line, loc.column)
            ),
            interactions={k: interactions[k] for k in InteractionKind if k in interactions},
            external=target.external,
        )


def module_distance(source: ModuleNode, target: ModuleNode) -> Distance:
    # Another workspace member is a separate compilation unit.
    if target.external or source.crate != target.crate:
        return Distance.DIFFERENT_CONTAINER
    if source.path == target.path:
        return Distance.SAME_FUNCTION
    if is_ancestor(source.path, target.path) or is_ancestor(target.path, source.path):
        return Distance.SAME_MODULE
    return Distance.DIFFERENT_MODULE


def matches_any_file(files: list[str], patterns: list[str]) -> bool:
    return any(matches_any(path, patterns) for path in files)


def _target_kind(kind: DeclarationKind, member: bool) -> TargetKind:
    if kind is DeclarationKind.INTERFACE:
        return TargetKind.INTERFACE
    if member or kind is DeclarationKind.FUNCTION:
        return TargetKind.FUNCTION
    return TargetKind.CONCRETE


def _without_tests(facts: FileFacts) -> FileFacts:
    return replace(
        facts,
        declarations=tuple(d for d in facts.declarations if not d.test_only),
        references=tuple(r for r in facts.references if not r.test_only),
    )


def _unit_key(facts: FileFacts) -> ModuleKey:
    return facts.unit.crate, facts.unit.module_path
