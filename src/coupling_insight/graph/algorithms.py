"""Graph algorithms: strongly connected components and elementary cycles."""

from __future__ import annotations

from typing import Iterable


def tarjan_scc(adjacency: dict[int, list[int]], all_nodes: Iterable[int]) -> list[set[int]]:
    """Tarjan's algorithm for strongly connected components (iterative).

    Uses an explicit call stack to avoid Python recursion limits on deep
    module chains. Roots are visited in sorted order so the result is stable.
    """
    nodes = sorted(all_nodes)
    known = set(nodes)
    counter = 0
    scc_stack: list[int] = []
    on_stack: set[int] = set()
    index: dict[int, int] = {}
    lowlink: dict[int, int] = {}
    result: list[set[int]] = []

    for root in nodes:
        if root in index:
            continue

        # Explicit call stack: each frame is (node, neighbor_iterator)
        call_stack: list[tuple] = []
        index[root] = lowlink[root] = counter
        counter += 1
        scc_stack.append(root)
        on_stack.add(root)
        neighbors = [w for w in adjacency.get(root, []) if w in known]
        call_stack.append((root, iter(neighbors)))

        while call_stack:
            v, it = call_stack[-1]
            pushed = False
            for w in it:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    scc_stack.append(w)
                    on_stack.add(w)
                    w_neighbors = [n for n in adjacency.get(w, []) if n in known]
                    call_stack.append((w, iter(w_neighbors)))
                    pushed = True
                    break
                elif w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])

            if not pushed:
                call_stack.pop()
                if call_stack:
                    caller = call_stack[-1][0]
                    lowlink[caller] = min(lowlink[caller], lowlink[v])

                if lowlink[v] == index[v]:
                    component: set[int] = set()
                    while True:
                        w = scc_stack.pop()
                        on_stack.discard(w)
                        component.add(w)
                        if w == v:
                            break
                    result.append(component)

    return result


def find_cycles(
    adjacency: dict[int, list[int]], max_cycles: int = 100
) -> tuple[list[tuple[int, ...]], bool]:
    """Enumerate elementary cycles of length >= 2.

    Only nodes inside a non-trivial SCC can lie on a cycle, so the search is
    confined to each component. Every cycle is produced once, rotated so that
    its smallest node comes first; searches start from each node in ascending
    order and only visit larger nodes, which gives exactly that rotation.

    Returns:
        (cycles, truncated) where ``truncated`` is True if more than
        ``max_cycles`` cycles exist and the enumeration stopped early. Cycles are sorted.
    """
    cycles: list[tuple[int, ...]] = []
    components = [c for c in tarjan_scc(adjacency, adjacency.keys()) if len(c) > 1]

    for component in sorted(components, key=min):
        for start in sorted(component):
            allowed = {n for n in component if n >= start}
            # Each frame: (node, neighbor_iterator); path mirrors the frames.
            path = [start]
            on_path = {start}
            stack = [iter(sorted(w for w in adjacency.get(start, []) if w in allowed))]
            while stack:
                advanced = False
                for w in stack[-1]:
                    if w == start:
                        if len(path) > 1:
                            # Truncated only once a cycle past the cap exists.
                            if len(cycles) >= max_cycles:
                                return sorted(cycles), True
                            cycles.append(tuple(path))
                    elif w not in on_path:
                        path.append(w)
                        on_path.add(w)
                        stack.append(
                            iter(sorted(n for n in adjacency.get(w, []) if n in allowed))
                        )
                        advanced = True
                        break
                if not advanced:
                    stack.pop()
                    on_path.discard(path.pop())

    return sorted(cycles), False
