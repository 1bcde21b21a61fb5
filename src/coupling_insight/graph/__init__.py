"""Module-level coupling graph: models, builder and cycle algorithms."""

from .algorithms import find_cycles, tarjan_scc
from .builder import GraphBuilder, module_distance
from .models import CouplingEdge, CouplingGraph, ModuleNode

__all__ = [
    "CouplingEdge",
    "CouplingGraph",
    "GraphBuilder",
    "ModuleNode",
    "find_cycles",
    "module_distance",
    "tarjan_scc",
]
