"""Dependency resolution and build ordering."""

from .builder import GraphBuilder
from .sorter import SortNode, SortResult, TopologicalSorter, VisitState

__all__ = [
    "GraphBuilder",
    "TopologicalSorter",
    "SortResult",
    "SortNode",
    "VisitState",
]
