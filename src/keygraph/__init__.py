"""Keyed dependency graphs and execution ordering."""

__all__ = [
    "Edge",
    "EdgeVisit",
    "ExecutionStep",
    "GraphBuilder",
    "KeyedGraph",
    "ResolutionStrategy",
    "difference",
    "execution_order",
    "merge",
    "released_nodes",
    "resolve_dependencies",
    "resolve_dependencies_iterative",
]

from ._graph import (
    Edge,
    EdgeVisit,
    ExecutionStep,
    GraphBuilder,
    KeyedGraph,
    ResolutionStrategy,
    execution_order,
    merge,
    released_nodes,
    resolve_dependencies,
    resolve_dependencies_iterative,
)
from ._sets import difference
