"""Graph module providing keyed graph abstractions.

This module contains:
- KeyedGraph[N, E]: An immutable directed graph addressed by string keys
- GraphBuilder[N, E]: A mutable staging area that builds a KeyedGraph
- resolve_dependencies: Depth-first execution ordering with cycle flags
"""

from ._algorithms import (
    ResolutionStrategy,
    SupportsEdgesWithSource,
    resolve_dependencies,
    resolve_dependencies_iterative,
)
from ._builder import GraphBuilder
from ._keyed_graph import Edge, KeyedGraph, merge
from ._steps import EdgeVisit, ExecutionStep, execution_order, released_nodes

__all__ = [
    "Edge",
    "EdgeVisit",
    "ExecutionStep",
    "GraphBuilder",
    "KeyedGraph",
    "ResolutionStrategy",
    "SupportsEdgesWithSource",
    "execution_order",
    "merge",
    "released_nodes",
    "resolve_dependencies",
    "resolve_dependencies_iterative",
]
