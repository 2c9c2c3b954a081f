"""Graph query functions for CLI commands.

This module provides pure functions for querying a keyed graph.
These are the functional core - no I/O, no Rich rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter

from keygraph._graph import ExecutionStep

if TYPE_CHECKING:
    from collections.abc import Iterator

    from keygraph._graph import EdgeVisit, KeyedGraph

_STEPS_ADAPTER = TypeAdapter(list[ExecutionStep])


@dataclass(frozen=True, slots=True)
class GraphSummary:
    """Summary of a graph's contents."""

    node_count: int
    edge_count: int
    dangling_edges: dict[str, frozenset[str]]


@dataclass(frozen=True, slots=True)
class EdgeInfo:
    """Basic information about an edge for listing."""

    key: str
    src: str
    dst: str
    metadata: Any


@dataclass(slots=True)
class TreeNode:
    """A node in a resolution tree for rendering.

    Attributes:
        node_key: Key of the node.
        edge_key: Key of the edge that led here, None for the root.
        begins_cycle: The edge that led here points back to an ancestor.
        repeated: The node was already expanded elsewhere in the tree.
        children: Child nodes, in discovery order.

    """

    node_key: str
    edge_key: str | None = None
    begins_cycle: bool = False
    repeated: bool = False
    children: list[TreeNode] = field(default_factory=list)


def find_dangling_edges(graph: KeyedGraph[Any, Any]) -> dict[str, frozenset[str]]:
    """Find edges that reference node keys absent from the graph.

    Args:
        graph: The graph to inspect.

    Returns:
        Mapping from edge key to the set of missing endpoint keys.

    """
    dangling: dict[str, frozenset[str]] = {}
    for edge_key, edge in graph.edges.items():
        missing = frozenset(k for k in (edge.src, edge.dst) if k not in graph)
        if missing:
            dangling[edge_key] = missing
    return dangling


def summarize_graph(graph: KeyedGraph[Any, Any]) -> GraphSummary:
    """Get summary information for a graph."""
    return GraphSummary(
        node_count=len(graph.nodes),
        edge_count=len(graph.edges),
        dangling_edges=find_dangling_edges(graph),
    )


def list_edges(
    graph: KeyedGraph[Any, Any],
    *,
    source: str | None = None,
    destination: str | None = None,
) -> list[EdgeInfo]:
    """List edges, optionally restricted to a source and/or destination node.

    Args:
        graph: The graph to query.
        source: Only include edges leaving this node key.
        destination: Only include edges entering this node key.

    Returns:
        List of EdgeInfo in edge insertion order.

    """
    if source is not None:
        edges = graph.edges_with_source(source)
        if destination is not None:
            edges = {k: e for k, e in edges.items() if e.dst == destination}
    elif destination is not None:
        edges = graph.edges_with_destination(destination)
    else:
        edges = dict(graph.edges)

    return [EdgeInfo(key=k, src=e.src, dst=e.dst, metadata=e.metadata) for k, e in edges.items()]


def build_resolution_tree(
    graph: KeyedGraph[Any, Any],
    steps: list[ExecutionStep],
    start_key: str,
) -> TreeNode:
    """Arrange resolution steps into a dependency tree rooted at ``start_key``.

    Each node is expanded once. Later references to an already expanded node
    are marked as repeated, and cycle edges become leaves marked as cycles.

    Args:
        graph: The graph that was resolved.
        steps: Steps returned by resolving ``start_key``.
        start_key: The node resolution started from.

    Returns:
        TreeNode root of the dependency tree.

    """
    step_by_node = {step.node_key: step for step in steps}

    def pending_visits(node_key: str) -> Iterator[EdgeVisit]:
        step = step_by_node.get(node_key)
        return iter(step.edges if step is not None else ())

    root = TreeNode(node_key=start_key)
    expanded = {start_key}
    # Explicit stack so the depth of the tree is not bounded by the recursion limit.
    stack = [(root, pending_visits(start_key))]

    while stack:
        tree_node, pending = stack[-1]
        for visit in pending:
            edge = graph.edge_for_key(visit.edge_key)
            if edge is None:
                continue
            child = TreeNode(node_key=edge.dst, edge_key=visit.edge_key, begins_cycle=visit.begins_cycle)
            tree_node.children.append(child)
            if visit.begins_cycle:
                continue
            if edge.dst in expanded:
                child.repeated = True
            else:
                expanded.add(edge.dst)
                stack.append((child, pending_visits(edge.dst)))
                break
        else:
            stack.pop()

    return root


def steps_to_json(steps: list[ExecutionStep], indent: int = 2) -> str:
    """Serialize execution steps as a JSON array.

    Args:
        steps: Steps to serialize.
        indent: JSON indentation spaces.

    Returns:
        JSON text.

    """
    return _STEPS_ADAPTER.dump_json(steps, indent=indent).decode()
