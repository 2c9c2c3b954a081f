"""Mutable staging area for building keyed graphs in bulk."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from ._keyed_graph import Edge, KeyedGraph, _check_edge

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


class GraphBuilder[N, E]:
    """Collect nodes and edges in place, then freeze them into a KeyedGraph.

    ``KeyedGraph`` copies a table on every change. When a graph is assembled
    from many insertions, stage them here instead and call ``build()`` once.
    A builder can keep being used after ``build()``; the graphs it already
    produced are not affected.

    Example:
        >>> graph = (
        ...     GraphBuilder()
        ...     .add_node("a", 0)
        ...     .add_node("b", 1)
        ...     .add_edge("ab", Edge("a", "b", None))
        ...     .build()
        ... )
        >>> graph.node_for_key("b")
        1

    """

    def __init__(
        self,
        nodes: Mapping[str, N] | None = None,
        edges: Mapping[str, Edge[E]] | None = None,
    ) -> None:
        self._nodes: dict[str, N] = dict(nodes or {})
        self._edges: dict[str, Edge[E]] = {}
        for key, edge in (edges or {}).items():
            self.add_edge(key, edge)

    def add_node(self, key: str, node: N) -> Self:
        """Store ``node`` at ``key``, replacing any previous node."""
        self._nodes[key] = node
        return self

    def add_edge(self, key: str, edge: Edge[E]) -> Self:
        """Store ``edge`` at ``key``, replacing any previous edge.

        Raises:
            TypeError: If ``edge`` is not an Edge.

        """
        _check_edge(edge)
        self._edges[key] = edge
        return self

    def remove_node(self, key: str) -> Self:
        """Remove the node at ``key`` if present. Attached edges are kept."""
        self._nodes.pop(key, None)
        return self

    def remove_edge(self, key: str) -> Self:
        """Remove the edge at ``key`` if present."""
        self._edges.pop(key, None)
        return self

    def mutate_node(self, key: str, transform: Callable[[N], N]) -> Self:
        """Replace the node at ``key`` with ``transform(node)`` if present."""
        if key in self._nodes:
            self._nodes[key] = transform(self._nodes[key])
        return self

    def update(self, graph: KeyedGraph[N, E]) -> Self:
        """Merge ``graph`` into the builder; its nodes and edges win on key clashes."""
        self._nodes.update(graph.nodes)
        self._edges.update(graph.edges)
        return self

    def build(self) -> KeyedGraph[N, E]:
        """Freeze the staged nodes and edges into a new KeyedGraph."""
        return KeyedGraph(_nodes=dict(self._nodes), _edges=dict(self._edges))

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: object) -> bool:
        return key in self._nodes
