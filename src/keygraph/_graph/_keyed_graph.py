"""Keyed directed graph container."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ._builder import GraphBuilder


@dataclass(frozen=True, slots=True)
class Edge[E]:
    """A directed edge between two node keys.

    The endpoints are plain keys; they are not required to exist in the
    graph's node set.

    Attributes:
        src: Key of the source node.
        dst: Key of the destination node.
        metadata: Caller-defined payload attached to the edge.

    """

    src: str
    dst: str
    metadata: E


def _edge_source(edge: Edge) -> str:
    return edge.src


def _edge_destination(edge: Edge) -> str:
    return edge.dst


def _index_edges(
    edges: Mapping[str, Edge],
    endpoint: Callable[[Edge], str],
) -> dict[str, tuple[str, ...]]:
    """Group edge keys by one of their endpoints, keeping insertion order."""
    index: defaultdict[str, list[str]] = defaultdict(list)
    for edge_key, edge in edges.items():
        index[endpoint(edge)].append(edge_key)
    return {node_key: tuple(edge_keys) for node_key, edge_keys in index.items()}


def _with_key(
    index: dict[str, tuple[str, ...]],
    node_key: str,
    edge_key: str,
) -> dict[str, tuple[str, ...]]:
    updated = dict(index)
    updated[node_key] = (*index.get(node_key, ()), edge_key)
    return updated


def _without_key(
    index: dict[str, tuple[str, ...]],
    node_key: str,
    edge_key: str,
) -> dict[str, tuple[str, ...]]:
    updated = dict(index)
    remaining = tuple(k for k in index.get(node_key, ()) if k != edge_key)
    if remaining:
        updated[node_key] = remaining
    else:
        updated.pop(node_key, None)
    return updated


@dataclass(frozen=True, slots=True)
class KeyedGraph[N, E]:
    """A directed graph whose nodes and edges are addressed by string keys.

    The graph is an immutable value. Every operation that changes it returns
    a new graph; untouched node and edge tables are shared between the old
    and the new graph rather than copied. Use ``GraphBuilder`` for bulk
    construction.

    Edges may reference node keys that are not present in the node set, and
    removing a node never removes the edges attached to it.

    Attributes:
        _nodes: Mapping from node key to node payload.
        _edges: Mapping from edge key to edge.
        _by_source: Edge keys grouped by source node key.
        _by_destination: Edge keys grouped by destination node key.

    """

    _nodes: dict[str, N] = field(default_factory=dict)
    _edges: dict[str, Edge[E]] = field(default_factory=dict)
    _by_source: dict[str, tuple[str, ...]] = field(default_factory=dict, compare=False, repr=False)
    _by_destination: dict[str, tuple[str, ...]] = field(default_factory=dict, compare=False, repr=False)

    # Payloads may be unhashable, so graphs compare by value but cannot be hashed.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        # Indexes are derived state; rebuild them whenever they were not supplied.
        if self._edges and not self._by_source:
            object.__setattr__(self, "_by_source", _index_edges(self._edges, _edge_source))
            object.__setattr__(self, "_by_destination", _index_edges(self._edges, _edge_destination))

    @classmethod
    def empty(cls) -> KeyedGraph[N, E]:
        """Return a graph with no nodes and no edges."""
        return cls()

    @classmethod
    def from_mappings(
        cls,
        nodes: Mapping[str, N] | None = None,
        edges: Mapping[str, Edge[E]] | None = None,
    ) -> KeyedGraph[N, E]:
        """Build a graph from node and edge mappings.

        The mappings are copied, so later changes to them do not affect the graph.

        Args:
            nodes: Mapping from node key to node payload.
            edges: Mapping from edge key to edge.

        Returns:
            A new KeyedGraph instance.

        Example:
            >>> graph = KeyedGraph.from_mappings(
            ...     nodes={"a": 0, "b": 1},
            ...     edges={"ab": Edge("a", "b", None)},
            ... )
            >>> list(graph.edges_with_source("a"))
            ['ab']

        """
        edges = dict(edges or {})
        for edge in edges.values():
            _check_edge(edge)
        return cls(_nodes=dict(nodes or {}), _edges=edges)

    # -- Accessors

    @property
    def nodes(self) -> Mapping[str, N]:
        """Read-only view of all nodes, in insertion order."""
        return MappingProxyType(self._nodes)

    @property
    def edges(self) -> Mapping[str, Edge[E]]:
        """Read-only view of all edges, in insertion order."""
        return MappingProxyType(self._edges)

    def node_for_key(self, key: str) -> N | None:
        """Get the node stored at ``key``, or None if there is none."""
        return self._nodes.get(key)

    def edge_for_key(self, key: str) -> Edge[E] | None:
        """Get the edge stored at ``key``, or None if there is none."""
        return self._edges.get(key)

    def edges_with_source(self, src_key: str) -> dict[str, Edge[E]]:
        """Get all edges leaving a node.

        Args:
            src_key: Key of the source node. It does not need to be in the graph.

        Returns:
            Mapping from edge key to edge, in edge insertion order.

        """
        return {edge_key: self._edges[edge_key] for edge_key in self._by_source.get(src_key, ())}

    def edges_with_destination(self, dst_key: str) -> dict[str, Edge[E]]:
        """Get all edges entering a node.

        Args:
            dst_key: Key of the destination node. It does not need to be in the graph.

        Returns:
            Mapping from edge key to edge, in edge insertion order.

        """
        return {edge_key: self._edges[edge_key] for edge_key in self._by_destination.get(dst_key, ())}

    def find_edge(self, predicate: Callable[[Edge[E]], bool]) -> str | None:
        """Return the key of the first edge matching ``predicate``, or None."""
        return next((edge_key for edge_key, edge in self._edges.items() if predicate(edge)), None)

    def filter_edges(self, predicate: Callable[[Edge[E]], bool]) -> dict[str, Edge[E]]:
        """Return all edges matching ``predicate``, keyed by edge key."""
        return {edge_key: edge for edge_key, edge in self._edges.items() if predicate(edge)}

    # -- Mutations (each returns a new graph)

    def insert_node(self, key: str, node: N) -> KeyedGraph[N, E]:
        """Return a graph with ``node`` stored at ``key``, replacing any previous node."""
        nodes = dict(self._nodes)
        nodes[key] = node
        return KeyedGraph(nodes, self._edges, self._by_source, self._by_destination)

    def insert_edge(self, key: str, edge: Edge[E]) -> KeyedGraph[N, E]:
        """Return a graph with ``edge`` stored at ``key``, replacing any previous edge.

        Raises:
            TypeError: If ``edge`` is not an Edge.

        """
        _check_edge(edge)
        edges = dict(self._edges)
        previous = edges.get(key)
        edges[key] = edge

        if previous is None:
            by_source = _with_key(self._by_source, edge.src, key)
            by_destination = _with_key(self._by_destination, edge.dst, key)
        else:
            # An overwritten key keeps its position, so regroup only what moved.
            by_source = self._by_source if previous.src == edge.src else _index_edges(edges, _edge_source)
            by_destination = (
                self._by_destination if previous.dst == edge.dst else _index_edges(edges, _edge_destination)
            )

        return KeyedGraph(self._nodes, edges, by_source, by_destination)

    def remove_node(self, key: str) -> KeyedGraph[N, E]:
        """Return a graph without the node at ``key``.

        Edges attached to the node are kept. Removing an absent key returns
        this graph unchanged.
        """
        if key not in self._nodes:
            return self
        nodes = {k: v for k, v in self._nodes.items() if k != key}
        return KeyedGraph(nodes, self._edges, self._by_source, self._by_destination)

    def remove_edge(self, key: str) -> KeyedGraph[N, E]:
        """Return a graph without the edge at ``key``.

        Removing an absent key returns this graph unchanged.
        """
        edge = self._edges.get(key)
        if edge is None:
            return self
        edges = {k: v for k, v in self._edges.items() if k != key}
        return KeyedGraph(
            self._nodes,
            edges,
            _without_key(self._by_source, edge.src, key),
            _without_key(self._by_destination, edge.dst, key),
        )

    def mutate_node(self, key: str, transform: Callable[[N], N]) -> KeyedGraph[N, E]:
        """Return a graph where the node at ``key`` is replaced by ``transform(node)``.

        If ``key`` is absent, ``transform`` is not called and this graph is returned.
        """
        if key not in self._nodes:
            return self
        return self.insert_node(key, transform(self._nodes[key]))

    # -- Transforms

    def map_nodes[N2](self, transform: Callable[[N], N2]) -> KeyedGraph[N2, E]:
        """Return a graph with every node payload passed through ``transform``.

        Node keys and the whole edge set are unchanged.
        """
        nodes = {key: transform(node) for key, node in self._nodes.items()}
        return KeyedGraph(nodes, self._edges, self._by_source, self._by_destination)

    def map_edges[E2](self, transform: Callable[[E, str, str], E2]) -> KeyedGraph[N, E2]:
        """Return a graph with every edge's metadata passed through ``transform``.

        ``transform`` receives ``(metadata, src, dst)``. Edge keys, endpoints
        and the node set are unchanged.
        """
        edges = {
            key: Edge(edge.src, edge.dst, transform(edge.metadata, edge.src, edge.dst))
            for key, edge in self._edges.items()
        }
        return KeyedGraph(self._nodes, edges, self._by_source, self._by_destination)

    def transform_node_keys(self, transform_key: Callable[[str], str]) -> KeyedGraph[N, E]:
        """Return a graph with every node key passed through ``transform_key``.

        Edge endpoints are rewritten with the same function, so edges keep
        pointing at the same nodes. Edge keys are unchanged.
        """
        nodes = {transform_key(key): node for key, node in self._nodes.items()}
        edges = {
            key: Edge(transform_key(edge.src), transform_key(edge.dst), edge.metadata)
            for key, edge in self._edges.items()
        }
        return KeyedGraph(nodes, edges)

    def transform_edge_keys(self, transform_key: Callable[[str], str]) -> KeyedGraph[N, E]:
        """Return a graph with every edge key passed through ``transform_key``."""
        edges = {transform_key(key): edge for key, edge in self._edges.items()}
        return KeyedGraph(self._nodes, edges)

    def merge(self, other: KeyedGraph[N, E]) -> KeyedGraph[N, E]:
        """Return the union of this graph and ``other``.

        For keys present in both graphs, the node or edge from ``other`` wins.
        """
        if not other._nodes and not other._edges:
            return self
        nodes = {**self._nodes, **other._nodes}
        edges = {**self._edges, **other._edges}
        return KeyedGraph(nodes, edges)

    def to_builder(self) -> GraphBuilder[N, E]:
        """Return a mutable builder seeded with this graph's nodes and edges."""
        from ._builder import GraphBuilder  # noqa: PLC0415

        return GraphBuilder(nodes=self._nodes, edges=self._edges)

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._nodes)

    def __contains__(self, key: object) -> bool:
        """Check if a node key is in the graph."""
        return key in self._nodes


def merge[N, E](g1: KeyedGraph[N, E], g2: KeyedGraph[N, E]) -> KeyedGraph[N, E]:
    """Right-biased union of two graphs. Neither input is modified."""
    return g1.merge(g2)


def _check_edge(edge: object) -> None:
    if not isinstance(edge, Edge):
        msg = f"Expected an Edge, got {type(edge).__name__}"
        raise TypeError(msg)
