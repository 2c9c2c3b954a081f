"""Graph algorithms for dependency resolution."""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from ._steps import EdgeVisit, ExecutionStep

logger = logging.getLogger(__name__)


class SupportsEdgesWithSource(Protocol):
    """Anything that can list the outgoing edges of a node key.

    Resolution never looks at edge metadata, only at each edge's ``dst``.
    """

    def edges_with_source(self, src_key: str, /) -> Mapping[str, Any]: ...


class ResolutionStrategy(StrEnum):
    """How the depth-first traversal keeps track of the current path."""

    RECURSIVE = "recursive"  # Python call stack; bounded by the recursion limit
    ITERATIVE = "iterative"  # Explicit stack; no depth limit


def resolve_dependencies(
    graph: SupportsEdgesWithSource,
    start_key: str,
    *,
    strategy: ResolutionStrategy | str = ResolutionStrategy.RECURSIVE,
) -> list[ExecutionStep]:
    """Linearize the subgraph reachable from ``start_key`` into execution steps.

    Performs a depth-first traversal in the order returned by
    ``edges_with_source`` and emits a node's step after the steps of every
    dependency it descended into (postorder). Each node is emitted at most
    once. An edge whose destination is the current node or one of its
    ancestors on the traversal path is recorded with ``begins_cycle=True``
    and not followed; cycles are never an error.

    Args:
        graph: Graph to resolve. Only ``edges_with_source`` is used.
        start_key: Key of the node to start from. It does not need to be in
            the graph's node set.
        strategy: Traversal strategy. Both strategies produce identical steps.
            The recursive one can raise RecursionError on very deep chains.

    Returns:
        Execution steps, dependencies first.

    Raises:
        ValueError: If ``strategy`` is not a known ResolutionStrategy.

    Example:
        >>> from keygraph import Edge, KeyedGraph
        >>> graph = KeyedGraph.from_mappings(edges={"ab": Edge("a", "b", None)})
        >>> [step.node_key for step in resolve_dependencies(graph, "a")]
        ['b', 'a']

    """
    if ResolutionStrategy(strategy) is ResolutionStrategy.ITERATIVE:
        return resolve_dependencies_iterative(graph, start_key)

    steps: list[ExecutionStep] = []
    resolved: set[str] = set()

    def visit(node_key: str, on_path: frozenset[str]) -> None:
        on_path = on_path | {node_key}
        visits: list[EdgeVisit] = []

        for edge_key, edge in graph.edges_with_source(node_key).items():
            begins_cycle = edge.dst in on_path
            if begins_cycle:
                logger.debug("Edge %s from %s begins a cycle", edge_key, node_key)
            elif edge.dst not in resolved:
                visit(edge.dst, on_path)
            visits.append(EdgeVisit(edge_key, begins_cycle))

        steps.append(ExecutionStep(node_key, tuple(visits)))
        resolved.add(node_key)

    logger.debug("Resolving dependencies of %s", start_key)
    visit(start_key, frozenset())
    return steps


@dataclass(slots=True)
class _Frame:
    """A node whose outgoing edges are still being walked."""

    node_key: str
    pending: Iterator[tuple[str, Any]]
    visits: list[EdgeVisit] = field(default_factory=list)


def resolve_dependencies_iterative(
    graph: SupportsEdgesWithSource,
    start_key: str,
) -> list[ExecutionStep]:
    """Resolve dependencies like ``resolve_dependencies`` without recursion.

    The traversal path is kept on an explicit stack, so the depth of the
    graph is limited only by memory. Ordering and cycle flags are identical
    to the recursive strategy.

    Args:
        graph: Graph to resolve. Only ``edges_with_source`` is used.
        start_key: Key of the node to start from.

    Returns:
        Execution steps, dependencies first.

    """
    steps: list[ExecutionStep] = []
    resolved: set[str] = set()

    logger.debug("Resolving dependencies of %s", start_key)
    stack = [_Frame(start_key, iter(graph.edges_with_source(start_key).items()))]
    # The keys on the stack are exactly the ancestors of the top frame, plus itself.
    on_path = {start_key}

    while stack:
        frame = stack[-1]
        for edge_key, edge in frame.pending:
            begins_cycle = edge.dst in on_path
            frame.visits.append(EdgeVisit(edge_key, begins_cycle))
            if begins_cycle:
                logger.debug("Edge %s from %s begins a cycle", edge_key, frame.node_key)
            elif edge.dst not in resolved:
                stack.append(_Frame(edge.dst, iter(graph.edges_with_source(edge.dst).items())))
                on_path.add(edge.dst)
                break
        else:
            stack.pop()
            on_path.discard(frame.node_key)
            steps.append(ExecutionStep(frame.node_key, tuple(frame.visits)))
            resolved.add(frame.node_key)

    return steps
