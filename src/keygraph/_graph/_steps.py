"""Execution steps produced by dependency resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from keygraph._sets import difference

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class EdgeVisit:
    """An outgoing edge as seen while resolving its source node.

    Attributes:
        edge_key: Key of the edge.
        begins_cycle: True if the edge's destination is the current node or
            one of its ancestors on the traversal path. Such edges are not
            followed.

    """

    edge_key: str
    begins_cycle: bool


@dataclass(frozen=True, slots=True)
class ExecutionStep:
    """One node of a resolved execution order, with its annotated outgoing edges.

    Attributes:
        node_key: Key of the node to execute.
        edges: Outgoing edges of the node, in discovery order.

    """

    node_key: str
    edges: tuple[EdgeVisit, ...] = ()

    @property
    def cyclic_edge_keys(self) -> tuple[str, ...]:
        """Keys of the outgoing edges that begin a cycle."""
        return tuple(visit.edge_key for visit in self.edges if visit.begins_cycle)


def execution_order(steps: Iterable[ExecutionStep]) -> list[str]:
    """Return the node keys of ``steps`` in execution order."""
    return [step.node_key for step in steps]


def released_nodes(
    previous: Iterable[ExecutionStep],
    current: Iterable[ExecutionStep],
) -> set[str]:
    """Get nodes that an earlier resolution needed but the current one does not.

    Args:
        previous: Steps of an earlier resolution.
        current: Steps of the current resolution.

    Returns:
        Node keys present in ``previous`` and absent from ``current``.

    """
    return difference(set(execution_order(previous)), set(execution_order(current)))
