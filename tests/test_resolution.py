"""Tests for dependency resolution."""

import random
import sys
from collections.abc import Callable

import pytest

from keygraph import (
    Edge,
    EdgeVisit,
    ExecutionStep,
    KeyedGraph,
    ResolutionStrategy,
    execution_order,
    released_nodes,
    resolve_dependencies,
    resolve_dependencies_iterative,
)

type Resolver = Callable[[KeyedGraph, str], list[ExecutionStep]]


def _graph_from_edges(edges: list[tuple[str, str, str]]) -> KeyedGraph[None, None]:
    """Build a graph from (edge_key, src, dst) triples, adding every endpoint as a node."""
    graph: KeyedGraph[None, None] = KeyedGraph.empty()
    for key, src, dst in edges:
        graph = graph.insert_node(src, None).insert_node(dst, None).insert_edge(key, Edge(src, dst, None))
    return graph


def _as_tuples(steps: list[ExecutionStep]) -> list[tuple[str, list[tuple[str, bool]]]]:
    return [(step.node_key, [(v.edge_key, v.begins_cycle) for v in step.edges]) for step in steps]


@pytest.fixture(
    params=[ResolutionStrategy.RECURSIVE, ResolutionStrategy.ITERATIVE],
    ids=["recursive", "iterative"],
)
def resolve(request: pytest.FixtureRequest) -> Resolver:
    """Resolve with each strategy in turn."""
    strategy = request.param

    def _resolve(graph: KeyedGraph, start_key: str) -> list[ExecutionStep]:
        return resolve_dependencies(graph, start_key, strategy=strategy)

    return _resolve


class TestResolveDependencies:
    """Tests shared by both resolution strategies."""

    def test_node_without_edges(self, resolve: Resolver) -> None:
        graph = KeyedGraph.empty().insert_node("n", 0)
        assert resolve(graph, "n") == [ExecutionStep("n", ())]

    def test_start_node_absent_from_graph(self, resolve: Resolver) -> None:
        assert resolve(KeyedGraph.empty(), "ghost") == [ExecutionStep("ghost", ())]

    def test_linear_chain(self, resolve: Resolver) -> None:
        graph = _graph_from_edges([("ab", "a", "b"), ("bc", "b", "c")])
        assert execution_order(resolve(graph, "a")) == ["c", "b", "a"]

    def test_two_node_cycle(self, resolve: Resolver) -> None:
        graph = _graph_from_edges([("ab", "a", "b"), ("ba", "b", "a")])
        assert _as_tuples(resolve(graph, "a")) == [
            ("b", [("ba", True)]),
            ("a", [("ab", False)]),
        ]

    def test_longer_cycle(self, resolve: Resolver) -> None:
        graph = _graph_from_edges([("ab", "a", "b"), ("bc", "b", "c"), ("ca", "c", "a")])
        assert _as_tuples(resolve(graph, "a")) == [
            ("c", [("ca", True)]),
            ("b", [("bc", False)]),
            ("a", [("ab", False)]),
        ]

    def test_parallel_self_loops(self, resolve: Resolver) -> None:
        graph = _graph_from_edges([("cc", "c", "c"), ("cc2", "c", "c")])
        assert resolve(graph, "c") == [
            ExecutionStep("c", (EdgeVisit("cc", begins_cycle=True), EdgeVisit("cc2", begins_cycle=True))),
        ]

    def test_fixture_graph(self, resolve: Resolver, graph1: KeyedGraph[int, None]) -> None:
        assert _as_tuples(resolve(graph1, "a")) == [
            ("c", [("cc", True), ("cc2", True)]),
            ("b", [("bc", False)]),
            ("a", [("ab", False), ("ac", False)]),
        ]

    def test_resolved_node_is_not_a_cycle(self, resolve: Resolver) -> None:
        # b is reached from a directly and again through c, but is never an ancestor of c
        graph = _graph_from_edges([("ab", "a", "b"), ("ac", "a", "c"), ("cb", "c", "b")])
        assert _as_tuples(resolve(graph, "a")) == [
            ("b", []),
            ("c", [("cb", False)]),
            ("a", [("ab", False), ("ac", False)]),
        ]

    def test_cycle_edge_to_node_still_on_path(self, resolve: Resolver) -> None:
        graph = _graph_from_edges([("ab", "a", "b"), ("bc", "b", "c"), ("cb", "c", "b"), ("ac", "a", "c")])
        assert _as_tuples(resolve(graph, "a")) == [
            ("c", [("cb", True)]),
            ("b", [("bc", False)]),
            ("a", [("ab", False), ("ac", False)]),
        ]

    def test_each_node_emitted_once(self, resolve: Resolver) -> None:
        graph = _graph_from_edges(
            [("ab", "a", "b"), ("ac", "a", "c"), ("bd", "b", "d"), ("cd", "c", "d"), ("da", "d", "a")],
        )
        order = execution_order(resolve(graph, "a"))
        assert sorted(order) == ["a", "b", "c", "d"]
        assert order[-1] == "a"
        assert order.index("d") < order.index("b")
        assert order.index("d") < order.index("c")

    def test_unreachable_nodes_are_skipped(self, resolve: Resolver, graph1: KeyedGraph[int, None]) -> None:
        graph = graph1.insert_node("z", 26).insert_edge("za", Edge("z", "a", None))
        assert execution_order(resolve(graph, "b")) == ["c", "b"]

    def test_edges_to_absent_nodes_are_followed(self, resolve: Resolver) -> None:
        graph = KeyedGraph.empty().insert_node("a", 0).insert_edge("ax", Edge("a", "x", None))
        assert _as_tuples(resolve(graph, "a")) == [("x", []), ("a", [("ax", False)])]

    def test_edge_insertion_order_decides_branch_order(self, resolve: Resolver) -> None:
        forward = _graph_from_edges([("ab", "a", "b"), ("ac", "a", "c")])
        backward = _graph_from_edges([("ac", "a", "c"), ("ab", "a", "b")])
        assert execution_order(resolve(forward, "a")) == ["b", "c", "a"]
        assert execution_order(resolve(backward, "a")) == ["c", "b", "a"]

    def test_calls_do_not_share_state(self, resolve: Resolver, graph1: KeyedGraph[int, None]) -> None:
        first = resolve(graph1, "a")
        second = resolve(graph1, "a")
        assert first == second
        assert execution_order(resolve(graph1, "c")) == ["c"]

    def test_edge_metadata_is_ignored(self, resolve: Resolver, graph1: KeyedGraph[int, None]) -> None:
        weighted = graph1.map_edges(lambda _, src, dst: {"weight": len(src + dst)})
        assert resolve(weighted, "a") == resolve(graph1, "a")

    def test_accepts_any_graph_like_object(self, resolve: Resolver) -> None:
        class AdjacencyView:
            def __init__(self, adjacency: dict[str, list[str]]) -> None:
                self.adjacency = adjacency

            def edges_with_source(self, src_key: str) -> dict[str, Edge[None]]:
                return {f"{src_key}{dst}": Edge(src_key, dst, None) for dst in self.adjacency.get(src_key, [])}

        view = AdjacencyView({"a": ["b"], "b": ["a"]})
        assert _as_tuples(resolve(view, "a")) == [("b", [("ba", True)]), ("a", [("ab", False)])]  # type: ignore[arg-type]


class TestResolutionStrategies:
    """Tests for strategy selection and strategy-specific behaviour."""

    def test_strategy_accepts_string(self, graph1: KeyedGraph[int, None]) -> None:
        assert resolve_dependencies(graph1, "a", strategy="iterative") == resolve_dependencies(graph1, "a")

    def test_unknown_strategy(self, graph1: KeyedGraph[int, None]) -> None:
        with pytest.raises(ValueError, match="not a valid ResolutionStrategy"):
            resolve_dependencies(graph1, "a", strategy="breadth-first")

    def test_iterative_handles_deep_chains(self) -> None:
        depth = sys.getrecursionlimit() * 3
        graph = KeyedGraph.from_mappings(
            edges={f"e{i}": Edge(f"n{i}", f"n{i + 1}", None) for i in range(depth)},
        )
        steps = resolve_dependencies_iterative(graph, "n0")
        assert len(steps) == depth + 1
        assert steps[0].node_key == f"n{depth}"
        assert steps[-1].node_key == "n0"

    def test_recursive_is_bounded_by_recursion_limit(self) -> None:
        depth = sys.getrecursionlimit() * 3
        graph = KeyedGraph.from_mappings(
            edges={f"e{i}": Edge(f"n{i}", f"n{i + 1}", None) for i in range(depth)},
        )
        with pytest.raises(RecursionError):
            resolve_dependencies(graph, "n0", strategy=ResolutionStrategy.RECURSIVE)

    @pytest.mark.parametrize("seed", range(25))
    def test_strategies_agree_on_random_graphs(self, seed: int) -> None:
        rng = random.Random(seed)
        node_keys = [f"n{i}" for i in range(rng.randint(1, 12))]
        edges = {
            f"e{i}": Edge(rng.choice(node_keys), rng.choice(node_keys), None) for i in range(rng.randint(0, 30))
        }
        graph = KeyedGraph.from_mappings(nodes=dict.fromkeys(node_keys, 0), edges=edges)

        for start_key in node_keys:
            assert resolve_dependencies_iterative(graph, start_key) == resolve_dependencies(graph, start_key)


class TestExecutionSteps:
    """Tests for helpers over execution steps."""

    def test_cyclic_edge_keys(self, graph1: KeyedGraph[int, None]) -> None:
        steps = resolve_dependencies(graph1, "a")
        assert [step.cyclic_edge_keys for step in steps] == [("cc", "cc2"), (), ()]

    def test_execution_order(self, graph1: KeyedGraph[int, None]) -> None:
        assert execution_order(resolve_dependencies(graph1, "a")) == ["c", "b", "a"]

    def test_released_nodes(self, graph1: KeyedGraph[int, None]) -> None:
        before = resolve_dependencies(graph1, "a")
        after = resolve_dependencies(graph1.remove_edge("ab"), "a")
        assert released_nodes(before, after) == {"b"}
        assert released_nodes(after, before) == set()
