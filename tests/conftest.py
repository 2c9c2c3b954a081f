import pytest

from keygraph import Edge, KeyedGraph


@pytest.fixture
def graph1() -> KeyedGraph[int, None]:
    """Three nodes with a diamond a -> {b, c}, b -> c and two parallel self-loops on c."""
    return KeyedGraph.from_mappings(
        nodes={"a": 0, "b": 1, "c": 2},
        edges={
            "ab": Edge("a", "b", None),
            "ac": Edge("a", "c", None),
            "bc": Edge("b", "c", None),
            "cc": Edge("c", "c", None),
            "cc2": Edge("c", "c", None),
        },
    )
