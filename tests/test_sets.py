"""Tests for set helpers."""

from keygraph import difference


class TestDifference:
    def test_removes_common_elements(self) -> None:
        assert difference({"a", "b", "c"}, {"b", "d"}) == {"a", "c"}

    def test_empty_inputs(self) -> None:
        assert difference(set(), {"a"}) == set()
        assert difference({"a"}, set()) == {"a"}

    def test_does_not_modify_inputs(self) -> None:
        a = {1, 2, 3}
        b = {2}
        result = difference(a, b)
        assert a == {1, 2, 3}
        assert b == {2}
        assert result is not a

    def test_accepts_frozensets(self) -> None:
        assert difference(frozenset({1, 2}), frozenset({1})) == {2}
