"""Set helpers."""

from collections.abc import Hashable, Set


def difference[T: Hashable](a: Set[T], b: Set[T]) -> set[T]:
    """Return the elements of ``a`` that are not in ``b``.

    Neither input is modified.

    Example:
        >>> sorted(difference({"a", "b", "c"}, {"b"}))
        ['a', 'c']

    """
    return {element for element in a if element not in b}
