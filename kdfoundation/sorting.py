"""A plain quicksort over index ranges with a custom less-than."""

from __future__ import annotations

import operator
from typing import Any, Callable, Iterable, MutableSequence

Less = Callable[[Any, Any], bool]


def partition(items: MutableSequence, first: int, last: int,
              predicate: Callable[[Any], bool]) -> int:
    """Move items satisfying predicate in [first, last) to the front; return the split."""
    while first != last and predicate(items[first]):
        first += 1
    if first == last:
        return first
    for i in range(first + 1, last):
        if predicate(items[i]):
            items[i], items[first] = items[first], items[i]
            first += 1
    return first


def quick_sort(items: MutableSequence, first: int, last: int,
               less: Less = operator.lt) -> None:
    """Sort items[first:last] in place."""
    n = last - first
    if n <= 1:
        return
    pivot = items[first + n // 2]
    middle1 = partition(items, first, last, lambda elem: less(elem, pivot))
    middle2 = partition(items, middle1, last, lambda elem: not less(pivot, elem))
    quick_sort(items, first, middle1, less)
    quick_sort(items, middle2, last, less)


def sort(items: Iterable, less: Less = operator.lt) -> list:
    """Return a sorted list of the items, leaving the input untouched."""
    result = list(items)
    quick_sort(result, 0, len(result), less)
    return result