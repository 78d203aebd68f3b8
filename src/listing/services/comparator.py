"""Comparator policy for single-key list sorting.

Items are ordered by a value resolved per item: either a configured
``sort_function(item, key)`` or plain field access (mapping key first, then
attribute). Ordering is three-way and tolerant:

 - asc:  ``a < b -> -1``, ``a > b -> 1``, else ``0``
 - desc: the same rule with operands swapped
 - a missing field on either side, or values that cannot be ordered against
   each other, compare equal

Sorting relies on Python's stable sort, so items comparing equal keep their
relative input order. Callers that need a total order over sparse fields
should pass a ``sort_function`` that normalizes missing values.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import cmp_to_key
from typing import Any, Iterable, List, Optional, TypeVar

from listing.models import ListSorting, SortFunction, SortOrder

__all__ = ["MISSING", "resolve_value", "compare", "sort_items"]

T = TypeVar("T")


class _Missing:
    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "MISSING"


MISSING: Any = _Missing()


def resolve_value(item: Any, key: str, sort_function: Optional[SortFunction] = None) -> Any:
    if sort_function is not None:
        return sort_function(item, key)
    if isinstance(item, Mapping):
        return item.get(key, MISSING)
    return getattr(item, key, MISSING)


def _three_way(a: Any, b: Any) -> int:
    if a is MISSING or b is MISSING:
        return 0
    try:
        if a < b:
            return -1
        if a > b:
            return 1
    except TypeError:
        return 0
    return 0


def compare(
    a: Any,
    b: Any,
    key: str,
    order: SortOrder = SortOrder.ASC,
    sort_function: Optional[SortFunction] = None,
) -> int:
    value_a = resolve_value(a, key, sort_function)
    value_b = resolve_value(b, key, sort_function)
    if order is SortOrder.DESC:
        return _three_way(value_b, value_a)
    return _three_way(value_a, value_b)


def sort_items(
    items: Iterable[T], sorting: ListSorting, sort_function: Optional[SortFunction] = None
) -> List[T]:
    """Return a new list ordered according to ``sorting``.

    ``sorting.key is None`` keeps the input order. Exceptions raised by
    ``sort_function`` propagate to the caller.
    """
    result = list(items)
    if sorting.key is None:
        return result
    key = sorting.key
    order = sorting.order
    # Resolve each value once instead of per comparison.
    decorated = [(resolve_value(item, key, sort_function), item) for item in result]
    if order is SortOrder.DESC:
        cmp = lambda x, y: _three_way(y[0], x[0])  # noqa: E731
    else:
        cmp = lambda x, y: _three_way(x[0], y[0])  # noqa: E731
    decorated.sort(key=cmp_to_key(cmp))
    return [item for _, item in decorated]
