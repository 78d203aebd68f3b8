"""Pagination arithmetic for the list pipeline.

Requested indices are clamped into range rather than rejected, so callers can
step past either end freely. A page size of 0 puts the whole list on a single
page; an empty list still reports one (empty) page.
"""

from __future__ import annotations

import math
from typing import Any, List, Sequence, Tuple

from listing.models import DisabledState, ListPagination, PageInfo

__all__ = ["total_pages", "clamp_index", "paginate"]


def total_pages(list_size: int, page_size: int) -> int:
    """Raw page count; 0 when ``page_size`` is 0 (unpaginated)."""
    if page_size <= 0:
        return 0
    return math.ceil(list_size / page_size)


def clamp_index(requested_index: int, pages: int) -> int:
    return max(0, min(requested_index, pages - 1))


def paginate(
    items: Sequence[Any], requested_index: int, page_size: int
) -> Tuple[List[Any], ListPagination]:
    pages = total_pages(len(items), page_size)
    index = clamp_index(requested_index, pages)
    if pages == 0:
        page = list(items)
    else:
        start = index * page_size
        page = list(items[start : start + page_size])
    shown_total = max(pages, 1)
    pagination = ListPagination(
        list_size=len(items),
        page=PageInfo(current=index + 1, size=len(page), total=shown_total),
        pages=tuple(range(1, shown_total + 1)),
        disabled=DisabledState(prev=index == 0, next=index == max(pages - 1, 0)),
    )
    return page, pagination
