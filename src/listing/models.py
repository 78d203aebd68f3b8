"""Value types shared by the list pipeline.

Everything emitted to subscribers is a frozen dataclass so a result handed to
one consumer can never be altered under another. ``ListConfig`` is likewise
immutable; ``ListService.create`` derives a new config via ``merged`` rather
than mutating a shared default.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
    Union,
)

from listing.config import settings

__all__ = [
    "SortOrder",
    "ListSorting",
    "PageInfo",
    "DisabledState",
    "ListPagination",
    "ListResult",
    "ListConfig",
    "SnapshotProducer",
    "FilterFunction",
    "SortFunction",
]

T = TypeVar("T")

FilterFunction = Callable[[Any], bool]
SortFunction = Callable[[Any, str], Any]


class SortOrder(str, Enum):  # str subclass so plain "asc"/"desc" compare equal
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortOrder":
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


@dataclass(frozen=True)
class ListSorting:
    key: Optional[str] = None
    order: SortOrder = SortOrder(settings.DEFAULT_SORT_ORDER)

    def __post_init__(self) -> None:
        if not isinstance(self.order, SortOrder):
            try:
                object.__setattr__(self, "order", SortOrder(self.order))
            except ValueError:
                raise ValueError(f"Unknown sort order {self.order!r}") from None

    @classmethod
    def coerce(cls, value: "ListSorting | Mapping[str, Any] | None") -> "ListSorting":
        if value is None:
            return cls()
        if isinstance(value, ListSorting):
            return value
        return cls(
            key=value.get("key"),
            order=value.get("order", settings.DEFAULT_SORT_ORDER),
        )

    def toggled(self, key: str) -> "ListSorting":
        """Sorting after a request on ``key``.

        Same key flips the order; any other key starts ascending.
        """
        if key == self.key:
            return ListSorting(key=key, order=self.order.flipped())
        return ListSorting(key=key, order=SortOrder.ASC)

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "order": self.order.value}


@dataclass(frozen=True)
class PageInfo:
    current: int  # 1-based
    size: int  # items on the current page
    total: int


@dataclass(frozen=True)
class DisabledState:
    prev: bool
    next: bool


@dataclass(frozen=True)
class ListPagination:
    list_size: int
    page: PageInfo
    pages: Tuple[int, ...]
    disabled: DisabledState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "listSize": self.list_size,
            "page": {
                "current": self.page.current,
                "size": self.page.size,
                "total": self.page.total,
            },
            "pages": list(self.pages),
            "disabled": {"prev": self.disabled.prev, "next": self.disabled.next},
        }


@dataclass(frozen=True)
class ListResult(Generic[T]):
    page: Tuple[T, ...]
    sorting: ListSorting
    pagination: ListPagination

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": list(self.page),
            "sorting": self.sorting.to_dict(),
            "pagination": self.pagination.to_dict(),
        }


class SnapshotProducer(Protocol):  # noqa: D401 - structural
    def subscribe(
        self,
        on_next: Callable[[Iterable[Any]], None],
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> Callable[[], None]: ...  # pragma: no cover - structural


def is_producer(value: Any) -> bool:
    return callable(getattr(value, "subscribe", None))


@dataclass(frozen=True)
class ListConfig:
    """Configuration for one ``ListService`` instance.

    Attributes:
        data: Iterable of items (kept as a tuple), or a ``SnapshotProducer``
            pushing snapshots.
        page_size: Items per page; 0 puts everything on one page.
        sort: Initial sorting.
        filter_function: Predicate applied by ``filter()`` when no override
            is passed (and primed on ``create``).
        sort_function: ``(item, key) -> comparable`` replacing field access.
        reset_to_first_page_on_update: When False, ``update`` keeps the
            requested page index instead of returning to page 1.
    """

    data: Union[Iterable[Any], SnapshotProducer] = ()
    page_size: int = settings.DEFAULT_PAGE_SIZE
    sort: ListSorting = field(default_factory=ListSorting)
    filter_function: Optional[FilterFunction] = None
    sort_function: Optional[SortFunction] = None
    reset_to_first_page_on_update: bool = True

    _ALIASES = {"list": "data"}

    def __post_init__(self) -> None:
        object.__setattr__(self, "sort", ListSorting.coerce(self.sort))
        object.__setattr__(self, "page_size", max(0, int(self.page_size or 0)))
        if not is_producer(self.data):
            object.__setattr__(self, "data", tuple(self.data))

    def merged(self, **overrides: Any) -> "ListConfig":
        """Return a copy with ``overrides`` applied field by field."""
        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for name, value in overrides.items():
            target = self._ALIASES.get(name, name)
            if target not in known:
                raise TypeError(f"Unknown list configuration field '{name}'")
            changes[target] = value
        return replace(self, **changes)
