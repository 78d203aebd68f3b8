"""ListService: filter, sort and paginate a changing collection.

Dataflow (one direction only)::

    raw ──┐
          ├─ filtered ──┐
    predicate          ├─ sorted ──┐
              sorting ─┘           ├─ paginated ─> ResultBroadcaster
                        page_index ┤
                         page_size ┘

The control methods (``update``, ``filter``, ``sort``, ``go_to_page``,
``next_page``, ``prev_page``, ``set_page_size``) only write input channels.
Each write notifies the pipeline synchronously and yields exactly one new
``ListResult`` on ``results`` once raw data has been seen; nothing is
broadcast before the first raw collection arrives.

Thread-safety: single writer. Hosts calling control methods from several
threads must serialize those calls themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

from listing.models import (
    FilterFunction,
    ListConfig,
    ListPagination,
    ListResult,
    ListSorting,
    is_producer,
)
from .broadcaster import ResultBroadcaster, ResultHandler, Subscription
from .comparator import sort_items
from .pagination import paginate
from .reactive import Channel, Stage

__all__ = ["ListService", "SortedList", "filter_items"]

_log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SortedList:
    items: Tuple[Any, ...]
    sorting: ListSorting


def filter_items(raw: Iterable[T], predicate: Optional[FilterFunction]) -> List[T]:
    if predicate is None:
        return list(raw)
    return [item for item in raw if predicate(item)]


class ListService(Generic[T]):
    def __init__(self) -> None:
        self._config = ListConfig()
        self._disposed = False
        self._release_producer: Optional[Callable[[], None]] = None

        # Input channels
        self._raw: Channel[Tuple[T, ...]] = Channel("raw")
        self._predicate: Channel[Optional[FilterFunction]] = Channel("predicate", None)
        self._sorting: Channel[ListSorting] = Channel("sorting", ListSorting())
        self._page_index: Channel[int] = Channel("page_index", 0)
        self._page_size: Channel[int] = Channel("page_size", self._config.page_size)

        # Derived stages
        self._filtered: Stage[List[T]] = Stage(
            "filtered", (self._raw, self._predicate), filter_items
        )
        self._sorted: Stage[SortedList] = Stage(
            "sorted", (self._filtered, self._sorting), self._sort_stage
        )
        self._paginated: Stage[ListResult[T]] = Stage(
            "paginated", (self._sorted, self._page_index, self._page_size), self._page_stage
        )
        self._results: ResultBroadcaster[T] = ResultBroadcaster()
        self._unwatch_output = self._paginated.watch(self._emit)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def create(self, config: Optional[ListConfig] = None, **overrides: Any) -> None:
        """(Re)initialize the list from ``config`` and/or keyword overrides.

        Overrides are merged over the current configuration; fields not
        supplied keep their previous value. Accepts ``list`` as an alias for
        ``data``. ``data`` may be an iterable or a snapshot producer.
        """
        if self._disposed:
            _log.debug("create() on disposed ListService ignored")
            return
        base = config if config is not None else self._config
        self._config = base.merged(**overrides) if overrides else base
        cfg = self._config
        _log.debug(
            "create list: page_size=%s sort=%s filter=%s",
            cfg.page_size,
            cfg.sort,
            cfg.filter_function is not None,
        )

        if cfg.filter_function is not None:
            self._predicate.set(cfg.filter_function)
        self._sorting.set(cfg.sort)
        if cfg.page_size != self._page_size.peek():
            self._page_size.set(cfg.page_size)

        self._detach_producer()
        if is_producer(cfg.data):
            _log.debug("subscribing to snapshot producer %r", cfg.data)
            self._release_producer = cfg.data.subscribe(self.update, self._on_producer_error)
        else:
            self.update(cfg.data)

    def dispose(self) -> None:
        """Stop all emissions and release any producer subscription."""
        if self._disposed:
            return
        self._disposed = True
        self._detach_producer()
        self._unwatch_output()
        for stage in (self._paginated, self._sorted, self._filtered):
            stage.detach()
        self._results.close()
        _log.debug("list service disposed")

    def __enter__(self) -> "ListService[T]":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.dispose()

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def config(self) -> ListConfig:
        return self._config

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------
    def update(self, data: Iterable[T]) -> None:
        """Replace the source collection (copied) and return to page 1."""
        if self._guard("update"):
            return
        self._raw.set(tuple(data))
        if self._config.reset_to_first_page_on_update:
            self._page_index.set(0)

    def filter(self, predicate: Optional[FilterFunction] = None) -> None:
        """Filter with ``predicate``, or the configured ``filter_function``."""
        if self._guard("filter"):
            return
        self._predicate.set(predicate if predicate is not None else self._config.filter_function)
        self._page_index.set(0)

    def sort(self, key: str) -> None:
        """Sort by ``key``; repeating the current key flips the order."""
        if self._guard("sort"):
            return
        self._sorting.set(self._sorting.get().toggled(key))
        self._page_index.set(0)

    def go_to_page(self, page: int) -> None:
        """Go to 1-based ``page``; out-of-range pages are clamped."""
        if self._guard("go_to_page"):
            return
        self._page_index.set(page - 1)

    def next_page(self) -> None:
        if self._guard("next_page"):
            return
        self._page_index.set(self._page_index.get() + 1)

    def prev_page(self) -> None:
        if self._guard("prev_page"):
            return
        self._page_index.set(self._page_index.get() - 1)

    def set_page_size(self, page_size: int) -> None:
        """Change items per page (0 = everything on one page).

        The current page index is kept and re-clamped against the new total.
        """
        if self._guard("set_page_size"):
            return
        size = max(0, int(page_size))
        self._config = self._config.merged(page_size=size)
        self._page_size.set(size)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    @property
    def results(self) -> ResultBroadcaster[T]:
        return self._results

    @property
    def latest(self) -> Optional[ListResult[T]]:
        return self._results.latest

    def subscribe(self, handler: ResultHandler) -> Subscription:
        return self._results.subscribe(handler)

    @property
    def sorting(self) -> ListSorting:
        return self._sorting.get()

    @property
    def pagination(self) -> Optional[ListPagination]:
        latest = self._results.latest
        return latest.pagination if latest is not None else None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _sort_stage(self, filtered: List[T], sorting: ListSorting) -> SortedList:
        items = sort_items(filtered, sorting, self._config.sort_function)
        return SortedList(items=tuple(items), sorting=sorting)

    def _page_stage(self, sorted_list: SortedList, index: int, size: int) -> ListResult[T]:
        page, pagination = paginate(sorted_list.items, index, size)
        return ListResult(page=tuple(page), sorting=sorted_list.sorting, pagination=pagination)

    def _emit(self, _cell: Any) -> None:
        if self._disposed or not self._paginated.ready:
            return
        self._results.publish(self._paginated.get())

    def _guard(self, operation: str) -> bool:
        if self._disposed:
            _log.debug("%s() on disposed ListService ignored", operation)
            return True
        return False

    def _detach_producer(self) -> None:
        release, self._release_producer = self._release_producer, None
        if release is not None:
            _log.debug("releasing snapshot producer subscription")
            release()

    def _on_producer_error(self, error: BaseException) -> None:
        _log.error("snapshot producer failed; subscription ended", exc_info=error)
        self._release_producer = None
