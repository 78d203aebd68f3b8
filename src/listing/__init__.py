"""Reactive filter / sort / paginate pipeline for list views.

Typical use::

    from listing import ListService

    svc = ListService()
    svc.subscribe(render)
    svc.create(data=rows, page_size=20)
    svc.sort("name")
    svc.next_page()
"""

from .models import (  # noqa: F401
    DisabledState,
    ListConfig,
    ListPagination,
    ListResult,
    ListSorting,
    PageInfo,
    SnapshotProducer,
    SortOrder,
)
from .services import (  # noqa: F401
    AsyncIterableProducer,
    ListService,
    ResultBroadcaster,
    SnapshotFeed,
    Subscription,
)

__version__ = "0.1.0"

__all__ = [
    "ListService",
    "ListConfig",
    "ListResult",
    "ListSorting",
    "ListPagination",
    "PageInfo",
    "DisabledState",
    "SortOrder",
    "SnapshotProducer",
    "SnapshotFeed",
    "AsyncIterableProducer",
    "ResultBroadcaster",
    "Subscription",
]
