"""Service layer exports.

Responsibilities:
 - ``ListService`` control surface and pipeline wiring
 - Replay-1 ``ResultBroadcaster``
 - Snapshot producers (push feed, async iterable adapter)
"""

from .broadcaster import ResultBroadcaster, Subscription  # noqa: F401
from .list_service import ListService  # noqa: F401
from .producers import AsyncIterableProducer, SnapshotFeed  # noqa: F401

__all__ = [
    "ListService",
    "ResultBroadcaster",
    "Subscription",
    "SnapshotFeed",
    "AsyncIterableProducer",
]
