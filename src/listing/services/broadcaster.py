"""Replay-1 result broadcaster.

Multicasts every published ``ListResult`` to all current subscribers and
retains only the latest one, which is delivered synchronously to each new
subscriber before it starts receiving further results.

Thread-safety: the subscriber list is guarded by a re-entrant lock. Handlers
are invoked while the lock is NOT held (copy-first strategy) so a handler may
subscribe or cancel without deadlock. A handler that triggers another publish
does not get it nested: the new result is queued and delivered to everyone
after the current one. A failing handler does not stop delivery to the
others; the failure is logged and kept in the bounded ``errors`` buffer.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from threading import RLock
from typing import Any, Deque, Generic, List, Optional, Protocol, Tuple, TypeVar

from listing.models import ListResult

__all__ = ["ResultBroadcaster", "ResultHandler", "Subscription"]

_log = logging.getLogger(__name__)

T = TypeVar("T")


class ResultHandler(Protocol):  # noqa: D401 - protocol signature docs implicit
    def __call__(self, result: ListResult[Any]) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    handler: ResultHandler
    owner: Optional["ResultBroadcaster[Any]"] = None
    active: bool = True

    def cancel(self) -> None:
        if self.owner is not None:
            self.owner.unsubscribe(self)
        self.active = False


class ResultBroadcaster(Generic[T]):
    DEFAULT_ERROR_CAPACITY = 50

    def __init__(self, *, error_capacity: int = DEFAULT_ERROR_CAPACITY) -> None:
        self._lock = RLock()
        self._subs: List[Subscription] = []
        self._last: Optional[ListResult[T]] = None
        self._closed = False
        self._errors: Deque[Tuple[ListResult[T], BaseException]] = deque(
            maxlen=max(1, error_capacity)
        )
        # Results published while a dispatch is running wait here so every
        # subscriber sees them in publish order.
        self._pending: Deque[ListResult[T]] = deque()
        self._dispatched: Optional[ListResult[T]] = None
        self._dispatching = False

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------
    def subscribe(self, handler: ResultHandler) -> Subscription:
        sub = Subscription(handler=handler, owner=self)
        with self._lock:
            if self._closed:
                sub.active = False
                return sub
            # replay what the others have already seen, not a queued result
            last = self._dispatched
        if last is not None:
            self._deliver(sub, last)
        with self._lock:
            # The replay handler may have cancelled, or the owner closed.
            if sub.active and not self._closed:
                self._subs.append(sub)
            else:
                sub.active = False
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            for i, existing in enumerate(self._subs):
                if existing is sub:
                    self._subs.pop(i)
                    break
        sub.active = False

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------
    def publish(self, result: ListResult[T]) -> None:
        with self._lock:
            if self._closed:
                _log.debug("publish after close ignored")
                return
            self._last = result
            self._pending.append(result)
            if self._dispatching:
                return
            self._dispatching = True
        try:
            self._drain()
        finally:
            with self._lock:
                self._dispatching = False

    def _drain(self) -> None:
        while True:
            with self._lock:
                if self._closed or not self._pending:
                    self._pending.clear()
                    return
                result = self._pending.popleft()
                self._dispatched = result
                subs = list(self._subs)
            for sub in subs:
                if not sub.active or self._closed:
                    continue
                self._deliver(sub, result)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subs, self._subs = self._subs, []
        for sub in subs:
            sub.active = False

    def _deliver(self, sub: Subscription, result: ListResult[T]) -> None:
        try:
            sub.handler(result)
        except Exception as exc:  # noqa: BLE001 - isolate subscriber failures
            _log.warning("list result subscriber %r failed", sub.handler, exc_info=True)
            with self._lock:
                self._errors.append((result, exc))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def latest(self) -> Optional[ListResult[T]]:
        with self._lock:
            return self._last

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def errors(self) -> List[Tuple[ListResult[T], BaseException]]:
        with self._lock:
            return list(self._errors)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)
