"""Snapshot producers feeding a ``ListService``.

A producer is anything exposing ``subscribe(on_next, on_error=None)`` and
returning a callable that releases the subscription. Two implementations are
provided:

 - ``SnapshotFeed``: push-based; the owner calls ``push`` with each new
   collection snapshot.
 - ``AsyncIterableProducer``: drains an async iterable on an asyncio loop and
   forwards each item as a snapshot.

Errors end the subscription: ``on_error`` is called once and nothing further
is delivered. Neither producer retries.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, AsyncIterable, Callable, Iterable, List, Optional

__all__ = ["SnapshotFeed", "AsyncIterableProducer"]

_log = logging.getLogger(__name__)

OnNext = Callable[[Iterable[Any]], None]
OnError = Optional[Callable[[BaseException], None]]


@dataclass
class _FeedSubscriber:
    on_next: OnNext
    on_error: OnError
    active: bool = True


class SnapshotFeed:
    """Push-based producer of collection snapshots.

    Subscribers are snapshotted under the lock and called without holding it,
    so a subscriber may unsubscribe itself from inside ``on_next``.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: List[_FeedSubscriber] = []
        self._terminated = False

    def subscribe(self, on_next: OnNext, on_error: OnError = None) -> Callable[[], None]:
        sub = _FeedSubscriber(on_next=on_next, on_error=on_error)
        with self._lock:
            if self._terminated:
                sub.active = False
            else:
                self._subs.append(sub)

        def _release() -> None:
            with self._lock:
                if sub in self._subs:
                    self._subs.remove(sub)
            sub.active = False

        return _release

    def push(self, snapshot: Iterable[Any]) -> None:
        with self._lock:
            if self._terminated:
                raise RuntimeError("Cannot push to a terminated SnapshotFeed")
            subs = list(self._subs)
        for sub in subs:
            if sub.active:
                sub.on_next(snapshot)

    def fail(self, error: BaseException) -> None:
        subs = self._terminate()
        for sub in subs:
            if sub.on_error is not None:
                sub.on_error(error)
            else:
                _log.error("snapshot feed failed with no error handler", exc_info=error)

    def complete(self) -> None:
        self._terminate()

    def _terminate(self) -> List[_FeedSubscriber]:
        with self._lock:
            self._terminated = True
            subs, self._subs = self._subs, []
        live = [s for s in subs if s.active]
        for sub in subs:
            sub.active = False
        return live

    @property
    def terminated(self) -> bool:
        with self._lock:
            return self._terminated

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)


class AsyncIterableProducer:
    """Adapts an async iterable of snapshots to the producer interface.

    ``subscribe`` must be called while an event loop is running, unless a
    ``loop`` is supplied explicitly. Each subscription drains the iterable
    returned by ``source()`` in its own task; releasing cancels that task.
    """

    def __init__(
        self,
        source: Callable[[], AsyncIterable[Iterable[Any]]],
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._source = source
        self._loop = loop

    def subscribe(self, on_next: OnNext, on_error: OnError = None) -> Callable[[], None]:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._drain(on_next, on_error))

        def _release() -> None:
            if not task.done():
                task.cancel()

        return _release

    async def _drain(self, on_next: OnNext, on_error: OnError) -> None:
        # Only failures of the source end the subscription through on_error;
        # exceptions raised by on_next propagate out of the task.
        iterator = self._source().__aiter__()
        while True:
            try:
                snapshot = await iterator.__anext__()
            except StopAsyncIteration:
                return
            except Exception as exc:
                if on_error is None:
                    raise
                on_error(exc)
                return
            on_next(snapshot)
