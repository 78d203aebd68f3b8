"""Minimal reactive cells used to wire the list pipeline.

A ``Channel`` is a writable single-value holder; a ``Stage`` derives a value
from upstream cells. Writes push a notification down the graph synchronously,
while values are pulled on demand: a stage recomputes only when one of its
dependencies reports a newer version than the one it last computed against.

Ordering is deterministic: listeners run in registration order and every
write produces exactly one notification per listener (no coalescing).
"""

from __future__ import annotations

from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

__all__ = ["UNSET", "Cell", "Channel", "Stage"]

T = TypeVar("T")


UNSET: Any = object()

Listener = Callable[["Cell"], None]


class Cell(Generic[T]):
    """Common notification plumbing for channels and stages."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: List[Listener] = []

    @property
    def version(self) -> int:  # pragma: no cover - abstract
        raise NotImplementedError

    @property
    def ready(self) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError

    def get(self) -> T:  # pragma: no cover - abstract
        raise NotImplementedError

    def watch(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unwatch() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unwatch

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"<{type(self).__name__} {self.name} v{getattr(self, '_version', 0)}>"


class Channel(Cell[T]):
    def __init__(self, name: str, initial: Any = UNSET) -> None:
        super().__init__(name)
        self._value = initial
        self._version = 0 if initial is UNSET else 1

    @property
    def version(self) -> int:
        return self._version

    @property
    def ready(self) -> bool:
        return self._value is not UNSET

    def get(self) -> T:
        if self._value is UNSET:
            raise LookupError(f"Channel '{self.name}' has no value yet")
        return self._value

    def peek(self, default: Any = None) -> Any:
        return default if self._value is UNSET else self._value

    def set(self, value: T) -> None:
        self._value = value
        self._version += 1
        self._notify()


class Stage(Cell[T]):
    """Derived value over ``deps``; ``compute`` receives their current values."""

    def __init__(self, name: str, deps: Sequence[Cell[Any]], compute: Callable[..., T]) -> None:
        super().__init__(name)
        self._deps: Tuple[Cell[Any], ...] = tuple(deps)
        self._compute = compute
        self._seen: Optional[Tuple[int, ...]] = None
        self._value: Any = UNSET
        self._version = 0
        self._unwatch = [dep.watch(self._on_upstream) for dep in self._deps]

    @property
    def version(self) -> int:
        # Pull before reporting so downstream stages see a fresh version.
        if self.ready:
            self._refresh()
        return self._version

    @property
    def ready(self) -> bool:
        return all(dep.ready for dep in self._deps)

    @property
    def computations(self) -> int:
        """How many times ``compute`` has actually run."""
        return self._version

    def get(self) -> T:
        if not self.ready:
            raise LookupError(f"Stage '{self.name}' has unset inputs")
        self._refresh()
        return self._value

    def detach(self) -> None:
        for unwatch in self._unwatch:
            unwatch()
        self._unwatch = []
        self._listeners.clear()

    def _refresh(self) -> None:
        seen = tuple(dep.version for dep in self._deps)
        if seen == self._seen:
            return
        value = self._compute(*(dep.get() for dep in self._deps))
        # versions are recorded only after compute returned
        self._value = value
        self._seen = seen
        self._version += 1

    def _on_upstream(self, _cell: Cell[Any]) -> None:
        self._notify()
