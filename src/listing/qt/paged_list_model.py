"""Qt item model showing the current page of a ``ListService``.

The model subscribes to the service's result stream on construction and
resets itself whenever a new ``ListResult`` arrives, so views only ever see
the items of the active page. Pagination/sorting metadata stay available for
pager widgets via ``pagination()`` / ``sorting()`` and the ``resultChanged``
signal.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from PyQt6.QtCore import QAbstractListModel, QModelIndex, Qt, pyqtSignal

from listing.models import ListPagination, ListResult, ListSorting
from listing.services.list_service import ListService

__all__ = ["PagedListModel", "ITEM_ROLE"]

# Role returning the raw item object for delegates
ITEM_ROLE = Qt.ItemDataRole.UserRole + 1


class PagedListModel(QAbstractListModel):
    resultChanged = pyqtSignal(object)

    def __init__(
        self,
        service: ListService[Any],
        *,
        formatter: Optional[Callable[[Any], str]] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._service = service
        self._formatter = formatter or str
        self._result: Optional[ListResult[Any]] = None
        self._subscription = service.subscribe(self._on_result)

    # Required overrides -------------------------------------------------
    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        if parent.isValid() or self._result is None:
            return 0
        return len(self._result.page)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if not index.isValid() or self._result is None:
            return None
        row = index.row()
        if row < 0 or row >= len(self._result.page):
            return None
        item = self._result.page[row]
        if role == Qt.ItemDataRole.DisplayRole:
            return self._formatter(item)
        if role == ITEM_ROLE:
            return item
        return None

    # Public API ---------------------------------------------------------
    def pagination(self) -> Optional[ListPagination]:
        return self._result.pagination if self._result else None

    def sorting(self) -> Optional[ListSorting]:
        return self._result.sorting if self._result else None

    def item(self, row: int) -> Any:
        if self._result is None:
            raise IndexError(row)
        return self._result.page[row]

    def detach(self) -> None:
        """Stop following the service; the last page stays displayed."""
        self._subscription.cancel()

    # Internal -----------------------------------------------------------
    def _on_result(self, result: ListResult[Any]) -> None:
        self.beginResetModel()
        self._result = result
        self.endResetModel()
        self.resultChanged.emit(result)
