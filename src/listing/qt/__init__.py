"""Qt bindings for ``ListService`` (requires the ``qt`` extra / PyQt6)."""

from .paged_list_model import PagedListModel  # noqa: F401

__all__ = ["PagedListModel"]
