from . import settings  # noqa: F401

__all__ = ["settings"]
