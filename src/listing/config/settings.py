"""Global defaults for list pipelines."""

from __future__ import annotations

import os
from typing import Final

# 0 means "one page containing everything"
DEFAULT_PAGE_SIZE: Final = max(0, int(os.environ.get("LISTING_DEFAULT_PAGE_SIZE", "0")))
DEFAULT_SORT_ORDER: Final = "asc"
