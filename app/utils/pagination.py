# app/utils/pagination.py
import math
from dataclasses import dataclass, field
from typing import Any, List, Sequence


DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass
class Page:
    """One page of an already filtered and ordered result set."""
    items: List[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    @property
    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "pages": self.pages
        }


def paginate(items: Sequence[Any], page: int = 1, limit: int = DEFAULT_LIMIT) -> Page:
    """Slices `items` into the requested page. `page` is 1-based."""
    page = max(int(page or 1), 1)
    limit = max(int(limit or DEFAULT_LIMIT), 1)
    start = (page - 1) * limit
    return Page(items=list(items[start:start + limit]), total=len(items), page=page, limit=limit)
