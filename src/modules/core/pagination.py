"""Page/limit pagination for repository listings.

Listings are addressed by a 1-based ``page`` and a ``limit``.  A page past
the end yields an empty ``items`` list rather than an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, List, TypeVar

from django.conf import settings
from django.db import models

T = TypeVar("T")


@dataclass(frozen=True)
class PageResult(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)


def clamp_limit(limit: int | None) -> int:
    """Apply the configured default and upper bound to a requested page size."""
    if not limit or limit < 1:
        return settings.ORDER_DEFAULT_PAGE_SIZE
    return min(limit, settings.ORDER_MAX_PAGE_SIZE)


def paginate_queryset(
    queryset: "models.QuerySet[Any]", page: int, limit: int
) -> PageResult[Any]:
    """Slice *queryset* into one page and count the full result set."""
    page = max(page, 1)
    limit = clamp_limit(limit)
    offset = (page - 1) * limit
    total = queryset.count()
    items = list(queryset[offset : offset + limit]) if offset < total else []
    return PageResult(items=items, total=total, page=page, limit=limit)
