from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from ..core.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    def __post_init__(self):
        if int(self.page) < 1:
            raise ValidationError("page must be >= 1")
        if int(self.limit) < 1:
            raise ValidationError("limit must be >= 1")

    @property
    def offset(self) -> int:
        return (int(self.page) - 1) * int(self.limit)


@dataclass(frozen=True)
class Page(Generic[T]):
    data: Sequence[T]
    total: int
    page: int
    limit: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "total_pages", math.ceil(self.total / self.limit) if self.limit else 0)

    @classmethod
    def of(cls, data: Sequence[T], total: int, request: PageRequest) -> "Page[T]":
        return cls(data=list(data), total=int(total), page=request.page, limit=request.limit)

    def pagination(self) -> dict:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }
