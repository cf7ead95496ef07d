"""
Pagination and sorting helpers shared by list endpoints.

Sort columns always come from a per-endpoint safelist; page and page size
are clamped to safe bounds rather than rejected.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from pydantic import BaseModel

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = int(os.getenv("ITEMS_MAX_PAGE_SIZE", "100"))
MAX_PAGE = 10_000_000


class FilterError(ValueError):
    """Raised when list parameters fail validation."""

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


@dataclass
class Filters:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = "id"
    sort_safelist: Sequence[str] = field(default_factory=lambda: ["id", "-id"])

    def validate(self) -> "Filters":
        if self.sort not in self.sort_safelist:
            raise FilterError({"sort": "invalid sort value"})
        if self.page < 1:
            self.page = 1
        if self.page > MAX_PAGE:
            self.page = MAX_PAGE
        if self.page_size < 1:
            self.page_size = DEFAULT_PAGE_SIZE
        if self.page_size > MAX_PAGE_SIZE:
            self.page_size = MAX_PAGE_SIZE
        return self

    def sort_column(self) -> str:
        if self.sort not in self.sort_safelist:
            # validate() guards this; never fall through to raw input
            raise FilterError({"sort": "invalid sort value"})
        return self.sort.lstrip("-")

    def sort_descending(self) -> bool:
        return self.sort.startswith("-")

    def sort_direction(self) -> str:
        return "DESC" if self.sort_descending() else "ASC"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Metadata(BaseModel):
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    if total_records == 0:
        return Metadata()
    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )


def safelist(*columns: str) -> List[str]:
    """Ascending and descending forms of each column."""
    return [*columns, *(f"-{c}" for c in columns)]
