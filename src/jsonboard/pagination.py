from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any

ROWS_PER_PAGE = 7


@dataclass(frozen=True)
class Page:
    rows: list[Any]
    number: int
    total_pages: int
    total_rows: int

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.number > 1


def table_headers(rows: list[Any]) -> list[str]:
    """Union of the keys of every mapping row, first-seen order."""
    headers: dict[str, None] = {}
    for row in rows or []:
        if isinstance(row, dict):
            headers.update(dict.fromkeys(row))
    return list(headers)


def paginate(rows: list[Any], page: int = 1, per_page: int = ROWS_PER_PAGE) -> Page:
    rows = rows or []
    per_page = max(1, per_page)
    total_pages = math.ceil(len(rows) / per_page)
    number = max(1, min(page, total_pages))
    start = (number - 1) * per_page
    return Page(
        rows=rows[start:start + per_page],
        number=number,
        total_pages=total_pages,
        total_rows=len(rows),
    )
