"""
Offset pagination with case-insensitive multi-column search.

One statement returns both the requested window and the exact total:
the filtered set is counted in a CTE and the page is joined laterally to that
count, so an out-of-range page still reports the total.

Table names, column lists and ORDER BY clauses passed here are constants
owned by the feature repositories, never user input.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Sequence

from fastapi import Query

from . import db

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 500


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    search: str = ""

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ListQuery:
    table: str
    search_columns: tuple[str, ...]
    order_by: str
    columns: str = "*"


@dataclass
class Page:
    records: list[dict[str, Any]] = field(default_factory=list)
    pagination: dict[str, int] = field(default_factory=dict)

    def as_response(self) -> dict[str, Any]:
        return {"success": True, "data": self.records, "pagination": self.pagination}


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str = Query("", max_length=200),
) -> PageRequest:
    return PageRequest(page=page, limit=limit, search=search)


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


def pagination_meta(*, page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages(total, limit),
    }


def search_pattern(search: str | None) -> str | None:
    """
    `%term%` for a non-blank search, else None (no filtering).
    """
    term = (search or "").strip()
    if not term:
        return None
    return f"%{term}%"


def search_clause(columns: Sequence[str], placeholder: str = "$1") -> str:
    if not columns:
        raise ValueError("search_clause needs at least one column.")
    matches = " OR ".join(f"{col}::text ILIKE {placeholder}::text" for col in columns)
    return f"({placeholder}::text IS NULL OR {matches})"


def page_sql(query: ListQuery) -> str:
    return f"""
        WITH filtered AS (
          SELECT {query.columns}
          FROM {query.table}
          WHERE {search_clause(query.search_columns, "$1")}
        ),
        total AS (
          SELECT count(*) AS total_count FROM filtered
        )
        SELECT total.total_count, page.*
        FROM total
        LEFT JOIN LATERAL (
          SELECT filtered.*, row_number() OVER (ORDER BY {query.order_by}) AS page_position
          FROM filtered
          ORDER BY {query.order_by}
          LIMIT $2
          OFFSET $3
        ) page ON true
        ORDER BY page.page_position
    """


async def fetch_page(query: ListQuery, request: PageRequest) -> tuple[list[dict[str, Any]], int]:
    """
    Return (rows, total) for one window of `query`.
    """
    rows = await db.fetch_all(
        page_sql(query),
        search_pattern(request.search),
        request.limit,
        request.offset,
    )
    total = int(rows[0]["total_count"] or 0) if rows else 0
    records: list[dict[str, Any]] = []
    for row in rows:
        # An empty window still yields one row carrying only the count.
        if row.get("page_position") is None:
            continue
        row.pop("total_count", None)
        row.pop("page_position", None)
        records.append(row)
    return records, total


async def paginate(query: ListQuery, request: PageRequest) -> Page:
    records, total = await fetch_page(query, request)
    return Page(
        records=records,
        pagination=pagination_meta(page=request.page, limit=request.limit, total=total),
    )
