"""
Foreign-key display enrichment for a page of records.

For every relation, the distinct keys of the page are looked up with a
single `id = ANY($1)` query, so a page costs one query per related table
regardless of its size. Keys that are null or point at a missing row yield
None (single references) or are dropped (linked lists).
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Sequence

from . import db

Lookup = Callable[[str, Sequence[str], list[Any]], Awaitable[list[dict[str, Any]]]]
LinkFetch = Callable[[str, str, str, list[Any]], Awaitable[list[dict[str, Any]]]]


def teacher_display(row: dict[str, Any]) -> str:
    return f"{row.get('apellido') or ''}, {row.get('nombre') or ''}"


def school_display(row: dict[str, Any]) -> str:
    return str(row.get("nombre") or "")


@dataclass(frozen=True)
class DisplayRelation:
    field: str
    table: str
    columns: tuple[str, ...]
    build: Callable[[dict[str, Any]], str]
    target: str


@dataclass(frozen=True)
class LinkedRelation:
    join_table: str
    owner_column: str
    target_column: str
    table: str
    columns: tuple[str, ...]
    target: str


TEACHER_NAME = DisplayRelation(
    field="docente_id",
    table="docentes",
    columns=("nombre", "apellido"),
    build=teacher_display,
    target="docente_nombre",
)

SCHOOL_NAME = DisplayRelation(
    field="escuela_id",
    table="escuelas",
    columns=("nombre",),
    build=school_display,
    target="escuela_nombre",
)

LINKED_TEACHERS = LinkedRelation(
    join_table="expedientes_docentes",
    owner_column="expediente_id",
    target_column="docente_id",
    table="docentes",
    columns=("nombre", "apellido"),
    target="docentes",
)

LINKED_SCHOOLS = LinkedRelation(
    join_table="expedientes_escuelas",
    owner_column="expediente_id",
    target_column="escuela_id",
    table="escuelas",
    columns=("nombre",),
    target="escuelas",
)


async def lookup_by_ids(table: str, columns: Sequence[str], ids: list[Any]) -> list[dict[str, Any]]:
    selected = ", ".join(["id", *columns])
    return await db.fetch_all(
        f"SELECT {selected} FROM {table} WHERE id = ANY($1::uuid[])",
        ids,
    )


async def links_for_owners(
    join_table: str,
    owner_column: str,
    target_column: str,
    owner_ids: list[Any],
) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"SELECT {owner_column}, {target_column} FROM {join_table} WHERE {owner_column} = ANY($1::uuid[])",
        owner_ids,
    )


def distinct_keys(rows: Iterable[dict[str, Any]], field: str) -> list[Any]:
    """
    Non-null values of `field`, first occurrence order, duplicates removed.
    """
    seen: set[Any] = set()
    keys: list[Any] = []
    for row in rows:
        value = row.get(field)
        if not value or value in seen:
            continue
        seen.add(value)
        keys.append(value)
    return keys


async def attach_display_names(
    rows: list[dict[str, Any]],
    relations: Sequence[DisplayRelation],
    *,
    lookup: Lookup = lookup_by_ids,
) -> list[dict[str, Any]]:
    """
    Set `relation.target` on each row from one batched lookup per relation.
    """
    for relation in relations:
        keys = distinct_keys(rows, relation.field)
        names: dict[Any, str] = {}
        if keys:
            found = await lookup(relation.table, relation.columns, keys)
            names = {item["id"]: relation.build(item) for item in found}

        for row in rows:
            key = row.get(relation.field)
            row[relation.target] = names.get(key) if key else None
    return rows


async def attach_linked_records(
    rows: list[dict[str, Any]],
    relations: Sequence[LinkedRelation],
    *,
    links: LinkFetch = links_for_owners,
    lookup: Lookup = lookup_by_ids,
) -> list[dict[str, Any]]:
    """
    Set `relation.target` to the list of linked records for each row.

    Costs one join-table query plus one lookup per relation.
    """
    owner_ids = distinct_keys(rows, "id")
    for relation in relations:
        pairs: list[dict[str, Any]] = []
        if owner_ids:
            pairs = await links(relation.join_table, relation.owner_column, relation.target_column, owner_ids)

        target_ids = distinct_keys(pairs, relation.target_column)
        by_id: dict[Any, dict[str, Any]] = {}
        if target_ids:
            found = await lookup(relation.table, relation.columns, target_ids)
            by_id = {item["id"]: item for item in found}

        grouped: dict[Any, list[dict[str, Any]]] = defaultdict(list)
        for pair in pairs:
            record = by_id.get(pair.get(relation.target_column))
            if record is not None:
                grouped[pair.get(relation.owner_column)].append(dict(record))

        for row in rows:
            row[relation.target] = list(grouped.get(row.get("id"), []))
    return rows
