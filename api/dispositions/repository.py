"""
Disposition persistence (raw SQL on `disposiciones`).
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from core import db, pagination
from core.errors import StoreError

COLUMNS = (
    "id, numero, fecha_dispo, dispo, docente_id, escuela_id, cargo, motivo, "
    "enlace, expediente_id, fecha_creacion, updated_at"
)

LIST_QUERY = pagination.ListQuery(
    table="disposiciones",
    columns=COLUMNS,
    search_columns=("numero", "dispo", "cargo", "motivo"),
    order_by="fecha_dispo DESC NULLS LAST, id ASC",
)


async def list_page(request: pagination.PageRequest) -> pagination.Page:
    return await pagination.paginate(LIST_QUERY, request)


async def get_by_id(disposition_id: UUID) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM disposiciones
        WHERE id = $1
        """,
        disposition_id,
    )


async def list_by_case_file(case_file_id: UUID) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {COLUMNS}
        FROM disposiciones
        WHERE expediente_id = $1
        ORDER BY fecha_dispo DESC NULLS LAST, id ASC
        """,
        case_file_id,
    )


def _params(values: dict[str, Any]) -> tuple[Any, ...]:
    return (
        values["numero"],
        values["fecha_dispo"],
        values["dispo"],
        values.get("docente_id"),
        values.get("escuela_id"),
        values.get("cargo"),
        values.get("motivo"),
        values.get("enlace"),
        values.get("expediente_id"),
    )


async def insert(values: dict[str, Any]) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO disposiciones (
          numero, fecha_dispo, dispo, docente_id, escuela_id, cargo, motivo,
          enlace, expediente_id, fecha_creacion, updated_at
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, now(), now())
        RETURNING {COLUMNS}
        """,
        *_params(values),
    )
    if row is None:
        raise StoreError("Failed to insert disposition.")
    return row


async def update(disposition_id: UUID, values: dict[str, Any]) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE disposiciones
        SET numero = $2,
            fecha_dispo = $3,
            dispo = $4,
            docente_id = $5,
            escuela_id = $6,
            cargo = $7,
            motivo = $8,
            enlace = $9,
            expediente_id = COALESCE($10, expediente_id),
            updated_at = now()
        WHERE id = $1
        RETURNING {COLUMNS}
        """,
        disposition_id,
        *_params(values),
    )


async def delete(disposition_id: UUID) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM disposiciones
        WHERE id = $1
        RETURNING id
        """,
        disposition_id,
    )
    return row is not None
