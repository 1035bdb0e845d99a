"""
School persistence (raw SQL on `escuelas`).
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from core import db, pagination
from core.errors import StoreError

COLUMNS = "id, nombre, direccion, telefono, email, nivel, fecha_creacion, updated_at"

LIST_QUERY = pagination.ListQuery(
    table="escuelas",
    columns=COLUMNS,
    search_columns=("nombre", "direccion", "email", "nivel"),
    order_by="nombre ASC, id ASC",
)


async def list_page(request: pagination.PageRequest) -> pagination.Page:
    return await pagination.paginate(LIST_QUERY, request)


async def get_by_id(school_id: UUID) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM escuelas
        WHERE id = $1
        """,
        school_id,
    )


async def insert(values: dict[str, Any]) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO escuelas (nombre, direccion, telefono, email, nivel, fecha_creacion, updated_at)
        VALUES ($1, $2, $3, $4, $5, now(), now())
        RETURNING {COLUMNS}
        """,
        values["nombre"],
        values.get("direccion"),
        values.get("telefono"),
        values.get("email"),
        values.get("nivel"),
    )
    if row is None:
        raise StoreError("Failed to insert school.")
    return row


async def update(school_id: UUID, values: dict[str, Any]) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE escuelas
        SET nombre = $2,
            direccion = $3,
            telefono = $4,
            email = $5,
            nivel = $6,
            updated_at = now()
        WHERE id = $1
        RETURNING {COLUMNS}
        """,
        school_id,
        values["nombre"],
        values.get("direccion"),
        values.get("telefono"),
        values.get("email"),
        values.get("nivel"),
    )


async def delete(school_id: UUID) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM escuelas
        WHERE id = $1
        RETURNING id
        """,
        school_id,
    )
    return row is not None


async def count_references(school_id: UUID) -> int:
    value = await db.fetch_val(
        """
        SELECT
          (SELECT count(*) FROM disposiciones WHERE escuela_id = $1)
          + (SELECT count(*) FROM expedientes_escuelas WHERE escuela_id = $1)
        """,
        school_id,
    )
    return int(value or 0)
