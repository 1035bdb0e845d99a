"""
Teacher persistence (raw SQL on `docentes`).
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from core import db, pagination
from core.errors import StoreError

COLUMNS = "id, nombre, apellido, dni, email, telefono, fecha_creacion, updated_at"

LIST_QUERY = pagination.ListQuery(
    table="docentes",
    columns=COLUMNS,
    search_columns=("nombre", "apellido", "dni", "email"),
    order_by="apellido ASC, nombre ASC, id ASC",
)


async def list_page(request: pagination.PageRequest) -> pagination.Page:
    return await pagination.paginate(LIST_QUERY, request)


async def get_by_id(teacher_id: UUID) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM docentes
        WHERE id = $1
        """,
        teacher_id,
    )


async def insert(values: dict[str, Any]) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO docentes (nombre, apellido, dni, email, telefono, fecha_creacion, updated_at)
        VALUES ($1, $2, $3, $4, $5, now(), now())
        RETURNING {COLUMNS}
        """,
        values["nombre"],
        values["apellido"],
        values["dni"],
        values.get("email"),
        values.get("telefono"),
    )
    if row is None:
        raise StoreError("Failed to insert teacher.")
    return row


async def update(teacher_id: UUID, values: dict[str, Any]) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE docentes
        SET nombre = $2,
            apellido = $3,
            dni = $4,
            email = $5,
            telefono = $6,
            updated_at = now()
        WHERE id = $1
        RETURNING {COLUMNS}
        """,
        teacher_id,
        values["nombre"],
        values["apellido"],
        values["dni"],
        values.get("email"),
        values.get("telefono"),
    )


async def delete(teacher_id: UUID) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM docentes
        WHERE id = $1
        RETURNING id
        """,
        teacher_id,
    )
    return row is not None


async def count_references(teacher_id: UUID) -> int:
    """
    Dispositions plus case-file links that still point at this teacher.
    """
    value = await db.fetch_val(
        """
        SELECT
          (SELECT count(*) FROM disposiciones WHERE docente_id = $1)
          + (SELECT count(*) FROM expedientes_docentes WHERE docente_id = $1)
        """,
        teacher_id,
    )
    return int(value or 0)
