"""
Case-file persistence (raw SQL on `expedientes` and its two join tables).

Relation sets are replaced atomically: the row write, the deletion of the
old links and the insertion of the new ones share one transaction.
"""

from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

import asyncpg

from core import db, pagination
from core.errors import StoreError

COLUMNS = (
    "id, numero, asunto, fecha_recibido, notificacion, resolucion, pase, "
    "observaciones, estado, fecha_creacion, updated_at"
)

LIST_QUERY = pagination.ListQuery(
    table="expedientes",
    columns=COLUMNS,
    search_columns=("numero", "asunto", "observaciones", "estado"),
    order_by="fecha_recibido DESC NULLS LAST, id ASC",
)

# kind -> (join table, target column, target table, selected columns, order)
LINKS: dict[str, tuple[str, str, str, str, str]] = {
    "docentes": (
        "expedientes_docentes",
        "docente_id",
        "docentes",
        "t.id, t.nombre, t.apellido, t.dni, t.email, t.telefono",
        "t.apellido ASC, t.nombre ASC",
    ),
    "escuelas": (
        "expedientes_escuelas",
        "escuela_id",
        "escuelas",
        "t.id, t.nombre, t.direccion, t.telefono, t.email, t.nivel",
        "t.nombre ASC",
    ),
}


async def list_page(request: pagination.PageRequest) -> pagination.Page:
    return await pagination.paginate(LIST_QUERY, request)


async def get_by_id(case_file_id: UUID) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM expedientes
        WHERE id = $1
        """,
        case_file_id,
    )


async def _insert_links(
    conn: asyncpg.Connection,
    kind: str,
    case_file_id: UUID,
    target_ids: Sequence[UUID],
) -> None:
    if not target_ids:
        return
    join_table, target_column, *_ = LINKS[kind]
    await conn.executemany(
        f"""
        INSERT INTO {join_table} (expediente_id, {target_column})
        VALUES ($1, $2)
        ON CONFLICT DO NOTHING
        """,
        [(case_file_id, target_id) for target_id in target_ids],
    )


async def replace_links(
    conn: asyncpg.Connection,
    case_file_id: UUID,
    *,
    teacher_ids: Sequence[UUID],
    school_ids: Sequence[UUID],
) -> None:
    """
    Make the stored relation sets equal to the given ones.

    Must run inside the caller's transaction.
    """
    for kind, target_ids in (("docentes", teacher_ids), ("escuelas", school_ids)):
        join_table = LINKS[kind][0]
        await conn.execute(f"DELETE FROM {join_table} WHERE expediente_id = $1", case_file_id)
        await _insert_links(conn, kind, case_file_id, target_ids)


async def insert_with_links(
    values: dict[str, Any],
    *,
    teacher_ids: Sequence[UUID],
    school_ids: Sequence[UUID],
) -> dict[str, Any]:
    async with db.transaction() as conn:
        row = await conn.fetchrow(
            f"""
            INSERT INTO expedientes (
              numero, asunto, fecha_recibido, notificacion, resolucion, pase,
              observaciones, estado, fecha_creacion, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, now(), now())
            RETURNING {COLUMNS}
            """,
            values["numero"],
            values["asunto"],
            values["fecha_recibido"],
            values.get("notificacion"),
            values.get("resolucion"),
            values.get("pase"),
            values.get("observaciones"),
            values["estado"],
        )
        if row is None:
            raise StoreError("Failed to insert case file.")

        case_file_id = row["id"]
        await _insert_links(conn, "docentes", case_file_id, teacher_ids)
        await _insert_links(conn, "escuelas", case_file_id, school_ids)
        return dict(row)


async def update_with_links(
    case_file_id: UUID,
    values: dict[str, Any],
    *,
    teacher_ids: Sequence[UUID],
    school_ids: Sequence[UUID],
) -> dict[str, Any] | None:
    async with db.transaction() as conn:
        row = await conn.fetchrow(
            f"""
            UPDATE expedientes
            SET numero = $2,
                asunto = $3,
                fecha_recibido = $4,
                notificacion = $5,
                resolucion = $6,
                pase = $7,
                observaciones = $8,
                estado = COALESCE($9, estado),
                updated_at = now()
            WHERE id = $1
            RETURNING {COLUMNS}
            """,
            case_file_id,
            values["numero"],
            values["asunto"],
            values["fecha_recibido"],
            values.get("notificacion"),
            values.get("resolucion"),
            values.get("pase"),
            values.get("observaciones"),
            values.get("estado"),
        )
        if row is None:
            return None

        await replace_links(conn, case_file_id, teacher_ids=teacher_ids, school_ids=school_ids)
        return dict(row)


async def delete_with_links(case_file_id: UUID) -> bool:
    async with db.transaction() as conn:
        await conn.execute("DELETE FROM expedientes_docentes WHERE expediente_id = $1", case_file_id)
        await conn.execute("DELETE FROM expedientes_escuelas WHERE expediente_id = $1", case_file_id)
        row = await conn.fetchrow("DELETE FROM expedientes WHERE id = $1 RETURNING id", case_file_id)
        return row is not None


async def linked_records(kind: str, case_file_id: UUID) -> list[dict[str, Any]]:
    join_table, target_column, target_table, columns, order_by = LINKS[kind]
    return await db.fetch_all(
        f"""
        SELECT {columns}
        FROM {target_table} t
        JOIN {join_table} j ON j.{target_column} = t.id
        WHERE j.expediente_id = $1
        ORDER BY {order_by}
        """,
        case_file_id,
    )


async def add_links(kind: str, case_file_id: UUID, target_ids: Sequence[UUID]) -> None:
    if not target_ids:
        return
    async with db.transaction() as conn:
        await _insert_links(conn, kind, case_file_id, target_ids)


async def remove_link(kind: str, case_file_id: UUID, target_id: UUID) -> bool:
    join_table, target_column, *_ = LINKS[kind]
    row = await db.fetch_one(
        f"""
        DELETE FROM {join_table}
        WHERE expediente_id = $1
          AND {target_column} = $2
        RETURNING expediente_id
        """,
        case_file_id,
        target_id,
    )
    return row is not None
