"""
Legacy row -> store row conversions.

Each transform takes a legacy row (dict from SQLAlchemy) and the shared
`IdMapping`, and returns a dict keyed by store column names, ready for
asyncpg (uuids, dates and aware datetimes, not strings).
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from .mapping import IdMapping

DEFAULT_CASE_FILE_STATUS = "En trámite"

TEACHER_COLUMNS = ("id", "nombre", "apellido", "dni", "email", "telefono", "fecha_creacion", "updated_at")
SCHOOL_COLUMNS = ("id", "nombre", "direccion", "telefono", "email", "nivel", "fecha_creacion", "updated_at")
CASE_FILE_COLUMNS = (
    "id", "numero", "asunto", "fecha_recibido", "notificacion", "resolucion", "pase",
    "observaciones", "estado", "fecha_creacion", "updated_at",
)
DISPOSITION_COLUMNS = (
    "id", "numero", "fecha_dispo", "dispo", "docente_id", "escuela_id", "cargo", "motivo",
    "enlace", "expediente_id", "fecha_creacion", "updated_at",
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def first_of(row: dict[str, Any], *names: str) -> Any:
    """
    First present, non-empty column among `names` (legacy schemas vary).
    """
    for name in names:
        value = row.get(name)
        if value is not None and value != "":
            return value
    return None


def to_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if text.startswith("0000-00-00"):
        return None
    return date.fromisoformat(text[:10])


def to_timestamp(value: Any, default: datetime | None = None) -> datetime | None:
    """
    Timezone-aware datetime; naive legacy values are taken as UTC.
    """
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.startswith("0000-00-00"):
            return default
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _stamps(row: dict[str, Any], now: datetime) -> dict[str, datetime | None]:
    created = to_timestamp(first_of(row, "fecha_creacion", "created_at"), now)
    return {
        "fecha_creacion": created,
        "updated_at": to_timestamp(first_of(row, "updated_at", "fecha_modificacion"), created),
    }


def teacher_row(row: dict[str, Any], mapping: IdMapping, *, now: datetime) -> dict[str, Any]:
    return {
        "id": mapping.resolve("docentes", row["id"]),
        "nombre": text_or_none(row.get("nombre")) or "",
        "apellido": text_or_none(row.get("apellido")) or "",
        "dni": text_or_none(first_of(row, "dni", "documento")) or "",
        "email": text_or_none(row.get("email")),
        "telefono": text_or_none(row.get("telefono")),
        **_stamps(row, now),
    }


def school_row(row: dict[str, Any], mapping: IdMapping, *, now: datetime) -> dict[str, Any]:
    return {
        "id": mapping.resolve("escuelas", row["id"]),
        "nombre": text_or_none(row.get("nombre")) or "",
        "direccion": text_or_none(first_of(row, "direccion", "domicilio")),
        "telefono": text_or_none(row.get("telefono")),
        "email": text_or_none(row.get("email")),
        "nivel": text_or_none(row.get("nivel")),
        **_stamps(row, now),
    }


def case_file_row(row: dict[str, Any], mapping: IdMapping, *, now: datetime) -> dict[str, Any]:
    return {
        "id": mapping.resolve("expedientes", row["id"]),
        "numero": text_or_none(row.get("numero")) or "",
        "asunto": text_or_none(first_of(row, "asunto", "caratula")) or "",
        "fecha_recibido": to_date(first_of(row, "fecha_recibido", "fecha_inicio")),
        "notificacion": text_or_none(row.get("notificacion")),
        "resolucion": text_or_none(row.get("resolucion")),
        "pase": text_or_none(first_of(row, "pase", "ubicacion")),
        "observaciones": text_or_none(row.get("observaciones")),
        "estado": text_or_none(row.get("estado")) or DEFAULT_CASE_FILE_STATUS,
        **_stamps(row, now),
    }


def disposition_row(row: dict[str, Any], mapping: IdMapping, *, now: datetime) -> dict[str, Any]:
    return {
        "id": mapping.resolve("disposiciones", row["id"]),
        "numero": text_or_none(row.get("numero")) or "",
        "fecha_dispo": to_date(first_of(row, "fecha_dispo", "fecha")),
        "dispo": text_or_none(row.get("dispo")) or "",
        "docente_id": mapping.lookup("docentes", row.get("docente_id")),
        "escuela_id": mapping.lookup("escuelas", row.get("escuela_id")),
        "cargo": text_or_none(row.get("cargo")),
        "motivo": text_or_none(row.get("motivo")),
        "enlace": text_or_none(row.get("enlace")),
        "expediente_id": mapping.lookup("expedientes", row.get("expediente_id")),
        **_stamps(row, now),
    }


def link_pairs(
    rows: list[dict[str, Any]],
    mapping: IdMapping,
    *,
    target_entity: str,
    target_column: str,
) -> list[tuple[UUID, UUID]]:
    """
    Remapped `(expediente_id, target_id)` pairs; pairs with an unmapped end
    are skipped, repeats collapse.
    """
    pairs: list[tuple[UUID, UUID]] = []
    seen: set[tuple[UUID, UUID]] = set()
    for row in rows:
        case_file_id = mapping.lookup("expedientes", row.get("expediente_id"))
        target_id = mapping.lookup(target_entity, row.get(target_column))
        if case_file_id is None or target_id is None:
            continue
        pair = (case_file_id, target_id)
        if pair in seen:
            continue
        seen.add(pair)
        pairs.append(pair)
    return pairs
