"""
Pydantic schemas for disposition (disposicion) endpoints.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, Field, model_validator

from core.schemas import RecordPayload

# list field accepted from clients -> single reference column
SINGLE_REFERENCES = {
    "docentes": "docente_id",
    "escuelas": "escuela_id",
}


def first_reference(items: Any, direct: Any) -> Any:
    """
    First element of a non-empty list, else the direct value, else None.
    """
    if isinstance(items, (list, tuple)) and items:
        return items[0] or None
    return direct or None


class DispositionIn(RecordPayload):
    """
    Create/update body.

    Clients may send `docentes` / `escuelas` lists; only the first element of
    each is kept, as `docente_id` / `escuela_id`.
    """

    numero: str = Field(..., min_length=1, max_length=100)
    fecha_dispo: date = Field(..., validation_alias=AliasChoices("fecha", "fecha_dispo"))
    dispo: str = Field(..., min_length=1)
    docente_id: UUID | None = None
    escuela_id: UUID | None = None
    cargo: str | None = Field(default=None, max_length=200)
    motivo: str | None = None
    enlace: str | None = None
    expediente_id: UUID | None = None

    @model_validator(mode="before")
    @classmethod
    def _single_references(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for list_field, column in SINGLE_REFERENCES.items():
            data[column] = first_reference(data.pop(list_field, None), data.get(column))
        return data
