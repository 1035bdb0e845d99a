"""
Pydantic schemas for case-file (expediente) endpoints.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from core.schemas import RecordPayload

DEFAULT_STATUS = "pendiente"


def _truthy_unique(value: Any) -> list[Any]:
    """
    Drop empty ids and repeats, keeping the first occurrence order.
    """
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    seen: set[str] = set()
    ids: list[Any] = []
    for item in value:
        if not item or str(item) in seen:
            continue
        seen.add(str(item))
        ids.append(item)
    return ids


class CaseFileIn(RecordPayload):
    numero: str = Field(..., min_length=1, max_length=100)
    asunto: str = Field(..., min_length=1)
    fecha_recibido: date
    notificacion: str | None = None
    resolucion: str | None = None
    pase: str | None = None
    observaciones: str | None = None
    # None on update keeps the stored status.
    estado: str | None = Field(default=None, max_length=50)
    docentes: list[UUID] = Field(default_factory=list)
    escuelas: list[UUID] = Field(default_factory=list)

    @field_validator("docentes", "escuelas", mode="before")
    @classmethod
    def _clean_ids(cls, value: Any) -> list[Any]:
        return _truthy_unique(value)

    def row_values(self) -> dict[str, Any]:
        return self.model_dump(exclude={"docentes", "escuelas"})


class LinkRequest(BaseModel):
    ids: list[UUID] = Field(default_factory=list)

    @field_validator("ids", mode="before")
    @classmethod
    def _clean_ids(cls, value: Any) -> list[Any]:
        return _truthy_unique(value)
