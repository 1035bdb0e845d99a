"""
Pydantic schemas for teacher (docente) endpoints.
"""

from __future__ import annotations

from pydantic import Field

from core.schemas import RecordPayload


class TeacherIn(RecordPayload):
    nombre: str = Field(..., min_length=1, max_length=100)
    apellido: str = Field(..., min_length=1, max_length=100)
    dni: str = Field(..., min_length=1, max_length=20)
    email: str | None = Field(default=None, max_length=320)
    telefono: str | None = Field(default=None, max_length=50)
