"""
Pydantic schemas for school (escuela) endpoints.
"""

from __future__ import annotations

from pydantic import Field

from core.schemas import RecordPayload


class SchoolIn(RecordPayload):
    nombre: str = Field(..., min_length=1, max_length=200)
    direccion: str | None = Field(default=None, max_length=300)
    telefono: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=320)
    nivel: str | None = Field(default=None, max_length=50)
