"""
School business logic.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from core import pagination
from core.errors import ConflictError, NotFoundError

from . import repository, schemas


async def list_schools(request: pagination.PageRequest) -> pagination.Page:
    return await repository.list_page(request)


async def get_school(school_id: UUID) -> dict[str, Any]:
    row = await repository.get_by_id(school_id)
    if row is None:
        raise NotFoundError("School not found.")
    return row


async def create_school(payload: schemas.SchoolIn) -> dict[str, Any]:
    return await repository.insert(payload.model_dump())


async def update_school(school_id: UUID, payload: schemas.SchoolIn) -> dict[str, Any]:
    row = await repository.update(school_id, payload.model_dump())
    if row is None:
        raise NotFoundError("School not found.")
    return row


async def delete_school(school_id: UUID) -> UUID:
    references = await repository.count_references(school_id)
    if references:
        raise ConflictError(
            f"School is referenced by {references} disposition(s) or case-file link(s)."
        )
    if not await repository.delete(school_id):
        raise NotFoundError("School not found.")
    return school_id
