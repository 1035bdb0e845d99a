"""
Teacher business logic.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from core import pagination
from core.errors import ConflictError, NotFoundError

from . import repository, schemas

logger = logging.getLogger(__name__)


async def list_teachers(request: pagination.PageRequest) -> pagination.Page:
    page = await repository.list_page(request)
    logger.debug(
        "teachers_listed page=%s limit=%s search=%r returned=%s total=%s",
        request.page,
        request.limit,
        request.search,
        len(page.records),
        page.pagination["total"],
    )
    return page


async def get_teacher(teacher_id: UUID) -> dict[str, Any]:
    row = await repository.get_by_id(teacher_id)
    if row is None:
        raise NotFoundError("Teacher not found.")
    return row


async def create_teacher(payload: schemas.TeacherIn) -> dict[str, Any]:
    return await repository.insert(payload.model_dump())


async def update_teacher(teacher_id: UUID, payload: schemas.TeacherIn) -> dict[str, Any]:
    row = await repository.update(teacher_id, payload.model_dump())
    if row is None:
        raise NotFoundError("Teacher not found.")
    return row


async def delete_teacher(teacher_id: UUID) -> UUID:
    references = await repository.count_references(teacher_id)
    if references:
        raise ConflictError(
            f"Teacher is referenced by {references} disposition(s) or case-file link(s)."
        )
    if not await repository.delete(teacher_id):
        raise NotFoundError("Teacher not found.")
    return teacher_id
