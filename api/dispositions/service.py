"""
Disposition business logic.

List and single reads carry `docente_nombre` and `escuela_nombre`, resolved
with one lookup per related table.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from core import enrichment, pagination
from core.errors import NotFoundError

from . import repository, schemas

logger = logging.getLogger(__name__)

DISPLAY_NAMES = (enrichment.TEACHER_NAME, enrichment.SCHOOL_NAME)


async def list_dispositions(request: pagination.PageRequest) -> pagination.Page:
    page = await repository.list_page(request)
    await enrichment.attach_display_names(page.records, DISPLAY_NAMES)
    return page


async def get_disposition(disposition_id: UUID) -> dict[str, Any]:
    row = await repository.get_by_id(disposition_id)
    if row is None:
        raise NotFoundError("Disposition not found.")
    await enrichment.attach_display_names([row], DISPLAY_NAMES)
    return row


async def list_for_case_file(case_file_id: UUID) -> list[dict[str, Any]]:
    rows = await repository.list_by_case_file(case_file_id)
    return await enrichment.attach_display_names(rows, DISPLAY_NAMES)


async def create_disposition(payload: schemas.DispositionIn) -> dict[str, Any]:
    row = await repository.insert(payload.model_dump())
    logger.info("disposition_created id=%s numero=%s", row["id"], row["numero"])
    return row


async def update_disposition(disposition_id: UUID, payload: schemas.DispositionIn) -> dict[str, Any]:
    row = await repository.update(disposition_id, payload.model_dump())
    if row is None:
        raise NotFoundError("Disposition not found.")
    return row


async def delete_disposition(disposition_id: UUID) -> UUID:
    if not await repository.delete(disposition_id):
        raise NotFoundError("Disposition not found.")
    return disposition_id
