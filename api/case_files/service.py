"""
Case-file business logic.

Reads carry the linked teachers and schools (`docentes`, `escuelas`),
resolved for a whole page with one query per join table and one per
target table.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from core import enrichment, pagination
from core.errors import NotFoundError

from . import repository, schemas

logger = logging.getLogger(__name__)

LINKED = (enrichment.LINKED_TEACHERS, enrichment.LINKED_SCHOOLS)


async def list_case_files(request: pagination.PageRequest) -> pagination.Page:
    page = await repository.list_page(request)
    await enrichment.attach_linked_records(page.records, LINKED)
    return page


async def get_case_file(case_file_id: UUID) -> dict[str, Any]:
    row = await repository.get_by_id(case_file_id)
    if row is None:
        raise NotFoundError("Case file not found.")
    await enrichment.attach_linked_records([row], LINKED)
    return row


async def create_case_file(payload: schemas.CaseFileIn) -> dict[str, Any]:
    values = payload.row_values()
    values["estado"] = values.get("estado") or schemas.DEFAULT_STATUS
    row = await repository.insert_with_links(
        values,
        teacher_ids=payload.docentes,
        school_ids=payload.escuelas,
    )
    logger.info(
        "case_file_created id=%s teachers=%s schools=%s",
        row["id"],
        len(payload.docentes),
        len(payload.escuelas),
    )
    return await get_case_file(row["id"])


async def update_case_file(case_file_id: UUID, payload: schemas.CaseFileIn) -> dict[str, Any]:
    row = await repository.update_with_links(
        case_file_id,
        payload.row_values(),
        teacher_ids=payload.docentes,
        school_ids=payload.escuelas,
    )
    if row is None:
        raise NotFoundError("Case file not found.")
    return await get_case_file(case_file_id)


async def delete_case_file(case_file_id: UUID) -> UUID:
    if not await repository.delete_with_links(case_file_id):
        raise NotFoundError("Case file not found.")
    return case_file_id


async def _ensure_exists(case_file_id: UUID) -> None:
    if await repository.get_by_id(case_file_id) is None:
        raise NotFoundError("Case file not found.")


async def linked_teachers(case_file_id: UUID) -> list[dict[str, Any]]:
    await _ensure_exists(case_file_id)
    return await repository.linked_records("docentes", case_file_id)


async def linked_schools(case_file_id: UUID) -> list[dict[str, Any]]:
    await _ensure_exists(case_file_id)
    return await repository.linked_records("escuelas", case_file_id)


async def associate_teachers(case_file_id: UUID, teacher_ids: list[UUID]) -> list[dict[str, Any]]:
    await _ensure_exists(case_file_id)
    await repository.add_links("docentes", case_file_id, teacher_ids)
    return await repository.linked_records("docentes", case_file_id)


async def associate_schools(case_file_id: UUID, school_ids: list[UUID]) -> list[dict[str, Any]]:
    await _ensure_exists(case_file_id)
    await repository.add_links("escuelas", case_file_id, school_ids)
    return await repository.linked_records("escuelas", case_file_id)


async def disassociate_teacher(case_file_id: UUID, teacher_id: UUID) -> None:
    if not await repository.remove_link("docentes", case_file_id, teacher_id):
        raise NotFoundError("Teacher is not linked to this case file.")


async def disassociate_school(case_file_id: UUID, school_id: UUID) -> None:
    if not await repository.remove_link("escuelas", case_file_id, school_id):
        raise NotFoundError("School is not linked to this case file.")
