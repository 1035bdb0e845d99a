"""
Case-file (expediente) API endpoints, including the linked
teachers/schools sub-resources.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from auth import dependencies as auth_dependencies
from core import pagination
from core.schemas import ok
from dispositions import service as dispositions_service

from . import schemas, service

router = APIRouter(prefix="/api/expedientes")


@router.get("")
async def list_case_files(
    request: pagination.PageRequest = Depends(pagination.page_params),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    page = await service.list_case_files(request)
    return page.as_response()


@router.get("/{case_file_id}")
async def get_case_file(
    case_file_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await service.get_case_file(case_file_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_case_file(
    request: schemas.CaseFileIn,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    row = await service.create_case_file(request)
    return ok(message="Case file created.", data=row)


@router.put("/{case_file_id}")
async def update_case_file(
    case_file_id: UUID,
    request: schemas.CaseFileIn,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    row = await service.update_case_file(case_file_id, request)
    return ok(message="Case file updated.", data=row)


@router.delete("/{case_file_id}")
async def delete_case_file(
    case_file_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    deleted_id = await service.delete_case_file(case_file_id)
    return ok(message="Case file deleted.", id=str(deleted_id))


@router.get("/{case_file_id}/docentes")
async def list_linked_teachers(
    case_file_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await service.linked_teachers(case_file_id))


@router.post("/{case_file_id}/docentes")
async def link_teachers(
    case_file_id: UUID,
    request: schemas.LinkRequest,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await service.associate_teachers(case_file_id, request.ids))


@router.delete("/{case_file_id}/docentes/{teacher_id}")
async def unlink_teacher(
    case_file_id: UUID,
    teacher_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    await service.disassociate_teacher(case_file_id, teacher_id)
    return ok(message="Teacher unlinked.")


@router.get("/{case_file_id}/escuelas")
async def list_linked_schools(
    case_file_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await service.linked_schools(case_file_id))


@router.post("/{case_file_id}/escuelas")
async def link_schools(
    case_file_id: UUID,
    request: schemas.LinkRequest,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await service.associate_schools(case_file_id, request.ids))


@router.delete("/{case_file_id}/escuelas/{school_id}")
async def unlink_school(
    case_file_id: UUID,
    school_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    await service.disassociate_school(case_file_id, school_id)
    return ok(message="School unlinked.")


@router.get("/{case_file_id}/disposiciones")
async def list_case_file_dispositions(
    case_file_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await dispositions_service.list_for_case_file(case_file_id))
