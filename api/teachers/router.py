"""
Teacher (docente) API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from auth import dependencies as auth_dependencies
from core import pagination
from core.schemas import ok

from . import schemas, service

router = APIRouter(prefix="/api/docentes")


@router.get("")
async def list_teachers(
    request: pagination.PageRequest = Depends(pagination.page_params),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    page = await service.list_teachers(request)
    return page.as_response()


@router.get("/{teacher_id}")
async def get_teacher(
    teacher_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await service.get_teacher(teacher_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_teacher(
    request: schemas.TeacherIn,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    row = await service.create_teacher(request)
    return ok(message="Teacher created.", data=row)


@router.put("/{teacher_id}")
async def update_teacher(
    teacher_id: UUID,
    request: schemas.TeacherIn,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    row = await service.update_teacher(teacher_id, request)
    return ok(message="Teacher updated.", data=row)


@router.delete("/{teacher_id}")
async def delete_teacher(
    teacher_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    deleted_id = await service.delete_teacher(teacher_id)
    return ok(message="Teacher deleted.", id=str(deleted_id))
