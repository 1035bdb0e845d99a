"""
School (escuela) API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from auth import dependencies as auth_dependencies
from core import pagination
from core.schemas import ok

from . import schemas, service

router = APIRouter(prefix="/api/escuelas")


@router.get("")
async def list_schools(
    request: pagination.PageRequest = Depends(pagination.page_params),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    page = await service.list_schools(request)
    return page.as_response()


@router.get("/{school_id}")
async def get_school(
    school_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await service.get_school(school_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_school(
    request: schemas.SchoolIn,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    row = await service.create_school(request)
    return ok(message="School created.", data=row)


@router.put("/{school_id}")
async def update_school(
    school_id: UUID,
    request: schemas.SchoolIn,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    row = await service.update_school(school_id, request)
    return ok(message="School updated.", data=row)


@router.delete("/{school_id}")
async def delete_school(
    school_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    deleted_id = await service.delete_school(school_id)
    return ok(message="School deleted.", id=str(deleted_id))
