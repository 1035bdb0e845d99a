"""
Disposition (disposicion) API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from auth import dependencies as auth_dependencies
from core import pagination
from core.schemas import ok

from . import schemas, service

router = APIRouter(prefix="/api/disposiciones")


@router.get("")
async def list_dispositions(
    request: pagination.PageRequest = Depends(pagination.page_params),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    page = await service.list_dispositions(request)
    return page.as_response()


@router.get("/{disposition_id}")
async def get_disposition(
    disposition_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return ok(data=await service.get_disposition(disposition_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_disposition(
    request: schemas.DispositionIn,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    row = await service.create_disposition(request)
    return ok(message="Disposition created.", data=row)


@router.put("/{disposition_id}")
async def update_disposition(
    disposition_id: UUID,
    request: schemas.DispositionIn,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    row = await service.update_disposition(disposition_id, request)
    return ok(message="Disposition updated.", data=row)


@router.delete("/{disposition_id}")
async def delete_disposition(
    disposition_id: UUID,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    deleted_id = await service.delete_disposition(disposition_id)
    return ok(message="Disposition deleted.", id=str(deleted_id))
