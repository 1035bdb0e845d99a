"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from core.schemas import ok

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: schemas.RegisterRequest) -> dict:
    result = await service.register(request)
    return ok(message="User registered.", **result)


@router.post("/login")
async def login(request: schemas.LoginRequest) -> dict:
    result = await service.login(request)
    return ok(message="Login successful.", **result)


@router.get("/profile")
async def profile(current_user: dict = Depends(dependencies.get_current_user)) -> dict:
    return ok(user=current_user)


@router.get("/verify")
async def verify(current_user: dict = Depends(dependencies.get_current_user)) -> dict:
    return ok(message="Token is valid.", user=current_user)


@router.get("/users")
async def list_users(_: dict = Depends(dependencies.require_admin)) -> dict:
    users = await service.list_users()
    return ok(users=users)
