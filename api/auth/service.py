"""
Auth business logic.

Credentials live in the hosted auth service; this module validates input,
delegates sign-in/sign-up, and issues the application token.
"""

from __future__ import annotations

import logging
from typing import Any

from core import auth_provider, config
from core.errors import AuthError, AuthorizationError, ValidationError

from . import schemas, security

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def user_from_provider(user: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten a hosted-auth user into the API's user shape.
    """
    metadata = user.get("user_metadata") or {}
    role = metadata.get("role")
    return {
        "id": str(user["id"]),
        "username": metadata.get("username") or user.get("email"),
        "email": user.get("email"),
        "role": role if role in security.ROLES else security.DEFAULT_ROLE,
        "created_at": user.get("created_at"),
        "updated_at": user.get("updated_at"),
    }


def user_from_claims(claims: dict[str, Any]) -> dict[str, Any]:
    role = claims.get("role")
    return {
        "id": str(claims.get("userId")),
        "username": claims.get("username"),
        "role": role if role in security.ROLES else security.DEFAULT_ROLE,
    }


def resolve_login_email(username: str) -> str:
    """
    Seed aliases (e.g. "admin") map to the configured seed emails.
    """
    value = (username or "").strip()
    if "@" in value:
        return value
    for seed in (config.seed_admin(), config.seed_user()):
        if value == seed["username"]:
            return seed["email"]
    return value


def _issue_token(user: dict[str, Any]) -> str:
    return security.build_access_token(
        user_id=user["id"],
        username=str(user.get("username") or ""),
        role=str(user.get("role") or security.DEFAULT_ROLE),
    )


def validate_registration(payload: schemas.RegisterRequest) -> None:
    if not payload.username.strip() or not payload.email.strip() or not payload.password:
        raise ValidationError("Username, email and password are required.")
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    if payload.role not in security.ROLES:
        raise ValidationError('Invalid role. Only "admin" or "user" are allowed.')


async def register(payload: schemas.RegisterRequest) -> dict[str, Any]:
    validate_registration(payload)

    created = await auth_provider.admin_create_user(
        email=payload.email.strip(),
        password=payload.password,
        user_metadata={"username": payload.username.strip(), "role": payload.role},
    )
    user = user_from_provider(created)
    logger.info("user_registered user_id=%s role=%s", user["id"], user["role"])
    return {"user": user, "token": _issue_token(user)}


async def login(payload: schemas.LoginRequest) -> dict[str, Any]:
    if not payload.username.strip() or not payload.password:
        raise ValidationError("Username and password are required.")

    try:
        session = await auth_provider.sign_in_with_password(
            email=resolve_login_email(payload.username),
            password=payload.password,
        )
    except auth_provider.AuthProviderError as exc:
        if exc.status_code >= 500:
            raise
        raise AuthError("Invalid credentials.") from exc

    user = user_from_provider(session["user"])
    return {
        "user": user,
        "token": _issue_token(user),
        "supabaseAccessToken": session.get("access_token"),
    }


async def get_user_from_access_token(access_token: str) -> dict[str, Any]:
    try:
        claims = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise AuthError(str(exc)) from exc

    user = user_from_claims(claims)
    if not auth_provider.admin_enabled():
        return user

    try:
        fresh = await auth_provider.admin_get_user(user["id"])
    except auth_provider.AuthProviderError as exc:
        # The token is valid on its own; keep its claims.
        logger.warning("user_refresh_failed user_id=%s error=%s", user["id"], exc.message)
        return user
    return user_from_provider(fresh)


def require_role(user: dict[str, Any], role: str) -> dict[str, Any]:
    if user.get("role") != role:
        raise AuthorizationError(f"Access denied. Required role: {role}")
    return user


async def list_users() -> list[dict[str, Any]]:
    users = await auth_provider.admin_list_users()
    return [user_from_provider(u) for u in users]
