"""
Hosted auth service (Supabase GoTrue) HTTP client helpers.

Used endpoints:
- POST /auth/v1/token?grant_type=password  -> {"access_token": "...", "user": {...}}
- POST /auth/v1/admin/users                -> {user}
- GET  /auth/v1/admin/users/{id}           -> {user}
- PUT  /auth/v1/admin/users/{id}           -> {user}
- GET  /auth/v1/admin/users                -> {"users": [...]}

Admin endpoints need the service role key; sign-in uses the anon key.
"""

from __future__ import annotations

from typing import Any

import httpx

from . import config
from .errors import AppError


# Auth service failures are explicit and carry the upstream status.
class AuthProviderError(AppError):
    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


DEFAULT_TIMEOUT_S = 30.0


def admin_enabled() -> bool:
    return bool(config.supabase_service_role_key())


def _base_url() -> str:
    base_url = config.supabase_url()
    if not base_url:
        raise AuthProviderError("SUPABASE_URL is empty.", status_code=500)
    return base_url


def _anon_headers() -> dict[str, str]:
    key = config.supabase_anon_key() or config.supabase_service_role_key()
    if not key:
        raise AuthProviderError("Auth service key is not configured.", status_code=500)
    return {"apikey": key}


def _admin_headers() -> dict[str, str]:
    key = config.supabase_service_role_key()
    if not key:
        raise AuthProviderError(
            "Operation unavailable: SUPABASE_SERVICE_ROLE_KEY is not configured.",
            status_code=500,
        )
    return {"apikey": key, "Authorization": f"Bearer {key}"}


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:300] or f"Auth service request failed: {resp.status_code}"
    if isinstance(data, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return f"Auth service request failed: {resp.status_code}"


async def _request(
    method: str,
    path: str,
    *,
    headers: dict[str, str],
    json: dict[str, Any] | None = None,
    params: dict[str, Any] | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(base_url=_base_url(), timeout=timeout_s) as client:
            resp = await client.request(method, path, headers=headers, json=json, params=params)
    except httpx.HTTPError as exc:
        raise AuthProviderError(f"Failed to reach auth service: {exc}") from exc

    if resp.status_code >= 400:
        raise AuthProviderError(_error_message(resp), status_code=resp.status_code)

    data = resp.json()
    if not isinstance(data, dict):
        raise AuthProviderError("Auth service returned an unexpected payload.")
    return data


def _user_from(data: dict[str, Any]) -> dict[str, Any]:
    # Admin endpoints return the user object directly; some versions wrap it.
    user = data.get("user") if isinstance(data.get("user"), dict) else data
    if not user.get("id"):
        raise AuthProviderError("Auth service returned no user.")
    return user


async def sign_in_with_password(*, email: str, password: str) -> dict[str, Any]:
    """
    Password sign-in. Returns {"access_token": str | None, "user": {...}}.
    """
    data = await _request(
        "POST",
        "/auth/v1/token",
        params={"grant_type": "password"},
        headers=_anon_headers(),
        json={"email": email, "password": password},
    )
    return {"access_token": data.get("access_token"), "user": _user_from(data)}


async def admin_create_user(
    *,
    email: str,
    password: str,
    user_metadata: dict[str, Any],
) -> dict[str, Any]:
    data = await _request(
        "POST",
        "/auth/v1/admin/users",
        headers=_admin_headers(),
        json={
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": user_metadata,
        },
    )
    return _user_from(data)


async def admin_get_user(user_id: str) -> dict[str, Any]:
    data = await _request("GET", f"/auth/v1/admin/users/{user_id}", headers=_admin_headers())
    return _user_from(data)


async def admin_update_user(user_id: str, **changes: Any) -> dict[str, Any]:
    data = await _request(
        "PUT",
        f"/auth/v1/admin/users/{user_id}",
        headers=_admin_headers(),
        json=changes,
    )
    return _user_from(data)


async def admin_list_users(*, page: int = 1, per_page: int = 1000) -> list[dict[str, Any]]:
    data = await _request(
        "GET",
        "/auth/v1/admin/users",
        headers=_admin_headers(),
        params={"page": page, "per_page": per_page},
    )
    users = data.get("users")
    if not isinstance(users, list):
        return []
    return [u for u in users if isinstance(u, dict)]
