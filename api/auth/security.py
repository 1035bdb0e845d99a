"""
Auth security helpers (application token).

The hosted auth service checks credentials; this API then mints its own
HS256 token carrying {userId, username, role}.
"""

from __future__ import annotations

import time
from typing import Any

import jwt

from core import config

ROLES = ("admin", "user")
DEFAULT_ROLE = "user"


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    # Local default keeps development simple.
    # In production, set JWT_SECRET in environment.
    return config.env_str("JWT_SECRET", "dev-change-this-secret")


def jwt_algorithm() -> str:
    return config.env_str("JWT_ALG", "HS256")


def token_expire_days() -> int:
    return config.env_int("JWT_EXPIRE_DAYS", 7)


def now_epoch_s() -> int:
    return int(time.time())


def build_access_token(*, user_id: str, username: str, role: str) -> str:
    issued_at = now_epoch_s()
    expires_at = issued_at + (token_expire_days() * 24 * 60 * 60)

    payload = {
        "userId": str(user_id),
        "username": username,
        "role": role if role in ROLES else DEFAULT_ROLE,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(raw, jwt_secret(), algorithms=[jwt_algorithm()])
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Token expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid token.") from exc

    if not str(payload.get("userId") or "").strip():
        raise AuthSecurityError("Invalid token subject.")

    return payload
