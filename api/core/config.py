"""
Environment-driven settings.

Every setting is read on demand from `os.environ` so tests and scripts can
override values with `monkeypatch.setenv` without reloading modules.
"""

from __future__ import annotations

import os


def env_str(name: str, default: str = "", *aliases: str) -> str:
    """
    Return the first non-empty value among `name` and its aliases.
    """
    for key in (name, *aliases):
        raw = os.environ.get(key, "").strip()
        if raw:
            return raw
    return default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def app_env() -> str:
    return env_str("APP_ENV", "development", "NODE_ENV").lower()


def is_production() -> bool:
    return app_env() == "production"


def api_version() -> str:
    return env_str("API_VERSION", "v1")


def frontend_url() -> str:
    return env_str("FRONTEND_URL")


def cors_origins() -> list[str]:
    if is_production():
        origin = frontend_url()
        # No FRONTEND_URL in production means same-origin deploys; allow any.
        return [origin] if origin else ["*"]
    return ["http://localhost:3000", "http://127.0.0.1:3000"]


def supabase_url() -> str:
    return env_str("SUPABASE_URL").rstrip("/")


def supabase_anon_key() -> str:
    return env_str("SUPABASE_ANON_KEY", "", "SUPABASE_PUBLIC_ANON_KEY", "SUPABASE_KEY")


def supabase_service_role_key() -> str:
    return env_str("SUPABASE_SERVICE_ROLE_KEY", "", "SUPABASE_SERVICE_KEY", "SUPABASE_KEY")


def seed_admin() -> dict[str, str]:
    return {
        "email": env_str("SEED_ADMIN_EMAIL", "admin@example.com"),
        "username": env_str("SEED_ADMIN_USERNAME", "admin"),
        "password": env_str("SEED_ADMIN_PASSWORD"),
        "role": "admin",
    }


def seed_user() -> dict[str, str]:
    return {
        "email": env_str("SEED_USER_EMAIL", "usuario@example.com"),
        "username": env_str("SEED_USER_USERNAME", "usuario"),
        "password": env_str("SEED_USER_PASSWORD"),
        "role": "user",
    }


def legacy_database_url() -> str:
    """
    SQLAlchemy URL of the legacy database read by the migration scripts.

    `LEGACY_DATABASE_URL` wins; otherwise a MySQL URL is assembled from the
    `MYSQL_*` variables.
    """
    url = env_str("LEGACY_DATABASE_URL")
    if url:
        return url
    host = env_str("MYSQL_HOST", "localhost")
    port = env_int("MYSQL_PORT", 3306)
    user = env_str("MYSQL_USER", "root")
    password = env_str("MYSQL_PASSWORD")
    database = env_str("MYSQL_DATABASE", "jp3_db")
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{database}"


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()
