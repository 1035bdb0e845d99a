"""
Read access to the legacy MySQL database (SQLAlchemy, sync).

Calls here block; the runner moves them off the event loop.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.pool import QueuePool

from core import config

logger = logging.getLogger(__name__)

POOL_SIZE = 10


def create_legacy_engine(url: str | None = None) -> Engine:
    # Fixed-size pool; extra checkouts queue instead of opening connections.
    return create_engine(
        url or config.legacy_database_url(),
        poolclass=QueuePool,
        pool_size=POOL_SIZE,
        max_overflow=0,
        pool_pre_ping=True,
        future=True,
    )


class LegacySource:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def fetch_rows(self, table: str) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            result = conn.execute(text(f"SELECT * FROM {table}"))
            rows = [dict(r._mapping) for r in result.fetchall()]
        logger.info("legacy_rows_read table=%s rows=%s", table, len(rows))
        return rows

    def fetch_optional_rows(self, table: str) -> list[dict[str, Any]]:
        """
        Like `fetch_rows`, but a missing table reads as empty.
        """
        try:
            return self.fetch_rows(table)
        except ProgrammingError as exc:
            logger.warning("legacy_table_unavailable table=%s error=%s", table, exc.orig)
            return []

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()
