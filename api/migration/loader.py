"""
Batched upsert into the Postgres store.

One transaction per batch. A batch that fails is logged and skipped; the
next batch still runs.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Sequence

import asyncpg

from core import db

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


@dataclass
class StepReport:
    table: str
    total: int = 0
    written: int = 0
    failed_batches: int = 0
    failed_rows: int = 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def upsert_sql(table: str, columns: Sequence[str], *, key: Sequence[str] = ("id",), update: bool = True) -> str:
    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    conflict = ", ".join(key)
    if update:
        assignments = ", ".join(f"{col} = EXCLUDED.{col}" for col in columns if col not in key)
        action = f"DO UPDATE SET {assignments}"
    else:
        action = "DO NOTHING"
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT ({conflict}) {action}"
    )


def batches(items: Sequence[Any], size: int) -> list[Sequence[Any]]:
    size = max(1, size)
    return [items[i : i + size] for i in range(0, len(items), size)]


async def upsert_rows(
    table: str,
    columns: Sequence[str],
    rows: Sequence[dict[str, Any]] | Sequence[tuple[Any, ...]],
    *,
    key: Sequence[str] = ("id",),
    update: bool = True,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> StepReport:
    """
    Upsert `rows` (dicts keyed by column, or tuples in column order).
    """
    report = StepReport(table=table, total=len(rows))
    sql = upsert_sql(table, columns, key=key, update=update)

    for index, batch in enumerate(batches(rows, batch_size)):
        args = [
            tuple(row[col] for col in columns) if isinstance(row, dict) else tuple(row)
            for row in batch
        ]
        start = index * max(1, batch_size)
        try:
            async with db.transaction() as conn:
                await conn.executemany(sql, args)
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            report.failed_batches += 1
            logger.error(
                "batch_failed table=%s rows=%s-%s error=%s",
                table,
                start + 1,
                start + len(batch),
                exc,
            )
            continue

        report.written += len(batch)
        logger.info("batch_written table=%s rows=%s-%s of=%s", table, start + 1, start + len(batch), report.total)

    logger.info(
        "table_done table=%s written=%s total=%s failed_batches=%s",
        table,
        report.written,
        report.total,
        report.failed_batches,
    )
    return report
