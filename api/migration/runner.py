"""
Migration steps and the ordered run.

Every step takes the legacy source and the shared `IdMapping`, writes to the
store, and returns one or more `StepReport`s. Foreign keys only resolve for
rows whose parent step already ran, so the order in `STEPS` matters.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Protocol

from core import auth_provider, config, db

from . import transforms
from .loader import DEFAULT_BATCH_SIZE, StepReport, upsert_rows
from .mapping import IdMapping

logger = logging.getLogger(__name__)

CASE_FILE_BATCH_SIZE = 20

STORE_TABLES = ("docentes", "escuelas", "expedientes", "disposiciones", "expedientes_docentes", "expedientes_escuelas")


class Source(Protocol):
    def fetch_rows(self, table: str) -> list[dict[str, Any]]: ...

    def fetch_optional_rows(self, table: str) -> list[dict[str, Any]]: ...


Transform = Callable[..., dict[str, Any]]
Step = Callable[[Source, IdMapping, int, datetime], Awaitable[list[StepReport]]]


async def _read(fetch: Callable[[str], list[dict[str, Any]]], table: str) -> list[dict[str, Any]]:
    return await asyncio.to_thread(fetch, table)


async def _migrate_table(
    source: Source,
    mapping: IdMapping,
    *,
    table: str,
    transform: Transform,
    columns: tuple[str, ...],
    batch_size: int,
    now: datetime,
) -> StepReport:
    legacy_rows = await _read(source.fetch_rows, table)
    rows: list[dict[str, Any]] = []
    failed_rows = 0
    for legacy_row in legacy_rows:
        try:
            rows.append(transform(legacy_row, mapping, now=now))
        except (ValueError, TypeError, KeyError) as exc:
            failed_rows += 1
            logger.error("row_failed table=%s legacy_id=%s error=%s", table, legacy_row.get("id"), exc)

    report = await upsert_rows(table, columns, rows, batch_size=batch_size)
    report.total = len(legacy_rows)
    report.failed_rows = failed_rows
    return report


async def migrate_teachers(source: Source, mapping: IdMapping, batch_size: int, now: datetime) -> list[StepReport]:
    return [
        await _migrate_table(
            source,
            mapping,
            table="docentes",
            transform=transforms.teacher_row,
            columns=transforms.TEACHER_COLUMNS,
            batch_size=batch_size,
            now=now,
        )
    ]


async def migrate_schools(source: Source, mapping: IdMapping, batch_size: int, now: datetime) -> list[StepReport]:
    return [
        await _migrate_table(
            source,
            mapping,
            table="escuelas",
            transform=transforms.school_row,
            columns=transforms.SCHOOL_COLUMNS,
            batch_size=batch_size,
            now=now,
        )
    ]


async def migrate_case_files(source: Source, mapping: IdMapping, batch_size: int, now: datetime) -> list[StepReport]:
    return [
        await _migrate_table(
            source,
            mapping,
            table="expedientes",
            transform=transforms.case_file_row,
            columns=transforms.CASE_FILE_COLUMNS,
            batch_size=min(batch_size, CASE_FILE_BATCH_SIZE),
            now=now,
        )
    ]


async def migrate_dispositions(source: Source, mapping: IdMapping, batch_size: int, now: datetime) -> list[StepReport]:
    return [
        await _migrate_table(
            source,
            mapping,
            table="disposiciones",
            transform=transforms.disposition_row,
            columns=transforms.DISPOSITION_COLUMNS,
            batch_size=batch_size,
            now=now,
        )
    ]


async def migrate_links(source: Source, mapping: IdMapping, batch_size: int, now: datetime) -> list[StepReport]:
    """
    Case-file links from the legacy join tables and from the single
    `docente_id` / `escuela_id` columns of legacy case-files.
    """
    case_files = await _read(source.fetch_rows, "expedientes")
    reports: list[StepReport] = []
    for join_table, target_entity, target_column in (
        ("expedientes_docentes", "docentes", "docente_id"),
        ("expedientes_escuelas", "escuelas", "escuela_id"),
    ):
        legacy_links = await _read(source.fetch_optional_rows, join_table)
        direct_links = [
            {"expediente_id": row.get("id"), target_column: row.get(target_column)}
            for row in case_files
            if row.get(target_column)
        ]
        pairs = transforms.link_pairs(
            legacy_links + direct_links,
            mapping,
            target_entity=target_entity,
            target_column=target_column,
        )
        reports.append(
            await upsert_rows(
                join_table,
                ("expediente_id", target_column),
                pairs,
                key=("expediente_id", target_column),
                update=False,
                batch_size=batch_size,
            )
        )
    return reports


STEPS: dict[str, Step] = {
    "docentes": migrate_teachers,
    "escuelas": migrate_schools,
    "expedientes": migrate_case_files,
    "disposiciones": migrate_dispositions,
    "relaciones": migrate_links,
}


async def run_migration(
    source: Source,
    mapping: IdMapping,
    *,
    only: Iterable[str] | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    now: datetime | None = None,
) -> list[StepReport]:
    """
    Run the selected steps (all by default) in dependency order.
    """
    selected = set(only or STEPS)
    unknown = selected - set(STEPS)
    if unknown:
        raise ValueError(f"Unknown migration step(s): {', '.join(sorted(unknown))}")

    started = now or transforms.utc_now()
    reports: list[StepReport] = []
    for name, step in STEPS.items():
        if name not in selected:
            continue
        logger.info("step_started step=%s", name)
        reports.extend(await step(source, mapping, batch_size, started))
    return reports


async def store_counts(tables: Iterable[str] = STORE_TABLES) -> dict[str, int]:
    counts: dict[str, int] = {}
    for table in tables:
        counts[table] = int(await db.fetch_val(f"SELECT count(*) FROM {table}") or 0)
    return counts


async def seed_users(accounts: list[dict[str, str]] | None = None) -> list[dict[str, Any]]:
    """
    Create the seed accounts in the auth service, or reset password and
    metadata of the ones that already exist. Accounts without a password
    are skipped.
    """
    accounts = accounts if accounts is not None else [config.seed_admin(), config.seed_user()]
    existing = {
        str(user.get("email") or "").lower(): user
        for user in await auth_provider.admin_list_users()
    }

    results: list[dict[str, Any]] = []
    for account in accounts:
        email = account["email"]
        if not account.get("password"):
            logger.warning("seed_user_skipped email=%s reason=no_password", email)
            results.append({"email": email, "action": "skipped"})
            continue

        metadata = {"username": account["username"], "role": account["role"]}
        current = existing.get(email.lower())
        if current is None:
            user = await auth_provider.admin_create_user(
                email=email,
                password=account["password"],
                user_metadata=metadata,
            )
            action = "created"
        else:
            user = await auth_provider.admin_update_user(
                current["id"],
                password=account["password"],
                user_metadata=metadata,
            )
            action = "updated"
        logger.info("seed_user_%s email=%s id=%s", action, email, user["id"])
        results.append({"email": email, "action": action, "id": user["id"]})
    return results
