"""
`records-migrate` command line.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from core import db
from core.log import setup_logging

from . import runner
from .legacy import LegacySource, create_legacy_engine
from .loader import DEFAULT_BATCH_SIZE
from .mapping import IdMapping


@click.group()
@click.option("--log-level", default=None, help="Overrides LOG_LEVEL.")
def cli(log_level: str | None) -> None:
    """Move legacy MySQL data into the Postgres store."""
    setup_logging(log_level)


async def _run(source: LegacySource, mapping: IdMapping, only: tuple[str, ...], batch_size: int):
    await db.init_pool()
    try:
        return await runner.run_migration(source, mapping, only=only or None, batch_size=batch_size)
    finally:
        await db.close_pool()


@cli.command()
@click.option("--only", multiple=True, type=click.Choice(list(runner.STEPS)), help="Run only these steps.")
@click.option(
    "--mapping-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory holding <entity>_id_mapping.json files.",
)
@click.option("--batch-size", type=click.IntRange(1, 1000), default=DEFAULT_BATCH_SIZE, show_default=True)
@click.option("--read-only-mappings", is_flag=True, help="Do not write mapping files back.")
def run(only: tuple[str, ...], mapping_dir: Path, batch_size: int, read_only_mappings: bool) -> None:
    """Run the migration steps in dependency order."""
    mapping = IdMapping.load(mapping_dir)
    source = LegacySource(create_legacy_engine())
    try:
        reports = asyncio.run(_run(source, mapping, only, batch_size))
    finally:
        source.dispose()
        # Ids handed out so far are kept even when a step aborts.
        if not read_only_mappings:
            mapping.save(mapping_dir)

    failed = 0
    for report in reports:
        failed += report.failed_batches + report.failed_rows
        click.echo(
            f"{report.table}: {report.written}/{report.total} written, "
            f"{report.failed_batches} failed batch(es), {report.failed_rows} failed row(s)"
        )
    if failed:
        raise SystemExit(1)


async def _counts() -> dict[str, int]:
    await db.init_pool(retries=1)
    try:
        return await runner.store_counts()
    finally:
        await db.close_pool()


@cli.command()
@click.option("--skip-legacy", is_flag=True, help="Only check the Postgres store.")
def check(skip_legacy: bool) -> None:
    """Check connectivity and print row counts."""
    counts = asyncio.run(_counts())
    click.echo("store: ok")
    for table, count in counts.items():
        click.echo(f"  {table}: {count}")

    if skip_legacy:
        return
    source = LegacySource(create_legacy_engine())
    try:
        source.ping()
    finally:
        source.dispose()
    click.echo("legacy: ok")


@cli.command("verify-mappings")
@click.option(
    "--mapping-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
)
def verify_mappings(mapping_dir: Path) -> None:
    """Check that every mapping value is a uuid and no uuid is reused."""
    mapping = IdMapping.load(mapping_dir)
    problems = mapping.problems()
    for problem in problems:
        click.echo(problem, err=True)
    if problems:
        raise click.ClickException(f"{len(problems)} mapping problem(s) found.")
    click.echo(f"{len(mapping)} mapping entries ok")


@cli.command("seed-users")
def seed_users() -> None:
    """Create or update the seed admin and user in the auth service."""
    for result in asyncio.run(runner.seed_users()):
        click.echo(f"{result['email']}: {result['action']}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
