"""
Migration Tests
===============

Id mapping persistence, row transforms, batched upserts that skip failed
batches or rows, a full ordered run against an in-memory legacy source, and
the `run` command keeping its mapping files when a step aborts.
"""

import json
import uuid
from datetime import date, datetime, timezone

import asyncpg
import pytest
from click.testing import CliRunner

from core import auth_provider, db
from migration import cli, runner, transforms
from migration.loader import batches, upsert_rows, upsert_sql
from migration.mapping import IdMapping, mapping_path

NOW = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)


class FakeLegacy:
    def __init__(self, tables):
        self.tables = tables
        self.reads = []
        self.disposed = False

    def fetch_rows(self, table):
        self.reads.append(table)
        return [dict(r) for r in self.tables[table]]

    def fetch_optional_rows(self, table):
        self.reads.append(table)
        return [dict(r) for r in self.tables.get(table, [])]

    def dispose(self):
        self.disposed = True


LEGACY = {
    "docentes": [
        {"id": 1, "nombre": "Ana", "apellido": "Fernandez", "documento": 30111222, "email": "", "telefono": None},
        {"id": 2, "nombre": "Luis", "apellido": "Lopez", "documento": None},
    ],
    "escuelas": [{"id": 10, "nombre": "Escuela 12", "domicilio": "Calle 1", "nivel": "Primario"}],
    "expedientes": [
        {"id": 100, "numero": 55, "caratula": "Licencia", "fecha_inicio": date(2023, 5, 2), "estado": None,
         "docente_id": 1, "escuela_id": 99},
    ],
    "disposiciones": [
        {"id": 7, "numero": "D-7", "fecha_dispo": "2023-06-01", "dispo": "Traslado",
         "docente_id": 2, "escuela_id": 10, "expediente_id": 100},
    ],
    "expedientes_docentes": [
        {"expediente_id": 100, "docente_id": 2},
        {"expediente_id": 100, "docente_id": 1},
        {"expediente_id": 404, "docente_id": 1},
    ],
}


class TestIdMapping:

    def test_resolve_is_stable(self):
        mapping = IdMapping()
        first = mapping.resolve("docentes", 1)
        assert mapping.resolve("docentes", "1") == first
        assert mapping.lookup("docentes", 1) == first
        assert mapping.resolve("docentes", 2) != first

    def test_lookup_unknown_or_empty(self):
        mapping = IdMapping()
        assert mapping.lookup("docentes", 1) is None
        assert mapping.lookup("docentes", None) is None
        assert mapping.lookup("docentes", "") is None

    def test_uuid_legacy_ids_are_kept(self):
        existing = uuid.uuid4()
        assert IdMapping().resolve("disposiciones", str(existing)) == existing

    def test_save_and_load(self, tmp_path):
        mapping = IdMapping()
        teacher = mapping.resolve("docentes", 1)
        mapping.save(tmp_path)

        on_disk = json.loads(mapping_path(tmp_path, "docentes").read_text())
        assert on_disk == {"1": str(teacher)}
        assert IdMapping.load(tmp_path).lookup("docentes", 1) == teacher

    def test_problems(self):
        shared = str(uuid.uuid4())
        mapping = IdMapping({"docentes": {"1": shared, "2": shared, "3": "not-a-uuid"}})
        problems = mapping.problems()
        assert len(problems) == 2
        assert any("not a uuid" in p for p in problems)


class TestTransforms:

    def test_teacher(self):
        mapping = IdMapping()
        row = transforms.teacher_row(LEGACY["docentes"][0], mapping, now=NOW)
        assert row["id"] == mapping.lookup("docentes", 1)
        assert row["dni"] == "30111222"
        assert row["email"] is None
        assert row["fecha_creacion"] == NOW
        assert row["updated_at"] == NOW
        assert set(row) == set(transforms.TEACHER_COLUMNS)

    def test_case_file_defaults_and_renames(self):
        row = transforms.case_file_row(LEGACY["expedientes"][0], IdMapping(), now=NOW)
        assert row["numero"] == "55"
        assert row["asunto"] == "Licencia"
        assert row["fecha_recibido"] == date(2023, 5, 2)
        assert row["estado"] == transforms.DEFAULT_CASE_FILE_STATUS

    def test_disposition_foreign_keys_use_mapping(self):
        mapping = IdMapping()
        teacher = mapping.resolve("docentes", 2)
        row = transforms.disposition_row(LEGACY["disposiciones"][0], mapping, now=NOW)
        assert row["docente_id"] == teacher
        # Not migrated yet: no mapping, no reference.
        assert row["escuela_id"] is None
        assert row["fecha_dispo"] == date(2023, 6, 1)

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, None),
            ("", None),
            ("0000-00-00 00:00:00", None),
            (datetime(2023, 1, 2, 3, 4), datetime(2023, 1, 2, 3, 4, tzinfo=timezone.utc)),
            ("2023-01-02T03:04:05Z", datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
            (date(2023, 1, 2), datetime(2023, 1, 2, tzinfo=timezone.utc)),
        ],
    )
    def test_to_timestamp(self, value, expected):
        assert transforms.to_timestamp(value) == expected

    def test_link_pairs_skip_unmapped_and_repeats(self):
        mapping = IdMapping()
        case_file = mapping.resolve("expedientes", 100)
        teacher = mapping.resolve("docentes", 1)
        pairs = transforms.link_pairs(
            [
                {"expediente_id": 100, "docente_id": 1},
                {"expediente_id": 100, "docente_id": 1},
                {"expediente_id": 100, "docente_id": 5},
                {"expediente_id": 404, "docente_id": 1},
            ],
            mapping,
            target_entity="docentes",
            target_column="docente_id",
        )
        assert pairs == [(case_file, teacher)]


class TestLoader:

    def test_upsert_sql(self):
        assert upsert_sql("escuelas", ("id", "nombre")) == (
            "INSERT INTO escuelas (id, nombre) VALUES ($1, $2) "
            "ON CONFLICT (id) DO UPDATE SET nombre = EXCLUDED.nombre"
        )
        assert upsert_sql("x", ("a", "b"), key=("a", "b"), update=False).endswith("ON CONFLICT (a, b) DO NOTHING")

    def test_batches(self):
        assert [len(b) for b in batches(list(range(120)), 50)] == [50, 50, 20]

    @pytest.mark.asyncio
    async def test_failed_batch_is_skipped(self, store):
        calls = {"n": 0}
        original = store.conn.executemany

        async def flaky(sql, args):
            calls["n"] += 1
            if calls["n"] == 2:
                raise asyncpg.InterfaceError("connection lost")
            await original(sql, args)

        store.conn.executemany = flaky
        rows = [{"id": i, "nombre": str(i)} for i in range(5)]

        report = await upsert_rows("escuelas", ("id", "nombre"), rows, batch_size=2)

        assert report.as_dict() == {
            "table": "escuelas",
            "total": 5,
            "written": 3,
            "failed_batches": 1,
            "failed_rows": 0,
        }
        assert store.transactions == 3
        written = [args for kind, _, args in store.calls if kind == "conn.executemany"]
        assert written == [[(0, "0"), (1, "1")], [(4, "4")]]


class TestRun:

    @pytest.mark.asyncio
    async def test_ordered_run_and_idempotent_ids(self, store):
        mapping = IdMapping()
        legacy = FakeLegacy(LEGACY)

        reports = await runner.run_migration(legacy, mapping, now=NOW)

        assert [r.table for r in reports] == [
            "docentes", "escuelas", "expedientes", "disposiciones",
            "expedientes_docentes", "expedientes_escuelas",
        ]
        assert all(r.failed_batches == 0 for r in reports)

        first_ids = [args for kind, sql, args in store.calls if kind == "conn.executemany"]
        case_file = mapping.lookup("expedientes", 100)
        links = {r.table: r for r in reports}
        # Join table pairs (100,2) and (100,1); direct docente_id 1 collapses; 404 is unmapped.
        assert links["expedientes_docentes"].total == 2
        # Direct escuela_id 99 was never migrated.
        assert links["expedientes_escuelas"].total == 0

        disposition_rows = first_ids[3]
        assert disposition_rows[0][transforms.DISPOSITION_COLUMNS.index("expediente_id")] == case_file

        # Second run with the same mapping writes the same keys again.
        store.calls.clear()
        await runner.run_migration(FakeLegacy(LEGACY), mapping, now=NOW)
        second_ids = [args for kind, sql, args in store.calls if kind == "conn.executemany"]
        assert second_ids == first_ids
        assert all("ON CONFLICT" in sql for kind, sql, _ in store.calls if kind == "conn.executemany")

    @pytest.mark.asyncio
    async def test_only_selected_steps(self, store):
        legacy = FakeLegacy(LEGACY)
        reports = await runner.run_migration(legacy, IdMapping(), only=["escuelas"], now=NOW)
        assert [r.table for r in reports] == ["escuelas"]
        assert legacy.reads == ["escuelas"]

    @pytest.mark.asyncio
    async def test_unknown_step(self, store):
        with pytest.raises(ValueError):
            await runner.run_migration(FakeLegacy(LEGACY), IdMapping(), only=["alumnos"])

    @pytest.mark.asyncio
    async def test_bad_row_is_skipped_and_counted(self, store):
        tables = dict(LEGACY)
        tables["expedientes"] = LEGACY["expedientes"] + [
            {"id": 101, "numero": 56, "caratula": "Traslado", "fecha_inicio": "15/03/2021"},
        ]
        mapping = IdMapping()

        reports = await runner.run_migration(FakeLegacy(tables), mapping, only=["expedientes"], now=NOW)

        (report,) = reports
        assert report.as_dict() == {
            "table": "expedientes",
            "total": 2,
            "written": 1,
            "failed_rows": 1,
            "failed_batches": 0,
        }
        (_, _, written), = [c for c in store.calls if c[0] == "conn.executemany"]
        assert [row[0] for row in written] == [mapping.lookup("expedientes", 100)]


class TestSeedUsers:

    @pytest.mark.asyncio
    async def test_create_update_and_skip(self, monkeypatch):
        created, updated = [], []

        async def list_users(**_):
            return [{"id": "u-admin", "email": "Admin@Escuelas.test"}]

        async def create(*, email, password, user_metadata):
            created.append((email, user_metadata))
            return {"id": "u-new"}

        async def update(user_id, **changes):
            updated.append((user_id, changes["user_metadata"]))
            return {"id": user_id}

        monkeypatch.setattr(auth_provider, "admin_list_users", list_users)
        monkeypatch.setattr(auth_provider, "admin_create_user", create)
        monkeypatch.setattr(auth_provider, "admin_update_user", update)

        results = await runner.seed_users([
            {"email": "admin@escuelas.test", "username": "admin", "password": "secret1", "role": "admin"},
            {"email": "user@escuelas.test", "username": "usuario", "password": "secret2", "role": "user"},
            {"email": "nopass@escuelas.test", "username": "x", "password": "", "role": "user"},
        ])

        assert [r["action"] for r in results] == ["updated", "created", "skipped"]
        assert updated == [("u-admin", {"username": "admin", "role": "admin"})]
        assert created == [("user@escuelas.test", {"username": "usuario", "role": "user"})]


class TestCli:

    def test_verify_mappings_reports_problems(self, tmp_path):
        mapping_path(tmp_path, "docentes").write_text(json.dumps({"1": "bad"}))
        result = CliRunner().invoke(cli.cli, ["verify-mappings", "--mapping-dir", str(tmp_path)])
        assert result.exit_code != 0
        assert "not a uuid" in result.output

    def test_verify_mappings_ok(self, tmp_path):
        IdMapping({"escuelas": {"10": str(uuid.uuid4())}}).save(tmp_path)
        result = CliRunner().invoke(cli.cli, ["verify-mappings", "--mapping-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "1 mapping entries ok" in result.output


class TestCliRun:

    @pytest.fixture
    def legacy(self, monkeypatch, store):
        async def no_pool(**_):
            return None

        fake = FakeLegacy(LEGACY)
        monkeypatch.setattr(cli, "create_legacy_engine", lambda: None)
        monkeypatch.setattr(cli, "LegacySource", lambda engine: fake)
        monkeypatch.setattr(db, "init_pool", no_pool)
        monkeypatch.setattr(db, "close_pool", no_pool)
        return fake

    @pytest.fixture
    def aborting_step(self, monkeypatch):
        async def lost_connection(source, mapping, batch_size, now):
            raise RuntimeError("legacy connection lost")

        monkeypatch.setitem(runner.STEPS, "disposiciones", lost_connection)

    def test_clean_run(self, tmp_path, legacy):
        result = CliRunner().invoke(cli.cli, ["run", "--mapping-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "docentes: 2/2 written, 0 failed batch(es), 0 failed row(s)" in result.output
        assert legacy.disposed
        assert len(IdMapping.load(tmp_path).entries("docentes")) == 2

    def test_mappings_saved_when_a_later_step_aborts(self, tmp_path, legacy, aborting_step):
        result = CliRunner().invoke(cli.cli, ["run", "--mapping-dir", str(tmp_path)])

        assert result.exit_code != 0
        assert isinstance(result.exception, RuntimeError)
        assert legacy.disposed
        saved = IdMapping.load(tmp_path)
        assert set(saved.entries("docentes")) == {"1", "2"}
        assert set(saved.entries("escuelas")) == {"10"}
        assert set(saved.entries("expedientes")) == {"100"}

        # A rerun reuses the saved ids instead of minting new ones.
        rerun = IdMapping.load(tmp_path)
        assert rerun.resolve("docentes", 1) == saved.lookup("docentes", 1)

    def test_read_only_mappings_are_not_written(self, tmp_path, legacy, aborting_step):
        result = CliRunner().invoke(
            cli.cli,
            ["run", "--mapping-dir", str(tmp_path), "--read-only-mappings"],
        )

        assert result.exit_code != 0
        assert not mapping_path(tmp_path, "docentes").exists()

    def test_failed_rows_fail_the_command(self, tmp_path, legacy):
        legacy.tables = dict(LEGACY)
        legacy.tables["expedientes"] = LEGACY["expedientes"] + [
            {"id": 101, "numero": 56, "caratula": "Traslado", "fecha_inicio": "15/03/2021"},
        ]

        result = CliRunner().invoke(cli.cli, ["run", "--mapping-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "expedientes: 1/2 written, 0 failed batch(es), 1 failed row(s)" in result.output
        assert set(IdMapping.load(tmp_path).entries("expedientes")) == {"100", "101"}
