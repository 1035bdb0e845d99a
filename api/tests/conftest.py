"""
Shared fixtures.

`FakeStore` stands in for `core.db`: every statement is recorded, and reads
answer from responses registered by SQL fragment. No database is needed.
"""

import copy
from contextlib import asynccontextmanager
from typing import Any, Callable

import pytest

from auth import security
from core import db


class FakeConnection:
    def __init__(self, store: "FakeStore"):
        self.store = store

    async def execute(self, sql: str, *args: Any) -> str:
        self.store.record("conn.execute", sql, args)
        return "OK"

    async def executemany(self, sql: str, args: Any) -> None:
        self.store.record("conn.executemany", sql, list(args))

    async def fetchrow(self, sql: str, *args: Any):
        self.store.record("conn.fetchrow", sql, args)
        return self.store.answer(sql, args, None)


class FakeStore:
    def __init__(self):
        self.calls: list[tuple[str, str, Any]] = []
        self.transactions = 0
        self._responses: list[tuple[str, Any]] = []
        self._failures: list[tuple[str, BaseException]] = []
        self.conn = FakeConnection(self)

    def respond(self, fragment: str, result: Any) -> None:
        """
        Answer statements containing `fragment` with `result`, or with
        `result(sql, args)` when it is callable. Later registrations win.
        """
        self._responses.insert(0, (fragment, result))

    def fail(self, fragment: str, exc: BaseException) -> None:
        self._failures.append((fragment, exc))

    def record(self, kind: str, sql: str, args: Any) -> None:
        sql = " ".join(sql.split())
        self.calls.append((kind, sql, args))
        for fragment, exc in self._failures:
            if fragment in sql:
                raise exc

    def answer(self, sql: str, args: Any, default: Any) -> Any:
        sql = " ".join(sql.split())
        for fragment, result in self._responses:
            if fragment in sql:
                value = result(sql, args) if callable(result) else result
                return copy.deepcopy(value)
        return default

    def statements(self, kind: str | None = None) -> list[str]:
        return [sql for (k, sql, _) in self.calls if kind is None or k == kind]

    def calls_matching(self, fragment: str) -> list[tuple[str, str, Any]]:
        return [call for call in self.calls if fragment in call[1]]

    # core.db replacements

    async def fetch_one(self, sql: str, *args: Any):
        self.record("fetch_one", sql, args)
        return self.answer(sql, args, None)

    async def fetch_all(self, sql: str, *args: Any):
        self.record("fetch_all", sql, args)
        return self.answer(sql, args, [])

    async def fetch_val(self, sql: str, *args: Any):
        self.record("fetch_val", sql, args)
        return self.answer(sql, args, 0)

    async def execute(self, sql: str, *args: Any) -> None:
        self.record("execute", sql, args)

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield self.conn


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    fake = FakeStore()
    monkeypatch.setattr(db, "fetch_one", fake.fetch_one)
    monkeypatch.setattr(db, "fetch_all", fake.fetch_all)
    monkeypatch.setattr(db, "fetch_val", fake.fetch_val)
    monkeypatch.setattr(db, "execute", fake.execute)
    monkeypatch.setattr(db, "transaction", fake.transaction)
    return fake


@pytest.fixture(autouse=True)
def app_env(monkeypatch):
    """Tokens are verified from claims only; no auth service is reachable."""
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("APP_ENV", "test")
    for name in (
        "SUPABASE_SERVICE_ROLE_KEY",
        "SUPABASE_SERVICE_KEY",
        "SUPABASE_KEY",
        "SUPABASE_ANON_KEY",
        "SUPABASE_PUBLIC_ANON_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(role: str = "user", user_id: str = "user-1", username: str = "tester") -> str:
        return security.build_access_token(user_id=user_id, username=username, role=role)

    return _make


@pytest.fixture
def auth_headers(make_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}
