"""Schema readiness checks against a scripted fake connection."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from paperlens.db import connection


class _FakeCursor:
    def __init__(self, answers: dict) -> None:
        self.answers = answers
        self.executed = []
        self._row = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None) -> None:
        self.executed.append((sql, params))
        key = params[0] if params else sql
        self._row = self.answers.get(key)

    def fetchone(self):
        return self._row


class _FakeConn:
    def __init__(self, dsn: str, answers: dict) -> None:
        self.info = SimpleNamespace(dsn=dsn)
        self.cur = _FakeCursor(answers)

    def cursor(self):
        return self.cur


def _answers(**overrides) -> dict:
    answers = {
        "SELECT to_regclass('public.alembic_version')": ("alembic_version",),
        "SELECT version_num FROM alembic_version LIMIT 1": ("0001",),
        "public.papers": ("papers",),
        "public.citations": ("citations",),
        "public.paper_chunks": ("paper_chunks",),
        "SELECT 1 FROM pg_extension WHERE extname = 'vector'": (1,),
    }
    answers.update(overrides)
    return answers


@pytest.fixture(autouse=True)
def _reset_ready_cache(monkeypatch):
    monkeypatch.setattr(connection, "_SCHEMA_READY_BY_DSN", set())


def test_ready_schema_is_cached_per_dsn() -> None:
    conn = _FakeConn("dbname=ok", _answers())
    connection.ensure_schema_ready(conn)
    first = len(conn.cur.executed)
    connection.ensure_schema_ready(conn)
    assert len(conn.cur.executed) == first


def test_outdated_revision_is_rejected() -> None:
    conn = _FakeConn("dbname=old", _answers(**{"SELECT version_num FROM alembic_version LIMIT 1": ("0000",)}))
    with pytest.raises(RuntimeError, match="outdated"):
        connection.ensure_schema_ready(conn)


def test_missing_tables_and_extension_are_reported() -> None:
    conn = _FakeConn("dbname=partial", _answers(**{"public.paper_chunks": (None,)}))
    with pytest.raises(RuntimeError, match="paper_chunks"):
        connection.ensure_schema_ready(conn)
    conn = _FakeConn("dbname=novector", _answers(**{"SELECT 1 FROM pg_extension WHERE extname = 'vector'": None}))
    with pytest.raises(RuntimeError, match="pgvector"):
        connection.ensure_schema_ready(conn)


def test_database_url_resolution(monkeypatch) -> None:
    assert connection.get_database_url("  postgresql://x  ") == "postgresql://x"
    assert connection.get_database_url(None, required=False) is None
    with pytest.raises(RuntimeError):
        connection.get_database_url(None)
    monkeypatch.setenv("DATABASE_URL", "postgresql://env")
    assert connection.get_database_url() == "postgresql://env"
