"""Pytest fixtures: sqlite-backed stand-ins for the Postgres connection used by the repository and vector index."""

import contextlib
import json
import math
import re
import sqlite3
import types

import pytest

from paperlens.db.repository import PaperRepository
from paperlens.indexing.vector_index import PgVectorIndex


def _cosine_distance(a, b):
    """sqlite implementation of pgvector's ``<=>`` over ``[x,y,...]`` text literals."""
    if a is None or b is None:
        return None
    va = json.loads(a)
    vb = json.loads(b)
    if len(va) != len(vb):
        return 1.0
    dot = sum(x * y for x, y in zip(va, vb))
    na = math.sqrt(sum(x * x for x in va))
    nb = math.sqrt(sum(y * y for y in vb))
    if na == 0.0 or nb == 0.0:
        return 1.0
    return 1.0 - dot / (na * nb)


class SQLiteCursorWrapper:
    def __init__(self, cur):
        self._cur = cur
        self._rows = []

    @staticmethod
    def _rewrite_sql(sql: str) -> str:
        out = sql
        # Remove Postgres casts.
        out = re.sub(r"::[A-Za-z_][A-Za-z0-9_]*", "", out)
        out = out.replace("NOW()", "CURRENT_TIMESTAMP")
        out = re.sub(r"\bTRUE\b", "1", out, flags=re.IGNORECASE)
        out = re.sub(r"\bFALSE\b", "0", out, flags=re.IGNORECASE)
        out = out.replace("%s", "?")
        # pgvector cosine distance operator.
        out = re.sub(r"(\w+)\s*<=>\s*\?", r"cosine_distance(\1, ?)", out)
        return out

    def execute(self, sql, params=None):
        self._cur.execute(self._rewrite_sql(sql), params or ())
        # Drain RETURNING/SELECT rows so the statement finishes before COMMIT.
        self._rows = self._cur.fetchall() if self._cur.description is not None else []
        return self

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class SQLiteConnWrapper:
    def __init__(self):
        self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        self._conn.create_function("cosine_distance", 2, _cosine_distance)
        self.info = types.SimpleNamespace(dsn="sqlite://memory")
        self.commits = 0
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE papers (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                authors_json TEXT,
                year INTEGER,
                raw_text TEXT NOT NULL,
                page_count INTEGER,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE citations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                paper_id TEXT NOT NULL REFERENCES papers(id),
                citation_key TEXT NOT NULL,
                raw_reference TEXT,
                context_in_paper TEXT,
                cited_title TEXT,
                cited_abstract TEXT,
                cited_authors_json TEXT,
                cited_year INTEGER,
                cited_doi TEXT,
                cited_external_id TEXT,
                relevance_explanation TEXT,
                enriched INTEGER NOT NULL DEFAULT 0,
                enrichment_failed INTEGER NOT NULL DEFAULT 0,
                failure_reason TEXT,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                enriched_at TEXT,
                UNIQUE (paper_id, citation_key),
                CHECK (NOT (enriched AND enrichment_failed))
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE paper_chunks (
                paper_id TEXT NOT NULL,
                chunk_index INTEGER NOT NULL,
                content TEXT NOT NULL,
                embedding TEXT,
                PRIMARY KEY (paper_id, chunk_index)
            )
            """
        )
        self._conn.commit()

    def cursor(self):
        return SQLiteCursorWrapper(self._conn.cursor())

    def commit(self):
        self.commits += 1
        return self._conn.commit()

    def rollback(self):
        return self._conn.rollback()

    def close(self):
        # Keep the in-memory database alive for the whole test.
        return None


@pytest.fixture
def sqlite_conn():
    return SQLiteConnWrapper()


@pytest.fixture
def connection_factory(sqlite_conn):
    return lambda: contextlib.nullcontext(sqlite_conn)


@pytest.fixture
def repository(connection_factory):
    return PaperRepository(connection_factory=connection_factory)


@pytest.fixture
def pg_index(connection_factory):
    return PgVectorIndex(connection_factory=connection_factory)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep real credentials and config files out of the tests."""
    for key in (
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "LLM_API_KEY",
        "LLM_BASE_URL",
        "LLM_PROVIDER",
        "DATABASE_URL",
        "PAPERLENS_CONFIG",
        "SEMANTIC_SCHOLAR_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)
