"""Pooled Postgres connections for the paper store and the pgvector chunk index."""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from typing import Iterator, Sequence

from psycopg import Connection
from psycopg_pool import ConnectionPool

from paperlens.core.logging_utils import log_event

EXPECTED_ALEMBIC_REVISION = "0001"
READER_TABLES = ("papers", "citations", "paper_chunks")
MIGRATE_HINT = "Run: `paperlens db migrate --db-url <DATABASE_URL>`"
_POOL_LOCK = threading.Lock()
_POOLS: dict[str, ConnectionPool] = {}
_SCHEMA_READY_BY_DSN: set[str] = set()


def get_database_url(explicit_db_url: str | None = None, *, required: bool = True) -> str | None:
    """Resolve Postgres DSN from explicit value or environment."""
    value = (explicit_db_url or os.environ.get("DATABASE_URL") or "").strip()
    if not value and required:
        raise RuntimeError("DATABASE_URL is required.")
    return value or None


def ensure_schema_ready(
    conn: Connection,
    *,
    expected_revision: str = EXPECTED_ALEMBIC_REVISION,
    tables: Sequence[str] = READER_TABLES,
) -> None:
    """Fail fast when the reader schema or the ``vector`` extension is missing.

    The check runs once per DSN; later calls on the same database return
    immediately.

    Raises:
        RuntimeError: If migrations were not applied or are out of date.
    """
    dsn = str(conn.info.dsn or "")
    if dsn in _SCHEMA_READY_BY_DSN:
        return
    with conn.cursor() as cur:
        cur.execute("SELECT to_regclass('public.alembic_version')")
        row = cur.fetchone()
        if not row or row[0] is None:
            raise RuntimeError(f"Database schema is not initialized. {MIGRATE_HINT}")
        cur.execute("SELECT version_num FROM alembic_version LIMIT 1")
        revision_row = cur.fetchone()
        if not revision_row or not revision_row[0]:
            raise RuntimeError(f"Alembic revision is missing. {MIGRATE_HINT}")
        revision = str(revision_row[0]).strip()
        if expected_revision and revision != expected_revision:
            raise RuntimeError(
                f"Database schema is outdated (found {revision}, expected {expected_revision}). {MIGRATE_HINT}"
            )
        missing = []
        for table in tables:
            cur.execute("SELECT to_regclass(%s)", (f"public.{table}",))
            found = cur.fetchone()
            if not found or found[0] is None:
                missing.append(table)
        if missing:
            raise RuntimeError(f"Reader tables are missing: {', '.join(missing)}. {MIGRATE_HINT}")
        cur.execute("SELECT 1 FROM pg_extension WHERE extname = 'vector'")
        if cur.fetchone() is None:
            raise RuntimeError(f"The pgvector extension is not installed. {MIGRATE_HINT}")
    _SCHEMA_READY_BY_DSN.add(dsn)
    log_event("db_schema_ready", {"revision": expected_revision, "tables": list(tables)})


def get_pool(
    db_url: str | None = None,
    *,
    min_size: int | None = None,
    max_size: int | None = None,
) -> ConnectionPool:
    """Get or create a process-global connection pool for a DSN."""
    resolved = get_database_url(db_url, required=True)
    min_value = int(min_size if min_size is not None else os.environ.get("DB_POOL_MIN_SIZE", "1"))
    max_value = int(max_size if max_size is not None else os.environ.get("DB_POOL_MAX_SIZE", "8"))
    with _POOL_LOCK:
        pool = _POOLS.get(resolved)
        if pool is None:
            pool = ConnectionPool(
                conninfo=resolved,
                min_size=max(1, min_value),
                max_size=max(1, max_value),
                kwargs={"autocommit": False},
                open=True,
            )
            _POOLS[resolved] = pool
    return pool


@contextmanager
def pooled_connection(
    db_url: str | None = None,
    *,
    require_migrated: bool = True,
) -> Iterator[Connection]:
    """Yield one pooled connection; the pool commits on clean exit."""
    pool = get_pool(db_url)
    with pool.connection() as conn:
        if require_migrated:
            ensure_schema_ready(conn)
        yield conn
