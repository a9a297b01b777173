"""Alembic environment for the paperlens reader schema."""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool


config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Migrations are raw SQL; there is no ORM metadata to autogenerate from.
target_metadata = None

_DIALECT_PREFIXES = ("postgres://", "postgresql://")


def sqlalchemy_url(db_url: str) -> str:
    """Point a libpq-style DSN at the psycopg 3 SQLAlchemy dialect."""
    for prefix in _DIALECT_PREFIXES:
        if db_url.startswith(prefix):
            return "postgresql+psycopg://" + db_url[len(prefix) :]
    return db_url


def _resolve_db_url() -> str:
    x_args = context.get_x_argument(as_dictionary=True)
    db_url = x_args.get("db_url") or os.environ.get("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not db_url:
        raise RuntimeError("No database URL configured. Pass -x db_url=... or set DATABASE_URL.")
    return sqlalchemy_url(db_url)


def run_migrations_offline() -> None:
    context.configure(
        url=_resolve_db_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_resolve_db_url(), poolclass=pool.NullPool, future=True)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
