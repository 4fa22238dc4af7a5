"""Alembic environment for the updown_ledger schema."""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool, text

import updown_core.db.tables  # noqa: F401  (registers SignalRow / TradeRow)
from updown_core.db.base import Base
from updown_core.db.engine import normalise_url
from updown_core.db.tables.signals import SCHEMA

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _database_url() -> str:
    url = os.environ.get("UPDOWN_DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("set UPDOWN_DATABASE_URL or sqlalchemy.url in alembic.ini")
    return normalise_url(url)


def _include_name(name, type_, parent_names) -> bool:
    # autogenerate only ever looks at the ledger schema
    if type_ == "schema":
        return name == SCHEMA
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        include_schemas=True,
        include_name=_include_name,
        version_table_schema=SCHEMA,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        # the version table lives inside the schema, so it must exist first
        connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}"))
        connection.commit()
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
