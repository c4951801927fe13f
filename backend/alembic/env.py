"""Migration runner for the siteaccess schema and its row-level security."""

from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from sqlmodel import SQLModel

from siteaccess.core.config import settings
from siteaccess.db import base  # noqa: F401  # registers every table on SQLModel.metadata

VERSIONS_DIR = Path(__file__).parent / "versions"
REVISION_FILE = re.compile(r"^(?P<day>\d{8})_(?P<seq>\d{4})_")

config = context.config
target_metadata = SQLModel.metadata

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name)


def _owner_url() -> str:
    # Policies, grants and SECURITY DEFINER helpers must be created by the
    # table owner, never by the restricted login in DATABASE_URL_APP.
    return config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL


def _next_revision_id(context, revision, directives) -> None:
    """Number new revisions YYYYMMDD_NNNN, counting on from the newest file."""
    if not directives:
        return
    sequences = [
        int(match.group("seq"))
        for match in (REVISION_FILE.match(path.name) for path in VERSIONS_DIR.glob("*.py"))
        if match
    ]
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    directives[0].rev_id = f"{today}_{max(sequences, default=0) + 1:04d}"


def _configure(**options) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        process_revision_directives=_next_revision_id,
        **options,
    )


def run_migrations_offline() -> None:
    _configure(url=_owner_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _run_on_connection(connection: Connection) -> None:
    # One transaction per revision, so enum values added by one revision are
    # committed before a later one references them.
    _configure(connection=connection, transaction_per_migration=True)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    section = dict(config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = _owner_url()
    connectable = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with connectable.connect() as connection:
            await connection.run_sync(_run_on_connection)
    finally:
        await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
