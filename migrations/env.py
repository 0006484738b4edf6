# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Alembic environment for the audit trail.

Design:
    - ``.env.<ENVIRONMENT>`` is layered under already-exported variables, then
      :class:`Settings` supplies the database URL and schema.
    - ENVIRONMENT must be exported and the target database must be on that
      environment's allowlist.
    - Only the tables this project owns are autogenerated: catalog tables
      (``info={"external": True}``) and the ``current_prices`` view
      (``info={"is_view": True}``) are skipped.

Usage:
    ENVIRONMENT=development alembic upgrade head
"""

from __future__ import annotations

import asyncio
import logging
import logging.config
import os
from pathlib import Path
from typing import Any

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import create_async_engine

from menu_audit.config.settings import Settings
from menu_audit.infrastructure.database.models import audit as _audit_models  # noqa: F401
from menu_audit.infrastructure.database.models import catalog as _catalog_models  # noqa: F401
from menu_audit.infrastructure.database.models.base import metadata as target_metadata

config = context.config

if config.config_file_name is not None:
    logging.config.fileConfig(config.config_file_name, disable_existing_loggers=False)

logger = logging.getLogger("alembic.env")

# Database names migrations may touch, per environment.
_ALLOWED_DATABASES: dict[str, frozenset[str]] = {
    "test": frozenset({"menu_audit_test"}),
    "ci": frozenset({"menu_audit_test"}),
    "development": frozenset({"menu_audit"}),
}


def _load_settings() -> Settings:
    """Return settings for an explicitly named environment.

    Raises:
        RuntimeError: If ENVIRONMENT is not exported.
    """
    env = (os.getenv("ENVIRONMENT") or "").strip().lower()
    if not env:
        raise RuntimeError("ENVIRONMENT is required for migrations (e.g. ENVIRONMENT=test).")

    env_file = Path(__file__).resolve().parents[1] / f".env.{env}"
    if env_file.exists():
        load_dotenv(env_file, override=False)
    return Settings()


def _assert_allowed_database(settings: Settings) -> None:
    """Refuse to migrate a database outside the environment's allowlist."""
    env = settings.environment.value
    allowed = _ALLOWED_DATABASES.get(env)
    if allowed is None:
        raise RuntimeError(
            f"Migrations are not enabled for ENVIRONMENT={env!r}. "
            f"Supported: {sorted(_ALLOWED_DATABASES)}"
        )

    url = make_url(settings.database_url)
    if url.database not in allowed:
        raise RuntimeError(
            f"Refusing to migrate database {url.database!r} for ENVIRONMENT={env!r}; "
            f"allowed: {sorted(allowed)} ({url.render_as_string(hide_password=True)})"
        )


def _include_object(obj: Any, name: str | None, type_: str, reflected: bool, compare_to: Any) -> bool:
    """Skip catalog tables and views during autogenerate."""
    if type_ == "table":
        info = getattr(obj, "info", {}) or {}
        if info.get("external") or info.get("is_view"):
            return False
    return True


def _context_options(settings: Settings) -> dict[str, Any]:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "include_schemas": True,
        "include_object": _include_object,
        "version_table_schema": settings.db_schema,
    }


def run_migrations_offline(settings: Settings) -> None:
    """Emit the migration SQL without connecting."""
    context.configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_context_options(settings),
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_with_connection(connection: Connection, settings: Settings) -> None:
    context.configure(connection=connection, **_context_options(settings))
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online(settings: Settings) -> None:
    """Apply migrations over a short-lived async engine."""
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_with_connection, settings)
    finally:
        await engine.dispose()


_settings = _load_settings()
_assert_allowed_database(_settings)
logger.info(
    "Migrating %s (%s)",
    make_url(_settings.database_url).database,
    _settings.environment.value,
)

if context.is_offline_mode():
    run_migrations_offline(_settings)
else:
    asyncio.run(run_migrations_online(_settings))
