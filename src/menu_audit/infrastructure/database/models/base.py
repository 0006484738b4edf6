"""Declarative Base and persistence mixins for the audit tables.

This module defines:
    - A project-wide SQLAlchemy Declarative Base with deterministic naming
      conventions (for stable Alembic diffs) and the configured schema.
    - Persistence mixins for identity (UUID rendered as text) and the
      immutable, store-assigned ``created_at`` timestamp.

Design Goals:
    * UTC everywhere; timestamps are assigned by the store, never the client.
    * Deterministic schema: Alembic-friendly naming conventions prevent churn.
    * Append-only tables carry no ``updated_at``/``deleted_at`` columns.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any

from sqlalchemy import MetaData, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from menu_audit.config.settings import get_settings

__all__ = [
    "metadata",
    "Base",
    "IdentityMixin",
    "CreatedAtMixin",
    "DEFAULT_DB_SCHEMA",
    "table_args",
]

# ======================================================================================
# Configuration
# ======================================================================================

#: Default database schema for all tables (configurable via Settings / env).
try:
    DEFAULT_DB_SCHEMA: str | None = get_settings().db_schema or None
except RuntimeError:  # pragma: no cover - invalid env in edge tooling cases
    DEFAULT_DB_SCHEMA = os.getenv("DB_SCHEMA", "public") or None

#: Deterministic naming conventions for Alembic-friendly diffs.
#: Ref: https://alembic.sqlalchemy.org/en/latest/naming.html
NAMING_CONVENTIONS: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTIONS)


class Base(DeclarativeBase):
    """Declarative Base for all ORM models."""

    metadata = metadata


def table_args(*items: Any, **options: Any) -> tuple[Any, ...]:
    """Return ``__table_args__`` with the default schema appended.

    Args:
        *items: Constraints and indexes declared by the model.
        **options: Extra ``Table`` keyword arguments (e.g. ``info``).
    """
    if DEFAULT_DB_SCHEMA:
        options.setdefault("schema", DEFAULT_DB_SCHEMA)
    if options:
        return (*items, options)
    return items


class IdentityMixin:
    """Mixin providing a store-generated UUID primary key exposed as ``str``."""

    id: Mapped[str] = mapped_column(
        PG_UUID(as_uuid=False),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
        nullable=False,
    )


class CreatedAtMixin:
    """Mixin providing an immutable, store-assigned ``created_at`` timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
