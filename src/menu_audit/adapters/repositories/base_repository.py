# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
BaseRepository: shared foundation for the audit repositories.

Purpose:
    Shared mechanics for all repositories:
      * Deterministic ordering helpers (timestamp + insertion tie-breakers).
      * Safe fetch helpers (one, optional, all, scalar).
      * Translation of SQLAlchemy/driver errors into the StoreFailure family.

Layer: adapters / repositories

Notes:
    * No business logic, no domain decisions.
    * Repositories never commit; services own transactions.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from menu_audit.domain.exceptions.audit import (
    ImmutabilityViolation,
    SnapshotVersionConflict,
    StoreFailure,
)
from menu_audit.infrastructure.database.models.audit import APPEND_ONLY_VIOLATION_MARKER

TModel = TypeVar("TModel")

#: Unique constraint guarding per-organization snapshot versions.
SNAPSHOT_VERSION_CONSTRAINT = "uq_menu_snapshots_org_version"


def translate_store_error(exc: SQLAlchemyError, *, operation: str) -> StoreFailure:
    """Map a SQLAlchemy error onto the store-failure taxonomy.

    Args:
        exc: Error raised by the session or driver.
        operation: Dotted name of the repository operation, for diagnostics.

    Returns:
        ``SnapshotVersionConflict`` for a snapshot version collision,
        ``ImmutabilityViolation`` when the append-only trigger fired, and
        ``StoreFailure`` otherwise.
    """
    orig = getattr(exc, "orig", None)
    store_message = str(orig if orig is not None else exc)
    details = {"operation": operation, "store_message": store_message}

    if isinstance(exc, IntegrityError) and SNAPSHOT_VERSION_CONSTRAINT in store_message:
        return SnapshotVersionConflict(
            "snapshot version already exists for organization",
            details=details,
        )
    if APPEND_ONLY_VIOLATION_MARKER in store_message:
        return ImmutabilityViolation(
            "append-only table rejected the modification",
            details=details,
        )
    return StoreFailure(f"{operation} failed: {store_message}", details=details)


class BaseRepository(Generic[TModel]):  # noqa: UP046
    """Abstract base class for all repositories."""

    #: Prefix for the ``operation`` recorded on translated errors.
    operation_prefix: str = "repository"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session bound to the target database.
        """
        self._session: AsyncSession = session

    # ------------------------------------------------------------------
    # Deterministic ordering utilities
    # ------------------------------------------------------------------

    @staticmethod
    def order_by_created(
        stmt: Select[Any],
        created_col: Any,
        tie_col: Any,
        *,
        ascending: bool = False,
    ) -> Select[Any]:
        """Apply deterministic ordering by creation time.

        The resulting query orders by ``created_at`` then the tie-break
        column, both in the requested direction, so entries sharing a
        timestamp keep their insertion order.
        """
        if ascending:
            return stmt.order_by(created_col.asc(), tie_col.asc())
        return stmt.order_by(created_col.desc(), tie_col.desc())

    # ------------------------------------------------------------------
    # Execution / fetch helpers
    # ------------------------------------------------------------------

    async def execute(self, stmt: Executable, *, operation: str) -> Any:
        """Execute ``stmt``, translating store errors.

        Raises:
            StoreFailure: Or one of its subclasses, on any SQLAlchemy error.
        """
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise translate_store_error(
                exc, operation=f"{self.operation_prefix}.{operation}"
            ) from exc

    async def fetch_one(self, stmt: Executable, *, operation: str) -> TModel:
        """Execute a statement and return exactly one row."""
        res = await self.execute(stmt, operation=operation)
        return res.scalars().one()

    async def fetch_optional(self, stmt: Executable, *, operation: str) -> TModel | None:
        """Execute a statement and return zero or one row."""
        res = await self.execute(stmt, operation=operation)
        return res.scalars().first()

    async def fetch_all(self, stmt: Executable, *, operation: str) -> list[TModel]:
        """Execute a statement and return all rows as a list."""
        res = await self.execute(stmt, operation=operation)
        return list(res.scalars().all())

    async def fetch_scalar(self, stmt: Executable, *, operation: str) -> Any:
        """Execute a statement and return the first column of the first row."""
        res = await self.execute(stmt, operation=operation)
        return res.scalar_one_or_none()
