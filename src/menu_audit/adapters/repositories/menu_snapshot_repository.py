# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Menu Snapshot Repository (SQLAlchemy).

Purpose:
    Concrete SQLAlchemy implementation of the append-only snapshot contract.

Layer:
    adapters

Notes:
    - The stored JSONB document is returned untouched so verification hashes
      exactly what the store holds.
    - A duplicate ``(organization_id, version)`` insert surfaces as
      ``SnapshotVersionConflict`` through the base error translation.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from menu_audit.adapters.repositories.base_repository import BaseRepository
from menu_audit.domain.entities.menu_snapshot import MenuSnapshot, NewMenuSnapshot
from menu_audit.domain.interfaces.repositories.menu_snapshot_repository import SnapshotPage
from menu_audit.infrastructure.database.models.audit import MenuSnapshotModel


def _to_snapshot(row: MenuSnapshotModel) -> MenuSnapshot:
    data: dict[str, Any] = dict(row.snapshot_data or {})
    return MenuSnapshot(
        id=str(row.id),
        organization_id=str(row.organization_id),
        snapshot_data=data,
        hash=row.hash,
        version=int(row.version),
        created_at=row.created_at,
        published_by=row.published_by,
        notes=row.notes,
    )


class MenuSnapshotRepository(BaseRepository[MenuSnapshotModel]):
    """SQLAlchemy-backed implementation of the menu snapshot contract."""

    operation_prefix = "menu_snapshots"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session bound to the primary database.
        """
        super().__init__(session=session)

    async def append(self, snapshot: NewMenuSnapshot) -> MenuSnapshot:
        """Insert one snapshot row and return it with store-assigned fields."""
        stmt = (
            insert(MenuSnapshotModel)
            .values(
                organization_id=snapshot.organization_id,
                snapshot_data=dict(snapshot.snapshot_data),
                hash=snapshot.hash,
                version=snapshot.version,
                published_by=snapshot.published_by,
                notes=snapshot.notes,
            )
            .returning(MenuSnapshotModel)
        )
        row = await self.fetch_one(stmt, operation="append")
        return _to_snapshot(row)

    async def get_max_version(self, organization_id: str) -> int | None:
        """Return ``MAX(version)`` for the organization, or ``None``."""
        stmt = select(func.max(MenuSnapshotModel.version)).where(
            MenuSnapshotModel.organization_id == organization_id
        )
        value = await self.fetch_scalar(stmt, operation="get_max_version")
        return int(value) if value is not None else None

    async def get_latest(self, organization_id: str) -> MenuSnapshot | None:
        """Return the highest-version snapshot for the organization."""
        stmt = (
            select(MenuSnapshotModel)
            .where(MenuSnapshotModel.organization_id == organization_id)
            .order_by(MenuSnapshotModel.version.desc())
            .limit(1)
        )
        row = await self.fetch_optional(stmt, operation="get_latest")
        return _to_snapshot(row) if row is not None else None

    async def get_by_id(self, snapshot_id: str) -> MenuSnapshot | None:
        """Return a snapshot by id."""
        stmt = select(MenuSnapshotModel).where(MenuSnapshotModel.id == snapshot_id).limit(1)
        row = await self.fetch_optional(stmt, operation="get_by_id")
        return _to_snapshot(row) if row is not None else None

    async def get_by_version(self, organization_id: str, version: int) -> MenuSnapshot | None:
        """Return a snapshot by ``(organization_id, version)``."""
        stmt = (
            select(MenuSnapshotModel)
            .where(
                MenuSnapshotModel.organization_id == organization_id,
                MenuSnapshotModel.version == version,
            )
            .limit(1)
        )
        row = await self.fetch_optional(stmt, operation="get_by_version")
        return _to_snapshot(row) if row is not None else None

    async def list_for_organization(
        self,
        organization_id: str,
        *,
        limit: int,
        offset: int = 0,
    ) -> SnapshotPage:
        """Return snapshots newest version first with the total count."""
        condition = MenuSnapshotModel.organization_id == organization_id
        total = await self.fetch_scalar(
            select(func.count()).select_from(MenuSnapshotModel).where(condition),
            operation="count_for_organization",
        )
        stmt = (
            select(MenuSnapshotModel)
            .where(condition)
            .order_by(MenuSnapshotModel.version.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = await self.fetch_all(stmt, operation="list_for_organization")
        return SnapshotPage(
            items=tuple(_to_snapshot(r) for r in rows),
            total_count=int(total or 0),
        )
