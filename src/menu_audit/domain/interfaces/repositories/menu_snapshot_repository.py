# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Menu snapshot repository interface.

Purpose:
    Define append and read operations over the ``menu_snapshots`` table.

Layer:
    domain

Notes:
    Implementations must surface a violation of the
    ``(organization_id, version)`` uniqueness constraint as
    :class:`~menu_audit.domain.exceptions.audit.SnapshotVersionConflict`
    and any other store error as ``StoreFailure``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from menu_audit.domain.entities.menu_snapshot import MenuSnapshot, NewMenuSnapshot


@dataclass(frozen=True, slots=True)
class SnapshotPage:
    """Page of snapshots (newest version first) plus the total count."""

    items: tuple[MenuSnapshot, ...]
    total_count: int


class MenuSnapshotRepository(Protocol):
    """Protocol for the append-only menu snapshot store."""

    async def append(self, snapshot: NewMenuSnapshot) -> MenuSnapshot:
        """Insert one snapshot row and return it as stored.

        Raises:
            SnapshotVersionConflict: If the version is already taken.
            StoreFailure: On any other store error.
        """
        raise NotImplementedError

    async def get_max_version(self, organization_id: str) -> int | None:
        """Return the highest version for the organization, if any."""
        raise NotImplementedError

    async def get_latest(self, organization_id: str) -> MenuSnapshot | None:
        """Return the highest-version snapshot for the organization."""
        raise NotImplementedError

    async def get_by_id(self, snapshot_id: str) -> MenuSnapshot | None:
        """Return a snapshot by id."""
        raise NotImplementedError

    async def get_by_version(self, organization_id: str, version: int) -> MenuSnapshot | None:
        """Return a snapshot by ``(organization_id, version)``."""
        raise NotImplementedError

    async def list_for_organization(
        self,
        organization_id: str,
        *,
        limit: int,
        offset: int = 0,
    ) -> SnapshotPage:
        """Return snapshots newest version first with the total count."""
        raise NotImplementedError
