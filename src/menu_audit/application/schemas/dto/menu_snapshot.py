# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Application DTOs for menu snapshots.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from menu_audit.application.schemas.dto.base import BaseDTO
from menu_audit.domain.entities.menu_snapshot import MenuSnapshot


class MenuSnapshotDTO(BaseDTO):
    """Persisted snapshot as returned to callers."""

    id: str
    organization_id: str
    snapshot_data: dict[str, Any]
    hash: str
    version: int = Field(ge=1)
    created_at: datetime
    published_by: str | None = None
    notes: str | None = None

    @classmethod
    def from_entity(cls, snapshot: MenuSnapshot) -> MenuSnapshotDTO:
        return cls(
            id=snapshot.id,
            organization_id=snapshot.organization_id,
            snapshot_data=dict(snapshot.snapshot_data),
            hash=snapshot.hash,
            version=snapshot.version,
            created_at=snapshot.created_at,
            published_by=snapshot.published_by,
            notes=snapshot.notes,
        )


class SnapshotHistoryPage(BaseDTO):
    """Snapshots newest version first plus the total count."""

    items: list[MenuSnapshotDTO]
    total_count: int = Field(ge=0)


class SnapshotVerification(BaseDTO):
    """Outcome of re-hashing a stored snapshot document.

    ``is_valid`` is False when the stored document no longer matches the
    digest recorded at creation time.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    snapshot_id: str
    is_valid: bool
    stored_hash: str
    computed_hash: str


class SnapshotComparison(BaseDTO):
    """Ids added/removed going from ``version_a`` to ``version_b``."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    organization_id: str
    version_a: int
    version_b: int
    added_products: list[str]
    removed_products: list[str]
    added_categories: list[str]
    removed_categories: list[str]


class VerificationBlock(BaseDTO):
    """Integrity proof embedded in a snapshot compliance export."""

    hash: str
    verified: bool
    verified_at: datetime


class SnapshotComplianceExport(BaseDTO):
    """Regulator-facing export of one snapshot with its verification result."""

    snapshot: MenuSnapshotDTO
    menu_data: dict[str, Any] = Field(alias="menuData")
    verification: VerificationBlock
