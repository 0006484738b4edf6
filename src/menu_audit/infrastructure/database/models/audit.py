# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Audit trail ORM models: price ledger, current-price view, menu snapshots.

Both tables are append-only. The store rejects UPDATE and DELETE through the
``prevent_append_only_mutation`` trigger created by the migration; these
models are only ever used for INSERT and SELECT.

Prices use NUMERIC(10,2). All times are UTC and assigned by the store.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Identity,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from .base import Base, CreatedAtMixin, IdentityMixin, table_args

#: Message fragment raised by the append-only trigger; used to classify errors.
APPEND_ONLY_VIOLATION_MARKER = "append-only"


class PriceLedgerModel(IdentityMixin, CreatedAtMixin, Base):
    """One immutable price fact.

    ``product_id`` carries no foreign key so that entries outlive the product.
    ``ledger_seq`` is a store-assigned identity used to order entries that
    share a ``created_at`` value.
    """

    __tablename__ = "price_ledger"
    __table_args__ = table_args(
        CheckConstraint("price >= 0", name="price_non_negative"),
        Index("ix_price_ledger_product_created", "product_id", "created_at"),
        Index("ix_price_ledger_created_at", "created_at"),
    )

    ledger_seq: Mapped[int] = mapped_column(
        BigInteger,
        Identity(always=True),
        nullable=False,
        unique=True,
    )
    product_id: Mapped[str] = mapped_column(PG_UUID(as_uuid=False), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        server_default=text("'TRY'"),
    )
    change_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)


class CurrentPriceView(Base):
    """Read-only mapping of the ``current_prices`` view.

    The view selects the newest ledger row per product (``DISTINCT ON``) and
    exposes its ``created_at`` as ``effective_from``. Never written.
    """

    __tablename__ = "current_prices"
    __table_args__ = table_args(info={"is_view": True})

    product_id: Mapped[str] = mapped_column(PG_UUID(as_uuid=False), primary_key=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    change_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    effective_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MenuSnapshotModel(IdentityMixin, CreatedAtMixin, Base):
    """Versioned, hashed capture of an organization's published menu."""

    __tablename__ = "menu_snapshots"
    __table_args__ = table_args(
        UniqueConstraint("organization_id", "version", name="uq_menu_snapshots_org_version"),
        CheckConstraint("version >= 1", name="version_positive"),
        Index("ix_menu_snapshots_org_version", "organization_id", "version"),
        Index("ix_menu_snapshots_hash", "hash"),
    )

    organization_id: Mapped[str] = mapped_column(PG_UUID(as_uuid=False), nullable=False)
    snapshot_data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    published_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
