# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Price Ledger Repository (SQLAlchemy).

Purpose:
    Concrete SQLAlchemy implementation of the append-only ledger contract
    defined in the domain layer.

Layer:
    adapters

Notes:
    - Only INSERT and SELECT statements are issued; the table has no update
      or delete path here and the store trigger rejects both.
    - Current prices are read from the ``current_prices`` view, one
      statement per call (an IN filter for batches).
    - History pages order by ``created_at`` with ``ledger_seq`` as the
      tie-breaker, so equal timestamps keep insertion order.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from menu_audit.adapters.repositories.base_repository import BaseRepository
from menu_audit.domain.entities.price_ledger import (
    CurrentPrice,
    NewPriceEntry,
    PriceLedgerEntry,
)
from menu_audit.domain.interfaces.repositories.price_ledger_repository import (
    LedgerPage,
    LedgerQuery,
)
from menu_audit.infrastructure.database.models.audit import (
    CurrentPriceView,
    PriceLedgerModel,
)


def _to_entry(row: PriceLedgerModel) -> PriceLedgerEntry:
    return PriceLedgerEntry(
        id=str(row.id),
        product_id=str(row.product_id),
        price=Decimal(row.price),
        currency=row.currency,
        change_reason=row.change_reason,
        changed_by=row.changed_by,
        created_at=row.created_at,
    )


def _to_current(row: CurrentPriceView) -> CurrentPrice:
    return CurrentPrice(
        product_id=str(row.product_id),
        price=Decimal(row.price),
        currency=row.currency,
        change_reason=row.change_reason,
        changed_by=row.changed_by,
        effective_from=row.effective_from,
    )


class PriceLedgerRepository(BaseRepository[PriceLedgerModel]):
    """SQLAlchemy-backed implementation of the price ledger contract."""

    operation_prefix = "price_ledger"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session bound to the primary database.
        """
        super().__init__(session=session)

    async def append(self, entry: NewPriceEntry) -> PriceLedgerEntry:
        """Insert one ledger row and return it with store-assigned fields."""
        stmt = (
            insert(PriceLedgerModel)
            .values(
                product_id=entry.product_id,
                price=entry.price,
                currency=entry.currency,
                change_reason=entry.change_reason,
                changed_by=entry.changed_by,
            )
            .returning(PriceLedgerModel)
        )
        row = await self.fetch_one(stmt, operation="append")
        return _to_entry(row)

    async def get_current(self, product_id: str) -> CurrentPrice | None:
        """Return the projection row for ``product_id``, if any."""
        stmt = select(CurrentPriceView).where(CurrentPriceView.product_id == product_id).limit(1)
        row = await self.fetch_optional(stmt, operation="get_current")
        return _to_current(row) if row is not None else None

    async def get_current_many(self, product_ids: Sequence[str]) -> list[CurrentPrice]:
        """Return projection rows for ``product_ids`` with a single IN query."""
        if not product_ids:
            return []
        stmt = select(CurrentPriceView).where(CurrentPriceView.product_id.in_(list(product_ids)))
        rows = await self.fetch_all(stmt, operation="get_current_many")
        return [_to_current(r) for r in rows]

    async def list_entries(self, query: LedgerQuery) -> LedgerPage:
        """Return a filtered, ordered page and the unsliced match count.

        Date bounds are inclusive and applied before ``limit``/``offset``.
        """
        if not query.product_ids:
            return LedgerPage(items=(), total_count=0)

        conditions = [PriceLedgerModel.product_id.in_(list(query.product_ids))]
        if query.start_date is not None:
            conditions.append(PriceLedgerModel.created_at >= query.start_date)
        if query.end_date is not None:
            conditions.append(PriceLedgerModel.created_at <= query.end_date)

        count_stmt = select(func.count()).select_from(PriceLedgerModel).where(*conditions)
        total = await self.fetch_scalar(count_stmt, operation="count_entries")

        stmt = self.order_by_created(
            select(PriceLedgerModel).where(*conditions),
            PriceLedgerModel.created_at,
            PriceLedgerModel.ledger_seq,
            ascending=query.order == "asc",
        )
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        if query.offset:
            stmt = stmt.offset(query.offset)

        rows = await self.fetch_all(stmt, operation="list_entries")
        return LedgerPage(items=tuple(_to_entry(r) for r in rows), total_count=int(total or 0))
