# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Price ledger repository interface.

Purpose:
    Define the append and read operations the ledger service needs from the
    store. There is deliberately no update or delete operation.

Layer:
    domain

Notes:
    Implementations live in the adapters layer and must translate DB/driver
    errors into :class:`~menu_audit.domain.exceptions.audit.StoreFailure`.
    The store itself rejects UPDATE/DELETE on ``price_ledger`` via trigger.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Protocol

from menu_audit.domain.entities.price_ledger import (
    CurrentPrice,
    NewPriceEntry,
    PriceLedgerEntry,
)

SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True, slots=True)
class LedgerQuery:
    """Filter and page parameters for ledger history reads.

    Attributes:
        product_ids: Products whose entries are selected (IN filter).
        limit: Maximum rows in the page; ``None`` returns every match.
        offset: Rows skipped before the page.
        order: ``"asc"`` or ``"desc"`` on ``created_at`` (ties by insertion).
        start_date: Inclusive lower bound on ``created_at``.
        end_date: Inclusive upper bound on ``created_at``.
    """

    product_ids: tuple[str, ...]
    limit: int | None
    offset: int = 0
    order: SortOrder = "desc"
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class LedgerPage:
    """Page of ledger entries plus the total count before slicing."""

    items: tuple[PriceLedgerEntry, ...]
    total_count: int


class PriceLedgerRepository(Protocol):
    """Protocol for the append-only price ledger store."""

    async def append(self, entry: NewPriceEntry) -> PriceLedgerEntry:
        """Insert exactly one ledger row and return it as stored.

        Raises:
            StoreFailure: If the insert fails.
        """
        raise NotImplementedError

    async def get_current(self, product_id: str) -> CurrentPrice | None:
        """Return the newest entry for ``product_id`` from the projection."""
        raise NotImplementedError

    async def get_current_many(self, product_ids: Sequence[str]) -> list[CurrentPrice]:
        """Return current prices for ``product_ids`` in a single query.

        Products without any entry are absent from the result.
        """
        raise NotImplementedError

    async def list_entries(self, query: LedgerQuery) -> LedgerPage:
        """Return a filtered, ordered page plus the unsliced total count."""
        raise NotImplementedError
