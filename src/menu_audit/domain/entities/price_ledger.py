# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Price Ledger Entities

Purpose:
    Immutable domain representations of a price-change fact and of the
    derived "current price" projection over the append-only ledger (no I/O).

Layer: domain/entities
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from .base import BaseEntity, ensure_utc


@dataclass(frozen=True, slots=True)
class PriceLedgerEntry(BaseEntity):
    """A single append-only price fact.

    Args:
        id: Store-assigned identifier of the entry.
        product_id: Product the price applies to. The entry is retained even
            after the product is deleted.
        price: Non-negative amount.
        currency: ISO 4217 code (e.g., 'TRY').
        change_reason: Free-text reason recorded for auditors.
        changed_by: Actor that recorded the change, when known.
        created_at: Store-assigned UTC timestamp; the ordering key.

    Raises:
        ValueError: If invariants are violated (e.g., negative price).
    """

    id: str
    product_id: str
    price: Decimal
    currency: str
    change_reason: str | None
    changed_by: str | None
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValueError("product_id must be non-empty")
        if self.price < 0:
            raise ValueError("price must be >= 0")
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))


@dataclass(frozen=True, slots=True)
class CurrentPrice(BaseEntity):
    """Newest ledger entry for a product, as exposed by ``current_prices``.

    Args:
        product_id: Product identifier.
        price: Amount of the newest entry.
        currency: Currency of the newest entry.
        change_reason: Reason recorded on the newest entry.
        changed_by: Actor recorded on the newest entry.
        effective_from: ``created_at`` of the newest entry.
    """

    product_id: str
    price: Decimal
    currency: str
    change_reason: str | None
    changed_by: str | None
    effective_from: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "effective_from", ensure_utc(self.effective_from))


@dataclass(frozen=True, slots=True)
class NewPriceEntry:
    """Write-side shape handed to the ledger repository.

    The store assigns ``id``, ``created_at`` and the insertion sequence.
    """

    product_id: str
    price: Decimal
    currency: str
    change_reason: str | None
    changed_by: str | None
