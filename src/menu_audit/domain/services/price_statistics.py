# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Price statistics over a product's ledger history.

Purpose:
    Derive simple analytics (count, range, mean, first/current, absolute and
    relative change) from the full ascending history of one product.

Layer:
    domain/services

Notes:
    - Pure computation over already-loaded entries; no I/O.
    - Arithmetic stays in ``Decimal``. The percentage is rounded half-up to
      two places and is ``0`` when the first price is zero.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from menu_audit.domain.entities.price_ledger import PriceLedgerEntry

_HUNDRED = Decimal(100)
_CENT = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class PriceStatistics:
    """Summary of a product's price history.

    Attributes:
        change_count: Number of ledger entries.
        min_price: Lowest recorded price.
        max_price: Highest recorded price.
        average_price: Arithmetic mean, rounded to cents.
        first_price: Price of the oldest entry.
        current_price: Price of the newest entry.
        price_change: ``current_price - first_price``.
        price_change_percent: Change relative to the first price, in percent.
    """

    change_count: int
    min_price: Decimal
    max_price: Decimal
    average_price: Decimal
    first_price: Decimal
    current_price: Decimal
    price_change: Decimal
    price_change_percent: Decimal


def compute_price_statistics(entries: Sequence[PriceLedgerEntry]) -> PriceStatistics | None:
    """Compute statistics from entries ordered oldest first.

    Args:
        entries: Ledger entries in ascending ``created_at`` order.

    Returns:
        The statistics, or ``None`` when there is no history.
    """
    if not entries:
        return None

    prices = [e.price for e in entries]
    first = prices[0]
    current = prices[-1]
    change = current - first

    if first > 0:
        percent = (change / first * _HUNDRED).quantize(_CENT, rounding=ROUND_HALF_UP)
    else:
        percent = Decimal(0)

    average = (sum(prices, Decimal(0)) / len(prices)).quantize(_CENT, rounding=ROUND_HALF_UP)

    return PriceStatistics(
        change_count=len(prices),
        min_price=min(prices),
        max_price=max(prices),
        average_price=average,
        first_price=first,
        current_price=current,
        price_change=change,
        price_change_percent=percent,
    )
