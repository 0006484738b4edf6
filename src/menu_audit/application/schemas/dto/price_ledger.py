# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Application DTOs for the price ledger.

Synopsis:
    Strict (Pydantic v2) DTOs returned by :class:`PriceLedgerService`.
    Compliance export DTOs serialize with the literal field names the audit
    consumer expects (``exportedAt``, ``dateRange``; snake_case rows) when
    dumped with ``by_alias=True``.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from menu_audit.application.schemas.dto.base import BaseDTO
from menu_audit.domain.entities.price_ledger import PriceLedgerEntry
from menu_audit.domain.services.price_statistics import PriceStatistics


class PriceHistoryOptions(BaseDTO):
    """Query options for history reads.

    Attributes:
        limit: Page size; ``None`` uses the configured default.
        offset: Rows skipped before the page.
        order: Sort direction on ``created_at``.
        start_date: Inclusive lower bound, applied before pagination.
        end_date: Inclusive upper bound, applied before pagination.
    """

    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)
    order: Literal["asc", "desc"] = "desc"
    start_date: datetime | None = None
    end_date: datetime | None = None


class PriceLedgerEntryDTO(BaseDTO):
    """One ledger fact."""

    id: str
    product_id: str
    price: Decimal
    currency: str
    change_reason: str | None = None
    changed_by: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: PriceLedgerEntry) -> PriceLedgerEntryDTO:
        return cls(
            id=entry.id,
            product_id=entry.product_id,
            price=entry.price,
            currency=entry.currency,
            change_reason=entry.change_reason,
            changed_by=entry.changed_by,
            created_at=entry.created_at,
        )


class PriceHistoryPage(BaseDTO):
    """Ordered page of entries and the total count independent of the slice."""

    items: list[PriceLedgerEntryDTO]
    total_count: int = Field(ge=0)


class PriceStatisticsDTO(BaseDTO):
    """Derived analytics; aliases are the camelCase names used by dashboards."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    product_id: str
    change_count: int
    min_price: Decimal
    max_price: Decimal
    average_price: Decimal
    first_price: Decimal
    current_price: Decimal
    price_change: Decimal
    price_change_percent: Decimal

    @classmethod
    def from_statistics(cls, product_id: str, stats: PriceStatistics) -> PriceStatisticsDTO:
        return cls(
            product_id=product_id,
            change_count=stats.change_count,
            min_price=stats.min_price,
            max_price=stats.max_price,
            average_price=stats.average_price,
            first_price=stats.first_price,
            current_price=stats.current_price,
            price_change=stats.price_change,
            price_change_percent=stats.price_change_percent,
        )


class PriceComplianceRow(BaseDTO):
    """Regulator-facing flattened ledger row."""

    product_id: str
    price: Decimal
    currency: str
    change_reason: str | None
    changed_by: str | None
    created_at: datetime


class DateRange(BaseDTO):
    """Requested export window (inclusive)."""

    start: datetime
    end: datetime


class PriceLedgerComplianceExport(BaseDTO):
    """Compliance export of an organization's ledger for a date range."""

    organization_id: str = Field(alias="organizationId")
    data: list[PriceComplianceRow]
    total_count: int = Field(alias="totalCount", ge=0)
    exported_at: datetime = Field(alias="exportedAt")
    date_range: DateRange = Field(alias="dateRange")
