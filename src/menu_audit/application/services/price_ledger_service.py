# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Price ledger service.

Purpose:
    Record price changes as immutable ledger facts and answer every price
    question (current, history, statistics, compliance export) from the
    ledger alone.

Layer:
    application

Notes:
    - There is no update or delete entry point. A correction is a new entry.
    - Validation runs before any store I/O.
    - Each public operation opens exactly one UnitOfWork. Only appends commit.
    - Current prices are read from the store projection on every call and
      never cached here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, cast

from menu_audit.application.schemas.dto.price_ledger import (
    DateRange,
    PriceComplianceRow,
    PriceHistoryOptions,
    PriceHistoryPage,
    PriceLedgerComplianceExport,
    PriceLedgerEntryDTO,
    PriceStatisticsDTO,
)
from menu_audit.application.uow import UnitOfWorkFactory
from menu_audit.config.settings import Settings, get_settings
from menu_audit.domain.entities.price_ledger import (
    CurrentPrice,
    NewPriceEntry,
    PriceLedgerEntry,
)
from menu_audit.domain.exceptions.audit import Unauthenticated
from menu_audit.domain.interfaces.identity import CurrentActor
from menu_audit.domain.interfaces.repositories.catalog_repository import CatalogReader
from menu_audit.domain.interfaces.repositories.price_ledger_repository import (
    LedgerPage,
    LedgerQuery,
    PriceLedgerRepository,
)
from menu_audit.domain.services.price_statistics import compute_price_statistics
from menu_audit.domain.services.validation import (
    normalize_currency,
    require_identifier,
    require_price,
)

logger = logging.getLogger(__name__)


class PriceLedgerService:
    """Append-only price ledger operations.

    Args:
        uow_factory: Returns a fresh UnitOfWork for each operation; it
            resolves the ledger and catalog repositories.
        current_actor: Capability that resolves the acting identity used to
            attribute appends.
        settings: Optional settings; defaults to :func:`get_settings`.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        current_actor: CurrentActor,
        settings: Settings | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._current_actor = current_actor
        self._settings = settings or get_settings()

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    async def append_price_entry(
        self,
        product_id: str,
        price: Decimal | int | float | str,
        reason: str | None = None,
        currency: str | None = None,
    ) -> PriceLedgerEntry:
        """Record a new price for a product.

        Args:
            product_id: Product the price applies to.
            price: New non-negative amount.
            reason: Optional free-text reason kept for auditors.
            currency: ISO 4217 code; defaults to the configured currency.

        Returns:
            The entry as stored, with its store-assigned id and timestamp.

        Raises:
            InvalidPrice: If ``price`` is negative or not a number.
            MissingIdentifier: If ``product_id`` is empty.
            Unauthenticated: If the acting identity cannot be resolved.
            StoreFailure: If the insert fails.
        """
        amount = require_price(price)
        pid = require_identifier(product_id, field="product_id")
        code = normalize_currency(currency, default=self._settings.default_currency)
        actor_id = await self._resolve_actor()

        new_entry = NewPriceEntry(
            product_id=pid,
            price=amount,
            currency=code,
            change_reason=reason,
            changed_by=actor_id,
        )

        async with self._uow_factory() as tx:
            entry = await _ledger_repository(tx).append(new_entry)
            await tx.commit()

        logger.info(
            "price_ledger.append.ok",
            extra={
                "entry_id": entry.id,
                "product_id": entry.product_id,
                "price": str(entry.price),
                "currency": entry.currency,
                "changed_by": entry.changed_by,
            },
        )
        return entry

    # ------------------------------------------------------------------ #
    # Current price projection
    # ------------------------------------------------------------------ #
    async def current_price(self, product_id: str) -> CurrentPrice | None:
        """Return the newest ledger entry for ``product_id``, or ``None``."""
        pid = require_identifier(product_id, field="product_id")
        async with self._uow_factory() as tx:
            return await _ledger_repository(tx).get_current(pid)

    async def current_prices_batch(self, product_ids: Iterable[str]) -> dict[str, CurrentPrice]:
        """Return current prices keyed by product id.

        Products with no ledger entry are absent from the mapping. An empty
        input returns ``{}`` without touching the store.
        """
        ids = _unique_identifiers(product_ids)
        if not ids:
            return {}

        async with self._uow_factory() as tx:
            rows = await _ledger_repository(tx).get_current_many(ids)

        return {row.product_id: row for row in rows}

    async def has_price(self, product_id: str) -> bool:
        """Return True when ``product_id`` has at least one ledger entry."""
        return await self.current_price(product_id) is not None

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #
    async def price_history(
        self,
        product_id: str,
        options: PriceHistoryOptions | None = None,
    ) -> PriceHistoryPage:
        """Return a page of one product's ledger entries.

        Date bounds are inclusive and applied before pagination;
        ``total_count`` counts every matching entry regardless of the page.
        """
        pid = require_identifier(product_id, field="product_id")
        query = self._build_query((pid,), options or PriceHistoryOptions())

        async with self._uow_factory() as tx:
            page = await _ledger_repository(tx).list_entries(query)

        return _to_history_page(page)

    async def organization_price_history(
        self,
        organization_id: str,
        options: PriceHistoryOptions | None = None,
    ) -> PriceHistoryPage:
        """Return a page of ledger entries across an organization's products.

        An organization without products yields an empty page.
        """
        org_id = require_identifier(organization_id, field="organization_id")
        opts = options or PriceHistoryOptions()

        async with self._uow_factory() as tx:
            product_ids = await _catalog_reader(tx).list_product_ids(org_id)
            if not product_ids:
                return PriceHistoryPage(items=[], total_count=0)
            page = await _ledger_repository(tx).list_entries(
                self._build_query(tuple(product_ids), opts),
            )

        return _to_history_page(page)

    async def price_statistics(self, product_id: str) -> PriceStatisticsDTO | None:
        """Summarize a product's full price history, or ``None`` if it has none."""
        pid = require_identifier(product_id, field="product_id")
        query = LedgerQuery(product_ids=(pid,), limit=None, order="asc")

        async with self._uow_factory() as tx:
            page = await _ledger_repository(tx).list_entries(query)

        stats = compute_price_statistics(page.items)
        if stats is None:
            return None
        return PriceStatisticsDTO.from_statistics(pid, stats)

    # ------------------------------------------------------------------ #
    # Compliance
    # ------------------------------------------------------------------ #
    async def export_for_compliance(
        self,
        organization_id: str,
        start_date: datetime,
        end_date: datetime,
    ) -> PriceLedgerComplianceExport:
        """Export an organization's ledger for an inclusive date range.

        Rows are oldest first and capped at the configured export limit.
        Zero rows is a valid export.
        """
        options = PriceHistoryOptions(
            limit=self._settings.compliance_export_row_limit,
            order="asc",
            start_date=start_date,
            end_date=end_date,
        )
        history = await self.organization_price_history(organization_id, options)

        rows = [
            PriceComplianceRow(
                product_id=item.product_id,
                price=item.price,
                currency=item.currency,
                change_reason=item.change_reason,
                changed_by=item.changed_by,
                created_at=item.created_at,
            )
            for item in history.items
        ]
        export = PriceLedgerComplianceExport(
            organization_id=organization_id.strip(),
            data=rows,
            total_count=history.total_count,
            exported_at=datetime.now(UTC),
            date_range=DateRange(start=start_date, end=end_date),
        )

        logger.info(
            "price_ledger.export.ok",
            extra={
                "organization_id": export.organization_id,
                "rows": len(rows),
                "total_count": history.total_count,
                "start": start_date.isoformat(),
                "end": end_date.isoformat(),
            },
        )
        return export

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    async def _resolve_actor(self) -> str | None:
        try:
            identity = await self._current_actor()
        except Exception as exc:
            logger.warning("price_ledger.actor.unresolved", extra={"error": type(exc).__name__})
            raise Unauthenticated("acting identity could not be resolved") from exc
        if not identity.ok:
            logger.warning("price_ledger.actor.unresolved", extra={"error": "not_ok"})
            raise Unauthenticated("acting identity could not be resolved")
        return identity.actor_id

    def _build_query(self, product_ids: tuple[str, ...], opts: PriceHistoryOptions) -> LedgerQuery:
        return LedgerQuery(
            product_ids=product_ids,
            limit=opts.limit or self._settings.price_history_default_limit,
            offset=opts.offset,
            order=opts.order,
            start_date=opts.start_date,
            end_date=opts.end_date,
        )


def _unique_identifiers(values: Iterable[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for value in values:
        pid = require_identifier(value, field="product_id")
        if pid not in seen:
            seen.add(pid)
            out.append(pid)
    return out


def _to_history_page(page: LedgerPage) -> PriceHistoryPage:
    return PriceHistoryPage(
        items=[PriceLedgerEntryDTO.from_entity(e) for e in page.items],
        total_count=page.total_count,
    )


def _ledger_repository(tx: Any) -> PriceLedgerRepository:
    """Resolve the ledger repository via the UnitOfWork."""
    return cast(PriceLedgerRepository, tx.get_repository(PriceLedgerRepository))


def _catalog_reader(tx: Any) -> CatalogReader:
    """Resolve the catalog reader via the UnitOfWork."""
    return cast(CatalogReader, tx.get_repository(CatalogReader))
