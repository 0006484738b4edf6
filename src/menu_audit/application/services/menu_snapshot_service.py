# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Menu snapshot service.

Purpose:
    Capture an organization's full published menu as an immutable, versioned
    and hashed document, and answer retrieval, integrity verification,
    version comparison and compliance export requests over those captures.

Layer:
    application

Notes:
    - Content collection fails closed: a missing organization or a failed
      catalog/ledger read produces no snapshot.
    - Version assignment is read-max-then-insert. The store's unique
      ``(organization_id, version)`` constraint rejects a concurrent
      duplicate, which surfaces as ``SnapshotVersionConflict``. Retrying is
      the caller's decision.
    - A hash mismatch is reported as data, never raised.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, cast

from menu_audit.application.schemas.dto.menu_snapshot import (
    MenuSnapshotDTO,
    SnapshotComparison,
    SnapshotComplianceExport,
    SnapshotHistoryPage,
    SnapshotVerification,
    VerificationBlock,
)
from menu_audit.application.services.price_ledger_service import PriceLedgerService
from menu_audit.application.uow import UnitOfWorkFactory
from menu_audit.config.settings import Settings, get_settings
from menu_audit.domain.entities.menu_snapshot import (
    MenuSnapshot,
    MenuSnapshotData,
    NewMenuSnapshot,
    SnapshotProduct,
)
from menu_audit.domain.exceptions.audit import NotFound, Unauthenticated
from menu_audit.domain.interfaces.identity import CurrentActor
from menu_audit.domain.interfaces.repositories.catalog_repository import CatalogReader
from menu_audit.domain.interfaces.repositories.menu_snapshot_repository import (
    MenuSnapshotRepository,
)
from menu_audit.domain.services.canonical_hash import compute_snapshot_hash, hashes_match
from menu_audit.domain.services.snapshot_diff import diff_snapshots
from menu_audit.domain.services.validation import require_identifier, require_version

logger = logging.getLogger(__name__)


class MenuSnapshotService:
    """Versioned, hashed menu captures.

    Args:
        uow_factory: Returns a fresh UnitOfWork for each operation; it
            resolves the snapshot and catalog repositories.
        ledger: Ledger service supplying current prices for collection.
        current_actor: Optional capability used to record ``published_by``.
            Without it, snapshots are published with no attributed actor.
        settings: Optional settings; defaults to :func:`get_settings`.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: PriceLedgerService,
        current_actor: CurrentActor | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._ledger = ledger
        self._current_actor = current_actor
        self._settings = settings or get_settings()

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #
    async def create_snapshot(
        self,
        organization_id: str,
        notes: str | None = None,
    ) -> MenuSnapshot:
        """Capture the organization's current menu as the next version.

        Args:
            organization_id: Organization whose menu is captured.
            notes: Optional release notes stored with the snapshot.

        Returns:
            The stored snapshot.

        Raises:
            MissingIdentifier: If ``organization_id`` is empty.
            NotFound: If the organization does not exist.
            Unauthenticated: If an actor resolver is configured and raises.
            SnapshotVersionConflict: If another publish claimed the version.
            StoreFailure: If any read or the insert fails.
        """
        org_id = require_identifier(organization_id, field="organization_id")
        published_by = await self._resolve_publisher()

        data = await self.collect_content(org_id)
        document = data.to_document()
        digest = compute_snapshot_hash(document)

        async with self._uow_factory() as tx:
            repo = _snapshot_repository(tx)
            current_max = await repo.get_max_version(org_id)
            version = (current_max or 0) + 1
            snapshot = await repo.append(
                NewMenuSnapshot(
                    organization_id=org_id,
                    snapshot_data=document,
                    hash=digest,
                    version=version,
                    published_by=published_by,
                    notes=notes,
                ),
            )
            await tx.commit()

        logger.info(
            "menu_snapshot.create.ok",
            extra={
                "snapshot_id": snapshot.id,
                "organization_id": org_id,
                "version": snapshot.version,
                "hash": snapshot.hash,
                "category_count": data.metadata.category_count,
                "product_count": data.metadata.product_count,
            },
        )
        return snapshot

    async def collect_content(self, organization_id: str) -> MenuSnapshotData:
        """Assemble the point-in-time menu document for an organization.

        Reads the organization, its visible categories by sort order and its
        visible products, then resolves every product's current price with a
        single batch lookup.

        Raises:
            NotFound: If the organization does not exist.
            StoreFailure: If any read fails.
        """
        org_id = require_identifier(organization_id, field="organization_id")

        async with self._uow_factory() as tx:
            catalog = _catalog_reader(tx)
            organization = await catalog.get_organization(org_id)
            if organization is None:
                raise NotFound(
                    "organization not found",
                    details={"organization_id": org_id},
                )
            categories = await catalog.list_visible_categories(org_id)
            products = await catalog.list_visible_products(org_id)

        prices = await self._ledger.current_prices_batch([p.id for p in products])
        default_currency = self._settings.default_currency

        snapshot_products = []
        for product in products:
            current = prices.get(product.id)
            snapshot_products.append(
                SnapshotProduct(
                    id=product.id,
                    name=product.name,
                    description=product.description,
                    category_id=product.category_id,
                    image_url=product.image_url,
                    allergens=product.allergens,
                    nutrition=product.nutrition,
                    price=current.price if current is not None else None,
                    currency=current.currency if current is not None else default_currency,
                ),
            )

        return MenuSnapshotData.assemble(
            organization=organization,
            categories=sorted(categories, key=lambda c: c.sort_order),
            products=snapshot_products,
            generated_at=datetime.now(UTC),
        )

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    async def current_snapshot(self, organization_id: str) -> MenuSnapshot | None:
        """Return the highest version for the organization, or ``None``."""
        org_id = require_identifier(organization_id, field="organization_id")
        async with self._uow_factory() as tx:
            return await _snapshot_repository(tx).get_latest(org_id)

    async def current_snapshot_by_slug(self, slug: str) -> MenuSnapshot | None:
        """Resolve an active organization by slug and return its current snapshot.

        Raises:
            NotFound: If no active organization has this slug.
        """
        value = require_identifier(slug, field="slug")
        async with self._uow_factory() as tx:
            organization = await _catalog_reader(tx).get_active_organization_by_slug(value)
        if organization is None:
            raise NotFound("active organization not found", details={"slug": value})
        return await self.current_snapshot(organization.id)

    async def snapshot_by_id(self, snapshot_id: str) -> MenuSnapshot:
        """Return a snapshot by id.

        Raises:
            NotFound: If the snapshot does not exist.
        """
        sid = require_identifier(snapshot_id, field="snapshot_id")
        async with self._uow_factory() as tx:
            snapshot = await _snapshot_repository(tx).get_by_id(sid)
        if snapshot is None:
            raise NotFound("snapshot not found", details={"snapshot_id": sid})
        return snapshot

    async def snapshot_by_version(self, organization_id: str, version: int) -> MenuSnapshot:
        """Return one version of an organization's snapshot.

        Raises:
            InvalidVersion: If ``version`` is below 1 (checked before I/O).
            NotFound: If that version does not exist.
        """
        org_id = require_identifier(organization_id, field="organization_id")
        wanted = require_version(version)
        async with self._uow_factory() as tx:
            snapshot = await _snapshot_repository(tx).get_by_version(org_id, wanted)
        if snapshot is None:
            raise NotFound(
                "snapshot version not found",
                details={"organization_id": org_id, "version": wanted},
            )
        return snapshot

    async def snapshot_history(
        self,
        organization_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> SnapshotHistoryPage:
        """Return the organization's snapshots, newest version first."""
        org_id = require_identifier(organization_id, field="organization_id")
        page_size = limit or self._settings.snapshot_history_default_limit
        async with self._uow_factory() as tx:
            page = await _snapshot_repository(tx).list_for_organization(
                org_id,
                limit=page_size,
                offset=max(offset, 0),
            )
        return SnapshotHistoryPage(
            items=[MenuSnapshotDTO.from_entity(s) for s in page.items],
            total_count=page.total_count,
        )

    # ------------------------------------------------------------------ #
    # Integrity
    # ------------------------------------------------------------------ #
    async def verify_hash(self, snapshot_id: str) -> SnapshotVerification:
        """Re-hash the stored document and compare with the stored digest.

        Raises:
            NotFound: If the snapshot does not exist.
        """
        snapshot = await self.snapshot_by_id(snapshot_id)
        return self._verify(snapshot)

    async def compare_snapshots(
        self,
        organization_id: str,
        version_a: int,
        version_b: int,
    ) -> SnapshotComparison:
        """Report product and category ids added or removed from A to B.

        Raises:
            InvalidVersion: If either version is below 1.
            NotFound: If either version does not exist.
        """
        org_id = require_identifier(organization_id, field="organization_id")
        a_version = require_version(version_a)
        b_version = require_version(version_b)

        snapshot_a = await self.snapshot_by_version(org_id, a_version)
        snapshot_b = await self.snapshot_by_version(org_id, b_version)
        diff = diff_snapshots(snapshot_a, snapshot_b)

        return SnapshotComparison(
            organization_id=org_id,
            version_a=a_version,
            version_b=b_version,
            added_products=list(diff.added_products),
            removed_products=list(diff.removed_products),
            added_categories=list(diff.added_categories),
            removed_categories=list(diff.removed_categories),
        )

    async def export_for_compliance(self, snapshot_id: str) -> SnapshotComplianceExport:
        """Export a snapshot with its decoded menu and a fresh verification.

        A failed verification is reported in the export, never raised.

        Raises:
            NotFound: If the snapshot does not exist.
        """
        snapshot = await self.snapshot_by_id(snapshot_id)
        verification = self._verify(snapshot)

        export = SnapshotComplianceExport(
            snapshot=MenuSnapshotDTO.from_entity(snapshot),
            menu_data=dict(snapshot.snapshot_data),
            verification=VerificationBlock(
                hash=snapshot.hash,
                verified=verification.is_valid,
                verified_at=datetime.now(UTC),
            ),
        )

        logger.info(
            "menu_snapshot.export.ok",
            extra={
                "snapshot_id": snapshot.id,
                "organization_id": snapshot.organization_id,
                "version": snapshot.version,
                "verified": verification.is_valid,
            },
        )
        return export

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _verify(self, snapshot: MenuSnapshot) -> SnapshotVerification:
        computed = compute_snapshot_hash(snapshot.snapshot_data)
        is_valid = hashes_match(snapshot.hash, computed)
        if not is_valid:
            logger.warning(
                "menu_snapshot.verify.mismatch",
                extra={
                    "snapshot_id": snapshot.id,
                    "organization_id": snapshot.organization_id,
                    "version": snapshot.version,
                    "stored_hash": snapshot.hash,
                    "computed_hash": computed,
                },
            )
        return SnapshotVerification(
            snapshot_id=snapshot.id,
            is_valid=is_valid,
            stored_hash=snapshot.hash,
            computed_hash=computed,
        )

    async def _resolve_publisher(self) -> str | None:
        if self._current_actor is None:
            return None
        try:
            identity = await self._current_actor()
        except Exception as exc:
            raise Unauthenticated("acting identity could not be resolved") from exc
        # An unresolved identity publishes anonymously.
        return identity.actor_id if identity.ok else None


def _snapshot_repository(tx: Any) -> MenuSnapshotRepository:
    """Resolve the snapshot repository via the UnitOfWork."""
    return cast(MenuSnapshotRepository, tx.get_repository(MenuSnapshotRepository))


def _catalog_reader(tx: Any) -> CatalogReader:
    """Resolve the catalog reader via the UnitOfWork."""
    return cast(CatalogReader, tx.get_repository(CatalogReader))
