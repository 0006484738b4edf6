# tests/conftest.py
"""Shared in-memory fakes for the audit services.

The fakes mirror the store semantics the services rely on: append-only rows,
store-assigned ids and timestamps, insertion-order tie-breaks, and the unique
``(organization_id, version)`` constraint on snapshots.
"""

from __future__ import annotations

import itertools
import uuid
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from types import TracebackType
from typing import Any

import pytest

from menu_audit.application.uow import UnitOfWork
from menu_audit.config.settings import Settings
from menu_audit.domain.entities.catalog import (
    CatalogCategory,
    CatalogProduct,
    OrganizationProfile,
)
from menu_audit.domain.entities.identity import ActorIdentity
from menu_audit.domain.entities.menu_snapshot import MenuSnapshot, NewMenuSnapshot
from menu_audit.domain.entities.price_ledger import (
    CurrentPrice,
    NewPriceEntry,
    PriceLedgerEntry,
)
from menu_audit.domain.exceptions.audit import SnapshotVersionConflict, StoreFailure
from menu_audit.domain.interfaces.identity import StaticActor
from menu_audit.domain.interfaces.repositories.catalog_repository import CatalogReader
from menu_audit.domain.interfaces.repositories.menu_snapshot_repository import (
    MenuSnapshotRepository,
    SnapshotPage,
)
from menu_audit.domain.interfaces.repositories.price_ledger_repository import (
    LedgerPage,
    LedgerQuery,
    PriceLedgerRepository,
)

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def ticking_clock(
    start: datetime = BASE_TIME,
    step: timedelta = timedelta(seconds=1),
) -> Callable[[], datetime]:
    counter = itertools.count()
    return lambda: start + step * next(counter)


class FakePriceLedgerRepository(PriceLedgerRepository):  # type: ignore[misc]
    """Append-only in-memory ledger; ``rows`` holds ``(seq, entry)`` pairs."""

    def __init__(self) -> None:
        self.rows: list[tuple[int, PriceLedgerEntry]] = []
        self.clock: Callable[[], datetime] = ticking_clock()
        self.calls: list[str] = []
        self.fail_with: StoreFailure | None = None
        self._seq = itertools.count(1)

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    async def append(self, entry: NewPriceEntry) -> PriceLedgerEntry:  # type: ignore[override]
        self._check("append")
        stored = PriceLedgerEntry(
            id=str(uuid.uuid4()),
            product_id=entry.product_id,
            price=entry.price,
            currency=entry.currency,
            change_reason=entry.change_reason,
            changed_by=entry.changed_by,
            created_at=self.clock(),
        )
        self.rows.append((next(self._seq), stored))
        return stored

    def _newest(self, product_id: str) -> PriceLedgerEntry | None:
        matching = [(e.created_at, seq, e) for seq, e in self.rows if e.product_id == product_id]
        if not matching:
            return None
        return max(matching, key=lambda t: (t[0], t[1]))[2]

    @staticmethod
    def _project(entry: PriceLedgerEntry) -> CurrentPrice:
        return CurrentPrice(
            product_id=entry.product_id,
            price=entry.price,
            currency=entry.currency,
            change_reason=entry.change_reason,
            changed_by=entry.changed_by,
            effective_from=entry.created_at,
        )

    async def get_current(self, product_id: str) -> CurrentPrice | None:  # type: ignore[override]
        self._check("get_current")
        newest = self._newest(product_id)
        return self._project(newest) if newest is not None else None

    async def get_current_many(self, product_ids: Sequence[str]) -> list[CurrentPrice]:  # type: ignore[override]
        self._check("get_current_many")
        out = []
        for pid in product_ids:
            newest = self._newest(pid)
            if newest is not None:
                out.append(self._project(newest))
        return out

    async def list_entries(self, query: LedgerQuery) -> LedgerPage:  # type: ignore[override]
        self._check("list_entries")
        matching = [
            (seq, e)
            for seq, e in self.rows
            if e.product_id in query.product_ids
            and (query.start_date is None or e.created_at >= query.start_date)
            and (query.end_date is None or e.created_at <= query.end_date)
        ]
        matching.sort(key=lambda t: (t[1].created_at, t[0]), reverse=query.order == "desc")
        items = [e for _, e in matching]
        end = None if query.limit is None else query.offset + query.limit
        return LedgerPage(items=tuple(items[query.offset : end]), total_count=len(items))


class FakeMenuSnapshotRepository(MenuSnapshotRepository):  # type: ignore[misc]
    """In-memory snapshot store enforcing unique ``(organization_id, version)``."""

    def __init__(self) -> None:
        self.rows: list[MenuSnapshot] = []
        self.clock: Callable[[], datetime] = ticking_clock()
        self.max_version_override: int | None = None

    async def append(self, snapshot: NewMenuSnapshot) -> MenuSnapshot:  # type: ignore[override]
        if any(
            s.organization_id == snapshot.organization_id and s.version == snapshot.version
            for s in self.rows
        ):
            raise SnapshotVersionConflict(
                "snapshot version already exists for organization",
                details={"version": snapshot.version},
            )
        stored = MenuSnapshot(
            id=str(uuid.uuid4()),
            organization_id=snapshot.organization_id,
            snapshot_data=dict(snapshot.snapshot_data),
            hash=snapshot.hash,
            version=snapshot.version,
            created_at=self.clock(),
            published_by=snapshot.published_by,
            notes=snapshot.notes,
        )
        self.rows.append(stored)
        return stored

    def _for_org(self, organization_id: str) -> list[MenuSnapshot]:
        return sorted(
            (s for s in self.rows if s.organization_id == organization_id),
            key=lambda s: s.version,
            reverse=True,
        )

    async def get_max_version(self, organization_id: str) -> int | None:  # type: ignore[override]
        if self.max_version_override is not None:
            return self.max_version_override
        rows = self._for_org(organization_id)
        return rows[0].version if rows else None

    async def get_latest(self, organization_id: str) -> MenuSnapshot | None:  # type: ignore[override]
        rows = self._for_org(organization_id)
        return rows[0] if rows else None

    async def get_by_id(self, snapshot_id: str) -> MenuSnapshot | None:  # type: ignore[override]
        return next((s for s in self.rows if s.id == snapshot_id), None)

    async def get_by_version(self, organization_id: str, version: int) -> MenuSnapshot | None:  # type: ignore[override]
        return next(
            (s for s in self._for_org(organization_id) if s.version == version),
            None,
        )

    async def list_for_organization(  # type: ignore[override]
        self,
        organization_id: str,
        *,
        limit: int,
        offset: int = 0,
    ) -> SnapshotPage:
        rows = self._for_org(organization_id)
        return SnapshotPage(items=tuple(rows[offset : offset + limit]), total_count=len(rows))

    def tamper(self, snapshot_id: str, **changes: Any) -> None:
        """Simulate an out-of-band edit that bypassed the append-only guard."""
        for i, s in enumerate(self.rows):
            if s.id == snapshot_id:
                data = dict(s.snapshot_data)
                data.update(changes)
                self.rows[i] = MenuSnapshot(
                    id=s.id,
                    organization_id=s.organization_id,
                    snapshot_data=data,
                    hash=s.hash,
                    version=s.version,
                    created_at=s.created_at,
                    published_by=s.published_by,
                    notes=s.notes,
                )


class FakeCatalogReader(CatalogReader):  # type: ignore[misc]
    """Catalog rows keyed by organization id."""

    def __init__(self) -> None:
        self.organizations: dict[str, OrganizationProfile] = {}
        self.categories: dict[str, list[CatalogCategory]] = {}
        self.products: dict[str, list[CatalogProduct]] = {}
        self.hidden_product_ids: dict[str, list[str]] = {}
        self.fail_with: StoreFailure | None = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def get_organization(self, organization_id: str) -> OrganizationProfile | None:  # type: ignore[override]
        self._check()
        return self.organizations.get(organization_id)

    async def get_active_organization_by_slug(self, slug: str) -> OrganizationProfile | None:  # type: ignore[override]
        self._check()
        return next(
            (o for o in self.organizations.values() if o.slug == slug and o.is_active),
            None,
        )

    async def list_visible_categories(self, organization_id: str) -> list[CatalogCategory]:  # type: ignore[override]
        self._check()
        return sorted(self.categories.get(organization_id, []), key=lambda c: c.sort_order)

    async def list_visible_products(self, organization_id: str) -> list[CatalogProduct]:  # type: ignore[override]
        self._check()
        return list(self.products.get(organization_id, []))

    async def list_product_ids(self, organization_id: str) -> list[str]:  # type: ignore[override]
        self._check()
        visible = [p.id for p in self.products.get(organization_id, [])]
        return visible + list(self.hidden_product_ids.get(organization_id, []))


class FakeUnitOfWork(UnitOfWork):  # type: ignore[misc]
    """Resolves fake repositories by their Protocol type and counts transactions."""

    def __init__(
        self,
        ledger: FakePriceLedgerRepository,
        snapshots: FakeMenuSnapshotRepository,
        catalog: FakeCatalogReader,
    ) -> None:
        self._repos: dict[type[Any], Any] = {
            PriceLedgerRepository: ledger,
            MenuSnapshotRepository: snapshots,
            CatalogReader: catalog,
        }
        self.entered = 0
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self) -> FakeUnitOfWork:  # type: ignore[override]
        self.entered += 1
        return self

    async def __aexit__(  # type: ignore[override]
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()
        return None

    def get_repository(self, repo_type: type[Any]) -> Any:  # type: ignore[override]
        return self._repos[repo_type]

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

ORG_ID = "11111111-1111-1111-1111-111111111111"
OTHER_ORG_ID = "22222222-2222-2222-2222-222222222222"
ACTOR_ID = "99999999-9999-9999-9999-999999999999"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        default_currency="TRY",
        price_history_default_limit=100,
        snapshot_history_default_limit=50,
        compliance_export_row_limit=10_000,
    )


@pytest.fixture
def ledger_repo() -> FakePriceLedgerRepository:
    return FakePriceLedgerRepository()


@pytest.fixture
def snapshot_repo() -> FakeMenuSnapshotRepository:
    return FakeMenuSnapshotRepository()


@pytest.fixture
def catalog() -> FakeCatalogReader:
    reader = FakeCatalogReader()
    reader.organizations[ORG_ID] = OrganizationProfile(
        id=ORG_ID,
        name="Kebap House",
        slug="kebap-house",
        logo_url="https://cdn.example/logo.png",
        cover_url=None,
        settings={"theme": "dark"},
        is_active=True,
    )
    reader.organizations[OTHER_ORG_ID] = OrganizationProfile(
        id=OTHER_ORG_ID,
        name="Closed Cafe",
        slug="closed-cafe",
        is_active=False,
    )
    reader.categories[ORG_ID] = [
        CatalogCategory(id="cat-drinks", name="Drinks", slug="drinks", parent_id=None, sort_order=2),
        CatalogCategory(id="cat-mains", name="Mains", slug="mains", parent_id=None, sort_order=1),
    ]
    reader.products[ORG_ID] = [
        CatalogProduct(
            id="prod-adana",
            name="Adana Kebap",
            description="Spicy minced lamb",
            category_id="cat-mains",
            image_url=None,
            allergens=("gluten",),
            nutrition={"kcal": 650},
        ),
        CatalogProduct(
            id="prod-ayran",
            name="Ayran",
            description=None,
            category_id="cat-drinks",
            image_url=None,
            allergens=("milk",),
            nutrition=None,
        ),
    ]
    return reader


@pytest.fixture
def uow(
    ledger_repo: FakePriceLedgerRepository,
    snapshot_repo: FakeMenuSnapshotRepository,
    catalog: FakeCatalogReader,
) -> FakeUnitOfWork:
    return FakeUnitOfWork(ledger_repo, snapshot_repo, catalog)


@pytest.fixture
def actor() -> StaticActor:
    return StaticActor(ActorIdentity(actor_id=ACTOR_ID))
