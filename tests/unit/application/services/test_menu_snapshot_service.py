# tests/unit/application/services/test_menu_snapshot_service.py
from __future__ import annotations

import pytest

from menu_audit.application.services.menu_snapshot_service import MenuSnapshotService
from menu_audit.application.services.price_ledger_service import PriceLedgerService
from menu_audit.domain.entities.catalog import CatalogCategory, CatalogProduct
from menu_audit.domain.entities.identity import ActorIdentity
from menu_audit.domain.exceptions.audit import (
    InvalidVersion,
    MissingIdentifier,
    NotFound,
    SnapshotVersionConflict,
    StoreFailure,
    Unauthenticated,
)
from menu_audit.domain.interfaces.identity import StaticActor
from menu_audit.domain.services.canonical_hash import compute_snapshot_hash

ORG_ID = "11111111-1111-1111-1111-111111111111"
OTHER_ORG_ID = "22222222-2222-2222-2222-222222222222"
MISSING_ORG_ID = "33333333-3333-3333-3333-333333333333"
ACTOR_ID = "99999999-9999-9999-9999-999999999999"


@pytest.fixture
def ledger(uow, actor, settings) -> PriceLedgerService:
    return PriceLedgerService(lambda: uow, actor, settings=settings)


@pytest.fixture
def service(uow, ledger, actor, settings) -> MenuSnapshotService:
    return MenuSnapshotService(lambda: uow, ledger, current_actor=actor, settings=settings)


# ---------------------------------------------------------------------------
# Content collection
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_collect_content_joins_catalog_with_current_prices(service, ledger) -> None:
    await ledger.append_price_entry("prod-adana", "150.00")
    await ledger.append_price_entry("prod-adana", "165.00")

    data = await service.collect_content(ORG_ID)
    document = data.to_document()

    assert document["organization"]["slug"] == "kebap-house"
    assert document["organization"]["settings"] == {"theme": "dark"}
    assert [c["id"] for c in document["categories"]] == ["cat-mains", "cat-drinks"]
    by_id = {p["id"]: p for p in document["products"]}
    assert by_id["prod-adana"]["price"] == "165.00"
    assert by_id["prod-adana"]["allergens"] == ["gluten"]
    assert by_id["prod-adana"]["nutrition"] == {"kcal": 650}
    assert document["metadata"]["category_count"] == 2
    assert document["metadata"]["product_count"] == 2


@pytest.mark.asyncio
async def test_unpriced_product_gets_null_price_and_default_currency(service) -> None:
    data = await service.collect_content(ORG_ID)
    ayran = next(p for p in data.products if p.id == "prod-ayran")

    assert ayran.price is None
    assert ayran.currency == "TRY"


@pytest.mark.asyncio
async def test_collect_content_uses_single_batch_price_lookup(service, ledger_repo) -> None:
    await service.collect_content(ORG_ID)
    assert ledger_repo.calls == ["get_current_many"]


@pytest.mark.asyncio
async def test_empty_menu_is_a_valid_document(service, catalog) -> None:
    catalog.categories[ORG_ID] = []
    catalog.products[ORG_ID] = []

    data = await service.collect_content(ORG_ID)

    assert data.categories == ()
    assert data.products == ()
    assert data.metadata.product_count == 0


@pytest.mark.asyncio
async def test_collect_content_missing_organization(service) -> None:
    with pytest.raises(NotFound):
        await service.collect_content(MISSING_ORG_ID)


# ---------------------------------------------------------------------------
# create_snapshot
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_versions_start_at_one_and_increase_by_one(service) -> None:
    first = await service.create_snapshot(ORG_ID, notes="launch menu")
    second = await service.create_snapshot(ORG_ID)
    third = await service.create_snapshot(ORG_ID)

    assert [first.version, second.version, third.version] == [1, 2, 3]
    assert first.notes == "launch menu"


@pytest.mark.asyncio
async def test_versions_are_per_organization(service, catalog) -> None:
    await service.create_snapshot(ORG_ID)
    other = await service.create_snapshot(OTHER_ORG_ID)
    assert other.version == 1


@pytest.mark.asyncio
async def test_stored_hash_is_digest_of_stored_document(service) -> None:
    snapshot = await service.create_snapshot(ORG_ID)

    assert snapshot.hash == compute_snapshot_hash(snapshot.snapshot_data)
    assert len(snapshot.hash) == 64
    assert snapshot.hash == snapshot.hash.lower()


@pytest.mark.asyncio
async def test_published_by_is_the_resolved_actor(service) -> None:
    snapshot = await service.create_snapshot(ORG_ID)
    assert snapshot.published_by == ACTOR_ID


@pytest.mark.asyncio
async def test_publish_without_actor_is_anonymous(uow, ledger, settings) -> None:
    service = MenuSnapshotService(lambda: uow, ledger, settings=settings)
    snapshot = await service.create_snapshot(ORG_ID)
    assert snapshot.published_by is None


@pytest.mark.asyncio
async def test_unresolved_actor_publishes_anonymously(uow, ledger, settings) -> None:
    service = MenuSnapshotService(
        lambda: uow,
        ledger,
        current_actor=StaticActor(ActorIdentity.unresolved()),
        settings=settings,
    )
    snapshot = await service.create_snapshot(ORG_ID)
    assert snapshot.published_by is None


@pytest.mark.asyncio
async def test_failing_actor_resolver_blocks_publish(uow, ledger, snapshot_repo, settings) -> None:
    async def broken_actor() -> ActorIdentity:
        raise TimeoutError("identity provider timed out")

    service = MenuSnapshotService(
        lambda: uow, ledger, current_actor=broken_actor, settings=settings
    )

    with pytest.raises(Unauthenticated):
        await service.create_snapshot(ORG_ID)
    assert snapshot_repo.rows == []


@pytest.mark.asyncio
async def test_concurrent_version_claim_surfaces_conflict(service, uow, snapshot_repo) -> None:
    await service.create_snapshot(ORG_ID)
    # Another publisher read the same maximum before this one inserted.
    snapshot_repo.max_version_override = 0

    with pytest.raises(SnapshotVersionConflict) as exc_info:
        await service.create_snapshot(ORG_ID)

    assert isinstance(exc_info.value, StoreFailure)
    assert exc_info.value.retryable is True
    assert len(snapshot_repo.rows) == 1
    assert uow.rollbacks == 1


@pytest.mark.asyncio
async def test_missing_organization_produces_no_snapshot(service, snapshot_repo) -> None:
    with pytest.raises(NotFound):
        await service.create_snapshot(MISSING_ORG_ID)
    assert snapshot_repo.rows == []


@pytest.mark.asyncio
async def test_catalog_failure_produces_no_snapshot(service, catalog, snapshot_repo) -> None:
    catalog.fail_with = StoreFailure("catalog read failed")

    with pytest.raises(StoreFailure):
        await service.create_snapshot(ORG_ID)
    assert snapshot_repo.rows == []


@pytest.mark.asyncio
async def test_ledger_failure_produces_no_snapshot(service, ledger_repo, snapshot_repo) -> None:
    ledger_repo.fail_with = StoreFailure("ledger read failed")

    with pytest.raises(StoreFailure):
        await service.create_snapshot(ORG_ID)
    assert snapshot_repo.rows == []


@pytest.mark.asyncio
async def test_blank_organization_rejected_before_io(service, uow) -> None:
    with pytest.raises(MissingIdentifier):
        await service.create_snapshot("  ")
    assert uow.entered == 0


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_current_snapshot_is_highest_version(service) -> None:
    await service.create_snapshot(ORG_ID)
    latest = await service.create_snapshot(ORG_ID)

    current = await service.current_snapshot(ORG_ID)

    assert current is not None
    assert current.id == latest.id


@pytest.mark.asyncio
async def test_current_snapshot_absent_is_none(service) -> None:
    assert await service.current_snapshot(ORG_ID) is None


@pytest.mark.asyncio
async def test_current_snapshot_by_slug(service) -> None:
    created = await service.create_snapshot(ORG_ID)

    current = await service.current_snapshot_by_slug("kebap-house")

    assert current is not None
    assert current.id == created.id


@pytest.mark.asyncio
async def test_slug_of_inactive_organization_is_not_found(service) -> None:
    await service.create_snapshot(OTHER_ORG_ID)

    with pytest.raises(NotFound):
        await service.current_snapshot_by_slug("closed-cafe")


@pytest.mark.asyncio
async def test_snapshot_by_id_and_version(service) -> None:
    first = await service.create_snapshot(ORG_ID)
    await service.create_snapshot(ORG_ID)

    assert (await service.snapshot_by_id(first.id)).version == 1
    assert (await service.snapshot_by_version(ORG_ID, 1)).id == first.id


@pytest.mark.asyncio
async def test_unknown_snapshot_id_is_not_found(service) -> None:
    with pytest.raises(NotFound):
        await service.snapshot_by_id("44444444-4444-4444-4444-444444444444")


@pytest.mark.asyncio
async def test_missing_version_is_not_found(service) -> None:
    await service.create_snapshot(ORG_ID)
    with pytest.raises(NotFound):
        await service.snapshot_by_version(ORG_ID, 7)


@pytest.mark.asyncio
async def test_version_below_one_rejected_before_io(service, uow) -> None:
    with pytest.raises(InvalidVersion):
        await service.snapshot_by_version(ORG_ID, 0)
    assert uow.entered == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("version", [1.9, "2"])
async def test_non_integer_versions_rejected_before_io(service, uow, version) -> None:
    await service.create_snapshot(ORG_ID)
    await service.create_snapshot(ORG_ID)
    entered = uow.entered

    with pytest.raises(InvalidVersion):
        await service.compare_snapshots(ORG_ID, version, 2)
    assert uow.entered == entered


@pytest.mark.asyncio
async def test_history_newest_first_with_total(service) -> None:
    for _ in range(3):
        await service.create_snapshot(ORG_ID)

    page = await service.snapshot_history(ORG_ID, limit=2, offset=0)

    assert [s.version for s in page.items] == [3, 2]
    assert page.total_count == 3


@pytest.mark.asyncio
async def test_history_of_unknown_organization_is_empty(service) -> None:
    page = await service.snapshot_history(MISSING_ORG_ID)
    assert page.items == []
    assert page.total_count == 0


# ---------------------------------------------------------------------------
# Integrity
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_untouched_snapshot_verifies(service) -> None:
    snapshot = await service.create_snapshot(ORG_ID)

    result = await service.verify_hash(snapshot.id)

    assert result.is_valid is True
    assert result.stored_hash == result.computed_hash


@pytest.mark.asyncio
async def test_tampered_snapshot_reports_mismatch(service, snapshot_repo, caplog) -> None:
    snapshot = await service.create_snapshot(ORG_ID)
    snapshot_repo.tamper(snapshot.id, products=[])

    with caplog.at_level("WARNING"):
        result = await service.verify_hash(snapshot.id)

    assert result.is_valid is False
    assert result.stored_hash == snapshot.hash
    assert result.computed_hash != snapshot.hash
    assert any(r.getMessage() == "menu_snapshot.verify.mismatch" for r in caplog.records)


@pytest.mark.asyncio
async def test_one_changed_price_fails_verification(service, ledger, snapshot_repo) -> None:
    await ledger.append_price_entry("prod-adana", "149.90")
    snapshot = await service.create_snapshot(ORG_ID)
    assert (await service.verify_hash(snapshot.id)).is_valid is True

    products = [dict(p) for p in snapshot.snapshot_data["products"]]
    adana = next(p for p in products if p["id"] == "prod-adana")
    assert adana["price"] == "149.90"
    adana["price"] = "149.91"
    snapshot_repo.tamper(snapshot.id, products=products)

    assert (await service.verify_hash(snapshot.id)).is_valid is False


@pytest.mark.asyncio
async def test_verify_unknown_snapshot(service) -> None:
    with pytest.raises(NotFound):
        await service.verify_hash("44444444-4444-4444-4444-444444444444")


@pytest.mark.asyncio
async def test_compare_reports_id_set_differences(service, catalog) -> None:
    await service.create_snapshot(ORG_ID)
    catalog.categories[ORG_ID].append(
        CatalogCategory(id="cat-desserts", name="Desserts", slug="desserts", parent_id=None, sort_order=3),
    )
    catalog.products[ORG_ID] = [
        p for p in catalog.products[ORG_ID] if p.id != "prod-ayran"
    ] + [
        CatalogProduct(
            id="prod-baklava",
            name="Baklava",
            description=None,
            category_id="cat-desserts",
            image_url=None,
            allergens=("nuts",),
            nutrition=None,
        ),
    ]
    await service.create_snapshot(ORG_ID)

    comparison = await service.compare_snapshots(ORG_ID, 1, 2)

    assert comparison.added_products == ["prod-baklava"]
    assert comparison.removed_products == ["prod-ayran"]
    assert comparison.added_categories == ["cat-desserts"]
    assert comparison.removed_categories == []
    dumped = comparison.model_dump(by_alias=True)
    assert dumped["versionA"] == 1
    assert dumped["addedProducts"] == ["prod-baklava"]


@pytest.mark.asyncio
async def test_compare_same_version_is_empty(service) -> None:
    await service.create_snapshot(ORG_ID)

    comparison = await service.compare_snapshots(ORG_ID, 1, 1)

    assert comparison.added_products == []
    assert comparison.removed_categories == []


@pytest.mark.asyncio
async def test_compare_missing_version(service) -> None:
    await service.create_snapshot(ORG_ID)
    with pytest.raises(NotFound):
        await service.compare_snapshots(ORG_ID, 1, 2)


@pytest.mark.asyncio
async def test_compliance_export_embeds_verification(service) -> None:
    snapshot = await service.create_snapshot(ORG_ID)

    export = await service.export_for_compliance(snapshot.id)
    dumped = export.model_dump(mode="json", by_alias=True)

    assert set(dumped) == {"snapshot", "menuData", "verification"}
    assert dumped["verification"]["hash"] == snapshot.hash
    assert dumped["verification"]["verified"] is True
    assert dumped["menuData"]["organization"]["id"] == ORG_ID


@pytest.mark.asyncio
async def test_compliance_export_reports_tampering_without_raising(service, snapshot_repo) -> None:
    snapshot = await service.create_snapshot(ORG_ID)
    snapshot_repo.tamper(snapshot.id, metadata={"generated_at": "1999-01-01T00:00:00+00:00"})

    export = await service.export_for_compliance(snapshot.id)

    assert export.verification.verified is False
