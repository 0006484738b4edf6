# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Menu Snapshot Entities

Purpose:
    Immutable domain representations of a published menu capture:

    * ``MenuSnapshotData`` is the point-in-time document that gets hashed.
      It is built from catalog rows joined with current ledger prices and is
      converted to a JSON-native mapping (``to_document``) before hashing and
      storage.
    * ``MenuSnapshot`` is the persisted, versioned record. It keeps the stored
      document exactly as the store returned it, so integrity verification
      hashes what is actually on disk rather than a re-encoded copy.

Layer: domain/entities
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from .base import BaseEntity, ensure_utc
from .catalog import CatalogCategory, OrganizationProfile


def _jsonb_numbers(value: Any) -> Any:
    """Return ``value`` with floats in the form ``jsonb`` hands them back.

    ``jsonb`` keeps numbers as ``numeric`` and prints integral values without
    an exponent, so a float such as ``1e16`` is read back as the integer
    ``10000000000000000``. Converting those floats up front keeps the stored
    document and the hashed document identical.
    """
    if isinstance(value, float):
        if value.is_integer() and "e" in repr(value):
            return int(value)
        return value
    if isinstance(value, Mapping):
        return {k: _jsonb_numbers(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonb_numbers(v) for v in value]
    return value


@dataclass(frozen=True, slots=True)
class SnapshotProduct(BaseEntity):
    """Visible product with its resolved current price.

    ``price`` is ``None`` when the product has no ledger entry yet.
    """

    id: str
    name: str
    description: str | None
    category_id: str | None
    image_url: str | None
    allergens: tuple[str, ...] | None
    nutrition: Mapping[str, Any] | None
    price: Decimal | None
    currency: str

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category_id": self.category_id,
            "image_url": self.image_url,
            "allergens": list(self.allergens) if self.allergens is not None else None,
            "nutrition": _jsonb_numbers(self.nutrition) if self.nutrition is not None else None,
            "price": str(self.price) if self.price is not None else None,
            "currency": self.currency,
        }


@dataclass(frozen=True, slots=True)
class SnapshotMetadata(BaseEntity):
    """Generation timestamp and derived counts."""

    generated_at: datetime
    category_count: int
    product_count: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "generated_at", ensure_utc(self.generated_at))


@dataclass(frozen=True, slots=True)
class MenuSnapshotData(BaseEntity):
    """Full published menu of one organization at one instant."""

    organization: OrganizationProfile
    categories: tuple[CatalogCategory, ...]
    products: tuple[SnapshotProduct, ...]
    metadata: SnapshotMetadata

    @classmethod
    def assemble(
        cls,
        *,
        organization: OrganizationProfile,
        categories: Sequence[CatalogCategory],
        products: Sequence[SnapshotProduct],
        generated_at: datetime,
    ) -> MenuSnapshotData:
        """Build a document and derive its metadata counts."""
        return cls(
            organization=organization,
            categories=tuple(categories),
            products=tuple(products),
            metadata=SnapshotMetadata(
                generated_at=generated_at,
                category_count=len(categories),
                product_count=len(products),
            ),
        )

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-native document that is hashed and stored."""
        org = self.organization
        return {
            "organization": {
                "id": org.id,
                "name": org.name,
                "slug": org.slug,
                "logo_url": org.logo_url,
                "cover_url": org.cover_url,
                "settings": _jsonb_numbers(org.settings),
            },
            "categories": [
                {
                    "id": c.id,
                    "name": c.name,
                    "slug": c.slug,
                    "parent_id": c.parent_id,
                    "sort_order": c.sort_order,
                }
                for c in self.categories
            ],
            "products": [p.to_document() for p in self.products],
            "metadata": {
                "generated_at": self.metadata.generated_at.isoformat(),
                "category_count": self.metadata.category_count,
                "product_count": self.metadata.product_count,
            },
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> MenuSnapshotData:
        """Decode a stored document back into entities.

        Raises:
            KeyError: If a required section or field is missing.
        """
        org = document["organization"]
        meta = document["metadata"]
        return cls(
            organization=OrganizationProfile(
                id=org["id"],
                name=org["name"],
                slug=org["slug"],
                logo_url=org.get("logo_url"),
                cover_url=org.get("cover_url"),
                settings=org.get("settings") or {},
            ),
            categories=tuple(
                CatalogCategory(
                    id=c["id"],
                    name=c["name"],
                    slug=c["slug"],
                    parent_id=c.get("parent_id"),
                    sort_order=int(c.get("sort_order") or 0),
                )
                for c in document.get("categories", [])
            ),
            products=tuple(
                SnapshotProduct(
                    id=p["id"],
                    name=p["name"],
                    description=p.get("description"),
                    category_id=p.get("category_id"),
                    image_url=p.get("image_url"),
                    allergens=tuple(p["allergens"]) if p.get("allergens") is not None else None,
                    nutrition=p.get("nutrition"),
                    price=Decimal(str(p["price"])) if p.get("price") is not None else None,
                    currency=p["currency"],
                )
                for p in document.get("products", [])
            ),
            metadata=SnapshotMetadata(
                generated_at=datetime.fromisoformat(meta["generated_at"]),
                category_count=int(meta["category_count"]),
                product_count=int(meta["product_count"]),
            ),
        )


@dataclass(frozen=True, slots=True)
class MenuSnapshot(BaseEntity):
    """Persisted, versioned, hashed menu capture.

    Args:
        id: Store-assigned identifier.
        organization_id: Owning organization.
        snapshot_data: Stored JSON document, exactly as persisted.
        hash: Lowercase hex SHA-256 digest computed at creation time.
        version: Positive, gapless, per-organization version number.
        created_at: Store-assigned UTC timestamp.
        published_by: Actor that published this version, when known.
        notes: Optional release notes.

    Raises:
        ValueError: If ``version`` is below 1.
    """

    id: str
    organization_id: str
    snapshot_data: Mapping[str, Any]
    hash: str
    version: int
    created_at: datetime
    published_by: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.version < 1:
            raise ValueError("version must be >= 1")
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))

    def decode(self) -> MenuSnapshotData:
        """Decode the stored document into :class:`MenuSnapshotData`."""
        return MenuSnapshotData.from_document(self.snapshot_data)

    def product_ids(self) -> list[str]:
        """Product ids in document order."""
        return [str(p["id"]) for p in self.snapshot_data.get("products", [])]

    def category_ids(self) -> list[str]:
        """Category ids in document order."""
        return [str(c["id"]) for c in self.snapshot_data.get("categories", [])]


@dataclass(frozen=True, slots=True)
class NewMenuSnapshot:
    """Write-side shape handed to the snapshot repository."""

    organization_id: str
    snapshot_data: Mapping[str, Any]
    hash: str
    version: int
    published_by: str | None = None
    notes: str | None = None
