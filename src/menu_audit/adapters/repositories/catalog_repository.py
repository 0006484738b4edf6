# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Catalog Reader (SQLAlchemy).

Purpose:
    Read-only access to the organizations, categories and products owned by
    the CRUD layer, filtered by the visibility flags a published menu honors.

Layer:
    adapters

Notes:
    - ``is_visible`` / ``is_active`` columns are nullable upstream. Only an
      explicit ``true`` passes either filter; NULL means hidden or inactive.
"""

from __future__ import annotations

from sqlalchemy import func, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from menu_audit.adapters.repositories.base_repository import BaseRepository
from menu_audit.domain.entities.catalog import (
    CatalogCategory,
    CatalogProduct,
    OrganizationProfile,
)
from menu_audit.infrastructure.database.models.catalog import (
    CategoryModel,
    OrganizationModel,
    ProductModel,
)


def _to_organization(row: OrganizationModel) -> OrganizationProfile:
    return OrganizationProfile(
        id=str(row.id),
        name=row.name,
        slug=row.slug,
        logo_url=row.logo_url,
        cover_url=row.cover_url,
        settings=dict(row.settings or {}),
        is_active=bool(row.is_active),
    )


def _to_category(row: CategoryModel) -> CatalogCategory:
    return CatalogCategory(
        id=str(row.id),
        name=row.name,
        slug=row.slug,
        parent_id=str(row.parent_id) if row.parent_id is not None else None,
        sort_order=int(row.sort_order or 0),
    )


def _to_product(row: ProductModel) -> CatalogProduct:
    return CatalogProduct(
        id=str(row.id),
        name=row.name,
        description=row.description,
        category_id=str(row.category_id) if row.category_id is not None else None,
        image_url=row.image_url,
        allergens=tuple(row.allergens) if row.allergens is not None else None,
        nutrition=dict(row.nutrition) if row.nutrition is not None else None,
    )


class CatalogReader(BaseRepository[OrganizationModel]):
    """SQLAlchemy-backed catalog reader."""

    operation_prefix = "catalog"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the reader.

        Args:
            session: Async SQLAlchemy session bound to the primary database.
        """
        super().__init__(session=session)

    async def get_organization(self, organization_id: str) -> OrganizationProfile | None:
        """Return an organization by id regardless of its active flag."""
        stmt = select(OrganizationModel).where(OrganizationModel.id == organization_id).limit(1)
        row = await self.fetch_optional(stmt, operation="get_organization")
        return _to_organization(row) if row is not None else None

    async def get_active_organization_by_slug(self, slug: str) -> OrganizationProfile | None:
        """Return the active organization with ``slug``, if any."""
        stmt = (
            select(OrganizationModel)
            .where(OrganizationModel.slug == slug, OrganizationModel.is_active.is_(true()))
            .limit(1)
        )
        row = await self.fetch_optional(stmt, operation="get_active_organization_by_slug")
        return _to_organization(row) if row is not None else None

    async def list_visible_categories(self, organization_id: str) -> list[CatalogCategory]:
        """Return visible categories ordered by sort order."""
        stmt = (
            select(CategoryModel)
            .where(
                CategoryModel.organization_id == organization_id,
                CategoryModel.is_visible.is_(true()),
            )
            .order_by(func.coalesce(CategoryModel.sort_order, 0).asc(), CategoryModel.id.asc())
        )
        rows = await self.fetch_all(stmt, operation="list_visible_categories")
        return [_to_category(r) for r in rows]

    async def list_visible_products(self, organization_id: str) -> list[CatalogProduct]:
        """Return visible products ordered by sort order then creation."""
        stmt = (
            select(ProductModel)
            .where(
                ProductModel.organization_id == organization_id,
                ProductModel.is_visible.is_(true()),
            )
            .order_by(
                func.coalesce(ProductModel.sort_order, 0).asc(),
                ProductModel.created_at.asc(),
                ProductModel.id.asc(),
            )
        )
        rows = await self.fetch_all(stmt, operation="list_visible_products")
        return [_to_product(r) for r in rows]

    async def list_product_ids(self, organization_id: str) -> list[str]:
        """Return ids of every product of the organization, visible or not."""
        stmt = select(ProductModel.id).where(ProductModel.organization_id == organization_id)
        rows = await self.fetch_all(stmt, operation="list_product_ids")
        return [str(pid) for pid in rows]
