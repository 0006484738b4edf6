# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Catalog read interface.

Purpose:
    Read-only access to the catalog owned by the CRUD layer: organizations,
    visible categories and visible products.

Layer:
    domain
"""

from __future__ import annotations

from typing import Protocol

from menu_audit.domain.entities.catalog import (
    CatalogCategory,
    CatalogProduct,
    OrganizationProfile,
)


class CatalogReader(Protocol):
    """Protocol for catalog lookups used by the audit services."""

    async def get_organization(self, organization_id: str) -> OrganizationProfile | None:
        """Return the organization profile, active or not."""
        raise NotImplementedError

    async def get_active_organization_by_slug(self, slug: str) -> OrganizationProfile | None:
        """Return the active organization with ``slug``, if any."""
        raise NotImplementedError

    async def list_visible_categories(self, organization_id: str) -> list[CatalogCategory]:
        """Return visible categories ordered by ``sort_order`` then id."""
        raise NotImplementedError

    async def list_visible_products(self, organization_id: str) -> list[CatalogProduct]:
        """Return visible products ordered by ``sort_order`` then id."""
        raise NotImplementedError

    async def list_product_ids(self, organization_id: str) -> list[str]:
        """Return ids of every product the organization owns, visible or not."""
        raise NotImplementedError
