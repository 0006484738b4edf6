# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Catalog Read Models

Purpose:
    Read-only views of the catalog entities owned by the CRUD layer
    (organizations, categories, products). The audit core never writes
    them; it only materializes them into menu snapshots.

Layer: domain/entities
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .base import BaseEntity


@dataclass(frozen=True, slots=True)
class OrganizationProfile(BaseEntity):
    """Organization identity, branding and settings."""

    id: str
    name: str
    slug: str
    logo_url: str | None = None
    cover_url: str | None = None
    settings: Mapping[str, Any] = field(default_factory=dict)
    is_active: bool = False


@dataclass(frozen=True, slots=True)
class CatalogCategory(BaseEntity):
    """Visible category row."""

    id: str
    name: str
    slug: str
    parent_id: str | None
    sort_order: int


@dataclass(frozen=True, slots=True)
class CatalogProduct(BaseEntity):
    """Visible product row (without price; prices live in the ledger)."""

    id: str
    name: str
    description: str | None
    category_id: str | None
    image_url: str | None
    allergens: tuple[str, ...] | None
    nutrition: Mapping[str, Any] | None
