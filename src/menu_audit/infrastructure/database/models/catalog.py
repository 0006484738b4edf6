# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Read-only ORM mappings of the catalog tables.

The CRUD layer owns ``organizations``, ``categories`` and ``products`` and
their migrations. Only the columns the audit core reads are mapped here, and
these tables are excluded from this project's Alembic autogenerate.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Integer, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, IdentityMixin, table_args

_EXTERNAL = {"external": True}


class OrganizationModel(IdentityMixin, Base):
    """Tenant organization."""

    __tablename__ = "organizations"
    __table_args__ = table_args(info=_EXTERNAL)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    settings: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    is_active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)


class CategoryModel(IdentityMixin, Base):
    """Menu category; ``parent_id`` forms a tree within one organization."""

    __tablename__ = "categories"
    __table_args__ = table_args(info=_EXTERNAL)

    organization_id: Mapped[str] = mapped_column(PG_UUID(as_uuid=False), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(PG_UUID(as_uuid=False), nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_visible: Mapped[bool | None] = mapped_column(Boolean, nullable=True)


class ProductModel(IdentityMixin, CreatedAtMixin, Base):
    """Menu product. Prices are not stored here; see ``price_ledger``."""

    __tablename__ = "products"
    __table_args__ = table_args(info=_EXTERNAL)

    organization_id: Mapped[str] = mapped_column(PG_UUID(as_uuid=False), nullable=False)
    category_id: Mapped[str | None] = mapped_column(PG_UUID(as_uuid=False), nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    allergens: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    nutrition: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_visible: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
