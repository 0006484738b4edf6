# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Version-to-version diff of menu snapshots.

Pure set difference over product and category ids. Field-level changes
(e.g., a renamed product or a new price) are not reported.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from menu_audit.domain.entities.menu_snapshot import MenuSnapshot


@dataclass(frozen=True, slots=True)
class SnapshotDiff:
    """Ids present in one version and absent from the other."""

    added_products: tuple[str, ...]
    removed_products: tuple[str, ...]
    added_categories: tuple[str, ...]
    removed_categories: tuple[str, ...]


def _missing_from(source: Sequence[str], other: Sequence[str]) -> tuple[str, ...]:
    # preserves first-appearance order of ``source``, drops duplicates
    seen = set(other)
    out: list[str] = []
    for item in source:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


def diff_snapshots(a: MenuSnapshot, b: MenuSnapshot) -> SnapshotDiff:
    """Report what ``b`` added to and removed from ``a``."""
    products_a, products_b = a.product_ids(), b.product_ids()
    categories_a, categories_b = a.category_ids(), b.category_ids()
    return SnapshotDiff(
        added_products=_missing_from(products_b, products_a),
        removed_products=_missing_from(products_a, products_b),
        added_categories=_missing_from(categories_b, categories_a),
        removed_categories=_missing_from(categories_a, categories_b),
    )
