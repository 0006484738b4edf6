# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Input validation shared by the ledger and snapshot services.

All checks run before any store I/O and raise the matching domain error.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from menu_audit.domain.exceptions.audit import (
    InvalidPrice,
    InvalidVersion,
    MissingIdentifier,
)


def require_identifier(value: Any, *, field: str) -> str:
    """Return ``value`` as a stripped, non-empty string.

    Raises:
        MissingIdentifier: If ``value`` is ``None`` or blank.
    """
    text = str(value).strip() if value is not None else ""
    if not text:
        raise MissingIdentifier(f"{field} is required", details={"field": field})
    return text


def require_price(value: Decimal | int | float | str) -> Decimal:
    """Return ``value`` as a finite, non-negative ``Decimal``.

    Floats are converted through ``str`` so ``99.9`` becomes ``Decimal("99.9")``
    rather than its binary expansion.

    Raises:
        InvalidPrice: If the value is negative, non-numeric or not finite.
    """
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidPrice("price must be a number", details={"price": str(value)}) from exc
    if not price.is_finite():
        raise InvalidPrice("price must be finite", details={"price": str(value)})
    if price < 0:
        raise InvalidPrice("price must not be negative", details={"price": str(price)})
    return price


def require_version(version: int) -> int:
    """Return ``version`` when it is a positive integer.

    Raises:
        InvalidVersion: If ``version`` is not an ``int`` (``bool`` included)
            or is below 1.
    """
    if isinstance(version, bool) or not isinstance(version, int):
        raise InvalidVersion("version must be an integer", details={"version": repr(version)})
    if version < 1:
        raise InvalidVersion("version must be >= 1", details={"version": version})
    return version


def normalize_currency(value: str | None, *, default: str) -> str:
    """Return an upper-cased currency code, falling back to ``default``."""
    code = (value or "").strip().upper()
    return code or default.upper()
