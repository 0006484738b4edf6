# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Canonical hashing for menu snapshot documents.

Purpose:
    Provide the single hashing procedure used both when a snapshot is created
    and when it is re-verified. The digest must be identical for identical
    logical content on any host and at any time.

Design:
    * Serialization is canonical JSON: keys sorted at every level, compact
      separators, UTF-8 without ASCII escaping. Field order therefore never
      depends on how a mapping was built or how the store returned it
      (JSONB does not preserve key order).
    * Non-JSON scalars are normalized before encoding: ``Decimal`` to its
      plain string form, ``UUID`` to its canonical string, ``datetime`` to
      ISO-8601 in UTC, tuples and sets to lists.
    * Floats that are not finite are rejected rather than encoded as the
      non-standard ``NaN``/``Infinity`` tokens.

Layer:
    domain/services
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Final
from uuid import UUID

HASH_ALGORITHM: Final[str] = "sha256"
HASH_HEX_LENGTH: Final[int] = 64


def _default(value: Any) -> Any:
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"non-finite decimal cannot be hashed: {value!r}")
        return format(value, "f")
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"value of type {type(value).__name__} is not hashable as JSON")


def canonical_json(data: Any) -> str:
    """Return the canonical JSON text for ``data``.

    Args:
        data: JSON-compatible structure (mappings, sequences, scalars).

    Returns:
        Compact, key-sorted JSON text.

    Raises:
        TypeError: If ``data`` contains a value with no canonical encoding.
        ValueError: If ``data`` contains a non-finite number.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
        default=_default,
    )


def compute_snapshot_hash(data: Any) -> str:
    """Return the lowercase hex SHA-256 digest of ``data``'s canonical JSON."""
    material = canonical_json(data).encode("utf-8")
    return hashlib.sha256(material).hexdigest()


def hashes_match(stored: str, computed: str) -> bool:
    """Compare two hex digests case-insensitively."""
    return stored.strip().lower() == computed.strip().lower()
