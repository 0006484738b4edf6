# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Audit Trail Domain Exceptions

Purpose:
    Error taxonomy for the price ledger and menu snapshot services.

Layer: domain/exceptions

Notes:
    - Validation errors (InvalidPrice, MissingIdentifier, InvalidVersion) are
      raised before any store I/O.
    - Repositories translate driver errors into the StoreFailure family; raw
      SQLAlchemy exceptions never cross the adapter boundary.
    - A hash mismatch is not an error. Verification reports it as data.
"""
from __future__ import annotations

from .base import DomainError


class InvalidPrice(DomainError):
    """Price is negative or not a finite decimal."""

    code = "INVALID_PRICE"


class MissingIdentifier(DomainError):
    """Product, organization or snapshot identifier (or slug) is empty."""

    code = "MISSING_IDENTIFIER"


class InvalidVersion(DomainError):
    """Snapshot version number is below 1."""

    code = "INVALID_VERSION"


class Unauthenticated(DomainError):
    """Acting identity could not be resolved for an attributed append."""

    code = "UNAUTHENTICATED"


class NotFound(DomainError):
    """Referenced organization, snapshot or slug does not exist."""

    code = "NOT_FOUND"


class StoreFailure(DomainError):
    """Underlying store read or write failed.

    The driver's message is preserved in ``details["store_message"]``.
    """

    code = "STORE_FAILURE"
    retryable: bool = False


class SnapshotVersionConflict(StoreFailure):
    """Another publish claimed the same ``(organization_id, version)`` first.

    Callers may retry ``create_snapshot``; the next attempt reads the new
    highest version.
    """

    code = "SNAPSHOT_VERSION_CONFLICT"
    retryable = True


class ImmutabilityViolation(StoreFailure):
    """Store rejected an UPDATE or DELETE on an append-only table."""

    code = "IMMUTABILITY_VIOLATION"


__all__ = [
    "ImmutabilityViolation",
    "InvalidPrice",
    "InvalidVersion",
    "MissingIdentifier",
    "NotFound",
    "SnapshotVersionConflict",
    "StoreFailure",
    "Unauthenticated",
]
