# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""
Base Domain Exceptions.

Summary:
    Canonical base class for audit-trail exceptions. Every error carries a
    stable ``code`` and an optional machine-readable ``details`` payload so
    callers can render it as a tagged failure without string matching.

Layer:
    domain/exceptions
"""
from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all domain/application exceptions."""

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Return the tagged failure shape ``{code, message, details}``."""
        return {"code": self.code, "message": self.message, "details": dict(self.details)}
