# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Actor identity value used to attribute ledger appends and publishes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ActorIdentity:
    """Result of resolving "who is acting" for the current call.

    Attributes:
        actor_id: Resolved actor identifier. ``None`` with ``ok=True`` means
            the caller is a system context with no user attached.
        ok: False when the identity provider could not resolve the caller;
            attributed operations must then refuse to write.
    """

    actor_id: str | None
    ok: bool = True

    @classmethod
    def system(cls) -> ActorIdentity:
        """Return a resolved identity with no attached user."""
        return cls(actor_id=None, ok=True)

    @classmethod
    def unresolved(cls) -> ActorIdentity:
        """Return an identity that failed to resolve."""
        return cls(actor_id=None, ok=False)
