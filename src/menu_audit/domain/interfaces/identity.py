# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Ambient identity capability.

The services never read a global session. Callers inject a ``CurrentActor``
that answers "who is performing this call"; the ledger refuses to write when
it answers ``ok=False``.
"""

from __future__ import annotations

from typing import Protocol

from menu_audit.domain.entities.identity import ActorIdentity


class CurrentActor(Protocol):
    """Callable that resolves the acting identity for the current call."""

    async def __call__(self) -> ActorIdentity:
        """Return the resolved identity.

        Implementations may also raise; the ledger treats any exception as a
        failed resolution.
        """
        raise NotImplementedError


class StaticActor:
    """``CurrentActor`` that always answers with a fixed identity.

    Used for system jobs (e.g., scheduled publishes) and in tests.
    """

    def __init__(self, identity: ActorIdentity) -> None:
        self._identity = identity

    async def __call__(self) -> ActorIdentity:
        return self._identity
