# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Unit of Work (Application Layer).

Purpose:
    Define the transactional boundary the audit services run in. One
    service operation opens one UnitOfWork, resolves the repositories it
    needs, and either commits (appends) or simply exits (reads).

    No SQLAlchemy imports here; the concrete implementation lives in
    ``menu_audit.adapters.uow``.

Layer:
    application
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from types import TracebackType
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class UnitOfWork(Protocol, AbstractAsyncContextManager["UnitOfWork"]):
    """Transactional scope shared by the ledger and snapshot services."""

    async def __aenter__(self) -> UnitOfWork:
        """Open the scope and return the active UoW."""
        raise NotImplementedError

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Close the scope, rolling back when an exception escaped."""
        raise NotImplementedError

    async def commit(self) -> None:
        """Make pending appends durable."""
        raise NotImplementedError

    async def rollback(self) -> None:
        """Discard pending appends."""
        raise NotImplementedError

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the repository registered for ``repo_type``.

        Args:
            repo_type: Repository Protocol (e.g. ``PriceLedgerRepository``)
                or concrete class used as the lookup key.
        """
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], UnitOfWork]
"""Zero-argument callable returning a fresh, unentered UnitOfWork."""
