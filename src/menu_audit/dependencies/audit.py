# Copyright (c) Menu Audit.
# SPDX-License-Identifier: MIT
"""Dependency wiring for the audit services.

Overview:
    Composition root that turns ``Settings`` into ready-to-use
    :class:`PriceLedgerService` and :class:`MenuSnapshotService` instances
    backed by the SQLAlchemy Unit of Work.

Layer:
    dependencies

Design:
    * Always return the real service types; tests inject fakes by passing
      their own ``uow_factory`` instead of patching this module.
    * Services receive a Unit of Work factory, never an instance. Every
      operation builds its own UoW, so overlapping calls never share a
      session.
    * The engine/sessionmaker is process-global and initialized lazily.
    * Root JSON logging is configured once from ``Settings.log_level``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

from menu_audit.adapters.uow import SqlAlchemyUnitOfWork
from menu_audit.application.services.menu_snapshot_service import MenuSnapshotService
from menu_audit.application.services.price_ledger_service import PriceLedgerService
from menu_audit.application.uow import UnitOfWorkFactory
from menu_audit.config.settings import Settings, get_settings
from menu_audit.domain.interfaces.identity import CurrentActor
from menu_audit.infrastructure.database.session import (
    get_sessionmaker,
    init_engine_and_sessionmaker,
)
from menu_audit.infrastructure.logging.logger import configure_root_logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditServices:
    """Both audit services sharing one configuration."""

    ledger: PriceLedgerService
    snapshots: MenuSnapshotService


def build_unit_of_work(settings: Settings | None = None) -> SqlAlchemyUnitOfWork:
    """Construct a UnitOfWork bound to the configured database.

    Behavior:
        - Initializes the global engine/sessionmaker on first use.
        - Each call returns a new UoW instance (one per service operation).
    """
    cfg = settings or get_settings()
    init_engine_and_sessionmaker(cfg)
    return SqlAlchemyUnitOfWork(session_factory=get_sessionmaker())


def build_audit_services(
    current_actor: CurrentActor,
    *,
    settings: Settings | None = None,
    uow_factory: UnitOfWorkFactory | None = None,
) -> AuditServices:
    """Wire the ledger and snapshot services.

    Args:
        current_actor: Identity resolver used for ledger attribution and
            snapshot ``published_by``.
        settings: Optional settings; defaults to :func:`get_settings`.
        uow_factory: Optional zero-argument callable returning a fresh Unit
            of Work; defaults to :func:`build_unit_of_work`.

    Returns:
        AuditServices: The wired services.
    """
    cfg = settings or get_settings()
    configure_root_logging(cfg.log_level)

    factory: UnitOfWorkFactory = (
        uow_factory if uow_factory is not None else partial(build_unit_of_work, cfg)
    )
    ledger = PriceLedgerService(factory, current_actor, settings=cfg)
    snapshots = MenuSnapshotService(factory, ledger, current_actor, settings=cfg)

    logger.info(
        "audit.services.wired",
        extra={
            "environment": cfg.environment.value,
            "uow_factory": getattr(factory, "__name__", type(factory).__name__),
        },
    )
    return AuditServices(ledger=ledger, snapshots=snapshots)
