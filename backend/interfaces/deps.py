"""Shared singletons for settings, repository, clock, and services.

The repository backend (memory / sqlite) is chosen from the ``storage``
section of app_config.yaml.
"""
from __future__ import annotations

import logging

from app.config import AppConfig, get_settings
from application.audit_service import AuditLog
from application.bill_edit_service import BillEditService
from application.billing_service import BillingService
from application.catalog_service import CatalogService
from application.checkin_service import CheckInService
from application.checkout_service import CheckOutService
from application.clock import Clock, StoreLocks
from application.order_service import OrderService
from application.report_service import ReportService
from application.room_service import RoomService
from infrastructure.memory_store import InMemoryKaraokeRepository
from infrastructure.repository import KaraokeRepository
from infrastructure.sqlite_repo import SQLiteKaraokeRepository

logger = logging.getLogger(__name__)

settings = get_settings()


def _create_repository() -> KaraokeRepository:
    """Create the repository selected by configuration."""
    backend = settings.database_backend
    if backend == "memory":
        return InMemoryKaraokeRepository()
    elif backend == "sqlite":
        return SQLiteKaraokeRepository(db_path=settings.sqlite_path)
    else:
        raise ValueError(f"Unknown database backend: {backend}. Supported: sqlite, memory")


repository = _create_repository()
clock = Clock()
locks = StoreLocks()

audit_log = AuditLog(repository, clock)
billing_service = BillingService(settings)
catalog_service = CatalogService(repository, audit_log, locks)
checkin_service = CheckInService(repository, billing_service, audit_log, clock, locks)
checkout_service = CheckOutService(settings, repository, billing_service, audit_log, clock, locks)
order_service = OrderService(repository, billing_service, audit_log, clock, locks)
room_service = RoomService(settings, repository, audit_log, clock, locks)
bill_edit_service = BillEditService(settings, repository, billing_service, audit_log, clock, locks)
report_service = ReportService(repository)

logger.info("Database backend: %s", settings.database_backend)


def apply_settings(new_settings: AppConfig) -> None:
    """Update global settings reference and refresh dependent singletons."""
    global settings
    settings = new_settings
    billing_service.update_config(new_settings)
    checkout_service.update_config(new_settings)
    room_service.update_config(new_settings)
    bill_edit_service.update_config(new_settings)


def reload_settings_from_disk() -> AppConfig:
    """Force re-read of app_config.yaml and propagate changes."""
    get_settings.cache_clear()
    fresh = get_settings()
    apply_settings(fresh)
    return fresh
