"""
Shared pytest fixtures: manual clock, repositories and wired services.
"""
from dataclasses import dataclass
from typing import Callable, Optional

import pytest

from app.config import AppConfig
from application.audit_service import AuditLog
from application.bill_edit_service import BillEditService
from application.billing_service import BillingService
from application.catalog_service import CatalogService
from application.checkin_service import CheckInService
from application.checkout_service import CheckOutService
from application.clock import ManualClock, StoreLocks
from application.order_service import OrderService
from application.report_service import ReportService
from application.room_service import RoomService
from domain.action_log import Actor
from domain.product import Product
from domain.room import Room
from infrastructure.database import build_engine
from infrastructure.memory_store import InMemoryKaraokeRepository
from infrastructure.repository import KaraokeRepository
from infrastructure.sqlite_repo import SQLiteKaraokeRepository

STORE = "store-a"
OTHER_STORE = "store-b"
ALICE = Actor(user_id="u-alice", name="Alice")
BOB = Actor(user_id="u-bob", name="Bob")

TEST_CONFIG = {
    "version": "test",
    "billing": {
        "time_rounding_minutes": 5,
        "staff_service_minutes": 10,
        "service_block_minutes": 10,
        "vat_rate": 10,
    },
    "bill_editing": {
        "staff_edit_window_minutes": 5,
        "admin_auto_approve_minutes": 0,
        "hard_bill_lock_minutes": 1440,
    },
    "inventory": {"low_stock_threshold": 5},
    "sessions": {"force_end_targets": ["AVAILABLE", "CLEANING", "OUT_OF_SERVICE"]},
    "stores": {OTHER_STORE: {"billing": {"vat_rate": 0}}},
}


@dataclass
class Services:
    repo: KaraokeRepository
    clock: ManualClock
    audit: AuditLog
    billing: BillingService
    catalog: CatalogService
    checkin: CheckInService
    checkout: CheckOutService
    orders: OrderService
    rooms: RoomService
    bill_edits: BillEditService
    reports: ReportService


def wire_services(repo: KaraokeRepository, clock: ManualClock, config: AppConfig) -> Services:
    locks = StoreLocks()
    audit = AuditLog(repo, clock)
    billing = BillingService(config)
    return Services(
        repo=repo,
        clock=clock,
        audit=audit,
        billing=billing,
        catalog=CatalogService(repo, audit, locks),
        checkin=CheckInService(repo, billing, audit, clock, locks),
        checkout=CheckOutService(config, repo, billing, audit, clock, locks),
        orders=OrderService(repo, billing, audit, clock, locks),
        rooms=RoomService(config, repo, audit, clock, locks),
        bill_edits=BillEditService(config, repo, billing, audit, clock, locks),
        reports=ReportService(repo),
    )


def seed_store(repo: KaraokeRepository, store_id: str = STORE) -> None:
    """Two rooms, one bottled drink and one hourly service."""
    repo.save_room(Room(room_id="r1", store_id=store_id, name="Room 1", hourly_rate=150000))
    repo.save_room(Room(room_id="r2", store_id=store_id, name="Room 2", hourly_rate=200000))
    repo.save_product(
        Product(
            product_id="beer",
            store_id=store_id,
            name="Beer",
            sell_price=30000,
            cost_price=15000,
            stock=20,
            unit="can",
        )
    )
    repo.save_product(
        Product(
            product_id="singer",
            store_id=store_id,
            name="Singer",
            sell_price=50000,
            cost_price=20000,
            is_time_based=True,
        )
    )


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(raw=TEST_CONFIG)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def memory_repo() -> InMemoryKaraokeRepository:
    return InMemoryKaraokeRepository()


@pytest.fixture
def sqlite_repo(tmp_path) -> SQLiteKaraokeRepository:
    engine = build_engine(tmp_path / "test.db")
    yield SQLiteKaraokeRepository(engine=engine)
    engine.dispose()


@pytest.fixture
def build_services(config, clock) -> Callable[[Optional[KaraokeRepository]], Services]:
    def _build(repo: Optional[KaraokeRepository] = None) -> Services:
        repo = repo or InMemoryKaraokeRepository()
        seed_store(repo)
        return wire_services(repo, clock, config)

    return _build


@pytest.fixture
def services(build_services) -> Services:
    """Services over a seeded in-memory store."""
    return build_services()


@pytest.fixture(params=["memory", "sqlite"])
def any_services(request, build_services, tmp_path) -> Services:
    """Services over each repository backend."""
    if request.param == "memory":
        return build_services(InMemoryKaraokeRepository())
    return build_services(SQLiteKaraokeRepository(engine=build_engine(tmp_path / "parity.db")))
