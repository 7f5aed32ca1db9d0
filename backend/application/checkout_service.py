"""Check-out workflow service: prices the session, archives the bill, frees the room."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from domain.action_log import ActionType, Actor
from domain.errors import NoActiveSession, NotFound
from domain.order import Order
from domain.tariff import Invoice

if TYPE_CHECKING:
    from app.config import AppConfig
    from application.audit_service import AuditLog
    from application.billing_service import BillingService
    from application.clock import Clock, StoreLocks
    from infrastructure.repository import KaraokeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutReceipt:
    order: Order
    invoice: Invoice


class CheckOutService:
    def __init__(
        self,
        config: "AppConfig",
        repository: "KaraokeRepository",
        billing_service: "BillingService",
        audit: "AuditLog",
        clock: "Clock",
        locks: "StoreLocks",
    ):
        self.config = config
        self.repo = repository
        self.billing_service = billing_service
        self.audit = audit
        self.clock = clock
        self.locks = locks

    def update_config(self, config: "AppConfig") -> None:
        self.config = config

    def check_out(self, store_id: str, room_id: str, actor: Actor) -> CheckoutReceipt:
        """
        Close the room's session as PAID.

        Stock deduction, archival, live-slot removal and the room status flip
        are committed as one repository unit of work.
        """
        with self.locks.hold(store_id):
            room = self.repo.get_room(store_id, room_id)
            if not room:
                raise NotFound(f"Room {room_id} not found")
            order = self.repo.get_live_order(store_id, room_id)
            if not order:
                raise NoActiveSession(f"Room {room.name} has no open session")

            ended_at = self.clock.now()
            invoice = self.billing_service.price_order(order, room.hourly_rate, ended_at)
            order.mark_paid(ended_at, room.hourly_rate, invoice)
            deductions = order.consumed_quantities()
            room.mark_cleaning()
            self.repo.close_session(room, order, deductions)
            self.audit.record(
                store_id,
                actor,
                ActionType.UPDATE,
                room.name,
                f"Checked out: {round(invoice.total_amount):,} total, {invoice.room_minutes} billed minutes",
            )

        logger.info(
            "Room %s checked out (store %s): order %s total %.2f",
            room.name,
            store_id,
            order.order_id,
            order.total_amount,
        )
        self._warn_low_stock(store_id, deductions)
        return CheckoutReceipt(order=order, invoice=invoice)

    def get_order(self, store_id: str, order_id: str) -> Order:
        order = self.repo.get_order(store_id, order_id)
        if not order:
            raise NotFound(f"Order {order_id} not found")
        return order

    def list_orders(
        self,
        store_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[Order]:
        return list(self.repo.list_orders(store_id, since=since, until=until))

    def reprint(self, store_id: str, order_id: str, actor: Actor) -> Order:
        """Count a bill reprint."""
        with self.locks.hold(store_id):
            order = self.get_order(store_id, order_id)
            order.print_count += 1
            self.repo.save_order(order)
            self.audit.record(store_id, actor, ActionType.PRINT, f"Bill {order_id}", "Reprinted bill")
        return order

    def _warn_low_stock(self, store_id: str, deductions: dict) -> None:
        threshold = self.config.low_stock_threshold
        for product_id in deductions:
            product = self.repo.get_product(store_id, product_id)
            if product and product.stock <= threshold:
                logger.warning(
                    "Low stock for %s in store %s: %s %s left",
                    product.name,
                    store_id,
                    product.stock,
                    product.unit or "units",
                )
