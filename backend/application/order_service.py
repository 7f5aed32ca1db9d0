"""Live order accumulator: item changes while a room session is open.

Mutations addressed at a missing order or line item are silent no-ops rather
than errors. The front desk UI can race a removal or a checkout from another
terminal, and such a call must simply do nothing.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, TYPE_CHECKING
from uuid import uuid4

from domain.action_log import ActionType, Actor
from domain.errors import NoActiveSession, NotFound
from domain.order import Order
from domain.tariff import Invoice

if TYPE_CHECKING:
    from application.audit_service import AuditLog
    from application.billing_service import BillingService
    from application.clock import Clock, StoreLocks
    from infrastructure.repository import KaraokeRepository

logger = logging.getLogger(__name__)

# Returns a description of the change, or None when nothing changed.
_Mutation = Callable[[Order], Optional[str]]


class OrderService:
    def __init__(
        self,
        repository: "KaraokeRepository",
        billing_service: "BillingService",
        audit: "AuditLog",
        clock: "Clock",
        locks: "StoreLocks",
    ):
        self.repo = repository
        self.billing_service = billing_service
        self.audit = audit
        self.clock = clock
        self.locks = locks

    # Queries --------------------------------------------------------------
    def get_live_order(self, store_id: str, room_id: str) -> Optional[Order]:
        return self.repo.get_live_order(store_id, room_id)

    def list_live_orders(self, store_id: str):
        return list(self.repo.list_live_orders(store_id))

    def live_bill(self, store_id: str, room_id: str) -> Invoice:
        """Provisional invoice of an open session priced at the current time."""
        room = self.repo.get_room(store_id, room_id)
        if not room:
            raise NotFound(f"Room {room_id} not found")
        order = self.repo.get_live_order(store_id, room_id)
        if not order:
            raise NoActiveSession(f"Room {room.name} has no open session")
        return self.billing_service.price_order(order, room.hourly_rate, self.clock.now())

    # Mutations ------------------------------------------------------------
    def add_item(self, store_id: str, room_id: str, product_id: str, quantity: int, actor: Actor) -> Optional[Order]:
        def mutate(order: Order) -> Optional[str]:
            product = self.repo.get_product(store_id, product_id)
            if not product:
                return None
            if not order.add_product(product, quantity, str(uuid4()), self.clock.now()):
                return None
            if product.is_time_based:
                return f"Started service {product.name}"
            return f"Added {product.name} x{quantity}"

        return self._mutate(store_id, room_id, actor, mutate)

    def stop_metered_item(self, store_id: str, room_id: str, item_id: str, actor: Actor) -> Optional[Order]:
        def mutate(order: Order) -> Optional[str]:
            if not order.stop_metered_item(item_id, self.clock.now()):
                return None
            return f"Stopped service {order.find_item(item_id).name}"

        return self._mutate(store_id, room_id, actor, mutate)

    def resume_metered_item(self, store_id: str, room_id: str, item_id: str, actor: Actor) -> Optional[Order]:
        def mutate(order: Order) -> Optional[str]:
            if not order.resume_metered_item(item_id):
                return None
            return f"Resumed service {order.find_item(item_id).name}"

        return self._mutate(store_id, room_id, actor, mutate)

    def remove_item(self, store_id: str, room_id: str, item_id: str, actor: Actor) -> Optional[Order]:
        def mutate(order: Order) -> Optional[str]:
            removed = order.remove_item(item_id)
            if removed is None:
                return None
            return f"Removed {removed.name}"

        return self._mutate(store_id, room_id, actor, mutate)

    def adjust_session_start(self, store_id: str, room_id: str, delta_minutes: int, actor: Actor) -> Optional[Order]:
        def mutate(order: Order) -> Optional[str]:
            if delta_minutes == 0:
                return None
            order.shift_start(delta_minutes)
            return f"Shifted session start by {delta_minutes:+d} min"

        return self._mutate(store_id, room_id, actor, mutate)

    def adjust_item_start(
        self,
        store_id: str,
        room_id: str,
        item_id: str,
        delta_minutes: int,
        actor: Actor,
    ) -> Optional[Order]:
        def mutate(order: Order) -> Optional[str]:
            if delta_minutes == 0 or not order.shift_item_start(item_id, delta_minutes):
                return None
            return f"Shifted {order.find_item(item_id).name} start by {delta_minutes:+d} min"

        return self._mutate(store_id, room_id, actor, mutate)

    # Helpers --------------------------------------------------------------
    def _mutate(self, store_id: str, room_id: str, actor: Actor, mutate: _Mutation) -> Optional[Order]:
        with self.locks.hold(store_id):
            order = self.repo.get_live_order(store_id, room_id)
            if not order:
                logger.debug("No open session in room %s (store %s); ignoring item change", room_id, store_id)
                return None
            description = mutate(order)
            if description is None:
                logger.debug("Item change on order %s had no effect", order.order_id)
                return order
            self.repo.save_live_order(order)
            room = self.repo.get_room(store_id, room_id)
            self.audit.record(store_id, actor, ActionType.UPDATE, room.name if room else room_id, description)
        return order
