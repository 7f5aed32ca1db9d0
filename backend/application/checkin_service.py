"""Session start (room check-in) workflow service."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import uuid4

from domain.action_log import ActionType, Actor
from domain.errors import InvalidState, NotFound
from domain.order import Order
from domain.room import RoomStatus

if TYPE_CHECKING:
    from application.audit_service import AuditLog
    from application.billing_service import BillingService
    from application.clock import Clock, StoreLocks
    from infrastructure.repository import KaraokeRepository

logger = logging.getLogger(__name__)


class CheckInService:
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

    def start_session(self, store_id: str, room_id: str, actor: Actor) -> Order:
        """Open a new session on an AVAILABLE room."""
        with self.locks.hold(store_id):
            room = self.repo.get_room(store_id, room_id)
            if not room:
                raise NotFound(f"Room {room_id} not found")
            if self.repo.get_live_order(store_id, room_id):
                raise InvalidState(f"Room {room.name} already has an open session")
            if room.status != RoomStatus.AVAILABLE:
                raise InvalidState(f"Room {room.name} is {room.status.value}, not AVAILABLE")

            order = Order(
                order_id=str(uuid4()),
                store_id=store_id,
                room_id=room_id,
                started_at=self.clock.now(),
                vat_rate=self.billing_service.vat_rate(store_id),
            )
            room.mark_occupied()
            self.repo.open_session(room, order)
            self.audit.record(store_id, actor, ActionType.CREATE, room.name, "Opened new session")

        logger.info("Session %s opened in room %s (store %s)", order.order_id, room.name, store_id)
        return order
