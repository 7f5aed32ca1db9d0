"""Room lifecycle service: status changes, forced session end, room moves, room admin."""
from __future__ import annotations

import logging
from typing import List, Optional, TYPE_CHECKING
from uuid import uuid4

from domain.action_log import ActionType, Actor
from domain.errors import InvalidState, NoActiveSession, NotFound, TargetUnavailable
from domain.order import Order
from domain.room import Room, RoomStatus, RoomType, SESSION_STATUSES

if TYPE_CHECKING:
    from app.config import AppConfig
    from application.audit_service import AuditLog
    from application.clock import Clock, StoreLocks
    from infrastructure.repository import KaraokeRepository

logger = logging.getLogger(__name__)


class RoomService:
    def __init__(
        self,
        config: "AppConfig",
        repository: "KaraokeRepository",
        audit: "AuditLog",
        clock: "Clock",
        locks: "StoreLocks",
    ):
        self.config = config
        self.repo = repository
        self.audit = audit
        self.clock = clock
        self.locks = locks

    def update_config(self, config: "AppConfig") -> None:
        self.config = config

    # Queries --------------------------------------------------------------
    def get_room(self, store_id: str, room_id: str) -> Room:
        room = self.repo.get_room(store_id, room_id)
        if not room:
            raise NotFound(f"Room {room_id} not found")
        return room

    def list_rooms(self, store_id: str) -> List[Room]:
        return list(self.repo.list_rooms(store_id))

    # Room admin -----------------------------------------------------------
    def create_room(
        self,
        store_id: str,
        actor: Actor,
        name: str,
        hourly_rate: float,
        room_type: RoomType = RoomType.NORMAL,
        room_id: Optional[str] = None,
    ) -> Room:
        room = Room(
            room_id=room_id or str(uuid4()),
            store_id=store_id,
            name=name,
            hourly_rate=hourly_rate,
            room_type=room_type,
        )
        with self.locks.hold(store_id):
            if self.repo.get_room(store_id, room.room_id):
                raise InvalidState(f"Room {room.room_id} already exists")
            self.repo.save_room(room)
            self.audit.record(store_id, actor, ActionType.CREATE, room.name, "Added room")
        return room

    def update_room(
        self,
        store_id: str,
        actor: Actor,
        room_id: str,
        name: Optional[str] = None,
        hourly_rate: Optional[float] = None,
        room_type: Optional[RoomType] = None,
    ) -> Room:
        """Edit room details. A rate change affects sessions checked out afterwards."""
        with self.locks.hold(store_id):
            room = self.get_room(store_id, room_id)
            if name is not None:
                room.name = name
            if hourly_rate is not None:
                room.hourly_rate = hourly_rate
            if room_type is not None:
                room.room_type = room_type
            self.repo.save_room(room)
            self.audit.record(store_id, actor, ActionType.UPDATE, room.name, "Updated room details")
        return room

    def delete_room(self, store_id: str, actor: Actor, room_id: str) -> None:
        with self.locks.hold(store_id):
            room = self.get_room(store_id, room_id)
            if self.repo.get_live_order(store_id, room_id):
                raise InvalidState(f"Room {room.name} has an open session")
            self.repo.delete_room(store_id, room_id)
            self.audit.record(store_id, actor, ActionType.DELETE, room.name, "Removed room")

    # State machine --------------------------------------------------------
    def set_status(self, store_id: str, room_id: str, status: RoomStatus, actor: Actor) -> Room:
        """
        Plain status change.

        AVAILABLE / CLEANING / OUT_OF_SERVICE move freely while no session is
        open. OCCUPIED and PAYMENT_PENDING can only be toggled between each
        other while a session is open; opening or ending a session goes through
        start_session, check_out or force_end_session.
        """
        with self.locks.hold(store_id):
            room = self.get_room(store_id, room_id)
            has_session = self.repo.get_live_order(store_id, room_id) is not None
            if has_session != (status in SESSION_STATUSES):
                if has_session:
                    raise InvalidState(
                        f"Room {room.name} has an open session; end it before setting {status.value}"
                    )
                raise InvalidState(f"Room {room.name} has no open session; cannot set {status.value}")
            if room.status == status:
                return room
            previous = room.status
            room.status = status
            self.repo.save_room(room)
            self.audit.record(
                store_id,
                actor,
                ActionType.UPDATE,
                room.name,
                f"Status {previous.value} -> {status.value}",
            )
        logger.info("Room %s (store %s): %s -> %s", room.name, store_id, previous.value, status.value)
        return room

    def force_end_session(
        self,
        store_id: str,
        room_id: str,
        target_status: RoomStatus,
        actor: Actor,
    ) -> Optional[Order]:
        """
        Operator override: cancel any open session without billing it and set
        the room to ``target_status``.

        The cancelled order is archived with zero totals and no stock is
        deducted. Returns the cancelled order, or None when no session was open.
        Callers are expected to have obtained human confirmation first.
        """
        if target_status not in self.config.force_end_targets or target_status in SESSION_STATUSES:
            raise InvalidState(f"Cannot force a room into {target_status.value}")

        with self.locks.hold(store_id):
            room = self.get_room(store_id, room_id)
            order = self.repo.get_live_order(store_id, room_id)
            previous = room.status
            room.status = target_status
            if order:
                order.mark_cancelled(self.clock.now())
                self.repo.close_session(room, order, {})
                self.audit.record(
                    store_id,
                    actor,
                    ActionType.DELETE,
                    room.name,
                    f"Cancelled open session (force end), room set to {target_status.value}",
                )
            else:
                self.repo.save_room(room)
                self.audit.record(
                    store_id,
                    actor,
                    ActionType.UPDATE,
                    room.name,
                    f"Status {previous.value} -> {target_status.value} (force)",
                )

        if order:
            logger.warning(
                "Session %s in room %s (store %s) force-ended without billing",
                order.order_id,
                room.name,
                store_id,
            )
        return order

    def move_session(self, store_id: str, from_room_id: str, to_room_id: str, actor: Actor) -> Order:
        """Move an open session to another room, keeping its id and elapsed time."""
        with self.locks.hold(store_id):
            from_room = self.get_room(store_id, from_room_id)
            to_room = self.get_room(store_id, to_room_id)
            order = self.repo.get_live_order(store_id, from_room_id)
            if not order:
                raise NoActiveSession(f"Room {from_room.name} has no open session")
            if (
                to_room_id == from_room_id
                or to_room.status != RoomStatus.AVAILABLE
                or self.repo.get_live_order(store_id, to_room_id)
            ):
                raise TargetUnavailable(f"Room {to_room.name} is not available")

            order.room_id = to_room_id
            from_room.mark_available()
            to_room.mark_occupied()
            self.repo.move_session(order, from_room, to_room)
            self.audit.record(
                store_id,
                actor,
                ActionType.UPDATE,
                "Room move",
                f"Moved session from {from_room.name} to {to_room.name}",
            )

        logger.info("Session %s moved %s -> %s (store %s)", order.order_id, from_room.name, to_room.name, store_id)
        return order
