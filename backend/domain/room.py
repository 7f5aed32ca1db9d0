"""Karaoke room (billable unit) domain model."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    CLEANING = "CLEANING"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


# Statuses that require an open order in the live-session index.
SESSION_STATUSES = frozenset({RoomStatus.OCCUPIED, RoomStatus.PAYMENT_PENDING})


class RoomType(str, Enum):
    VIP = "VIP"
    NORMAL = "NORMAL"


@dataclass
class Room:
    room_id: str
    store_id: str
    name: str
    hourly_rate: float = 0.0
    room_type: RoomType = RoomType.NORMAL
    status: RoomStatus = RoomStatus.AVAILABLE

    def mark_occupied(self) -> None:
        self.status = RoomStatus.OCCUPIED

    def mark_cleaning(self) -> None:
        self.status = RoomStatus.CLEANING

    def mark_available(self) -> None:
        self.status = RoomStatus.AVAILABLE
