"""Abstract repository interfaces for persistence.

Every read and write is scoped by ``store_id``; a record belonging to another
store is indistinguishable from a missing one. Operations that touch more than
one entity are exposed as single unit-of-work methods so that each backend can
apply them atomically.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, Optional

from domain.action_log import ActionLogEntry, ActionType
from domain.bill_request import BillEditRequest, BillEditStatus
from domain.order import Order
from domain.product import Product
from domain.room import Room


class KaraokeRepository(ABC):
    """Unified gateway so memory store / SQLite share the same API."""

    # Rooms ---------------------------------------------------------------
    @abstractmethod
    def get_room(self, store_id: str, room_id: str) -> Optional[Room]:
        raise NotImplementedError

    @abstractmethod
    def list_rooms(self, store_id: str) -> Iterable[Room]:
        raise NotImplementedError

    @abstractmethod
    def save_room(self, room: Room) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_room(self, store_id: str, room_id: str) -> None:
        raise NotImplementedError

    # Catalog -------------------------------------------------------------
    @abstractmethod
    def get_product(self, store_id: str, product_id: str) -> Optional[Product]:
        raise NotImplementedError

    @abstractmethod
    def list_products(self, store_id: str) -> Iterable[Product]:
        raise NotImplementedError

    @abstractmethod
    def save_product(self, product: Product) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_product(self, store_id: str, product_id: str) -> None:
        raise NotImplementedError

    # Live-session index --------------------------------------------------
    @abstractmethod
    def get_live_order(self, store_id: str, room_id: str) -> Optional[Order]:
        raise NotImplementedError

    @abstractmethod
    def list_live_orders(self, store_id: str) -> Iterable[Order]:
        raise NotImplementedError

    @abstractmethod
    def save_live_order(self, order: Order) -> None:
        """Persist accumulator changes of an order already in the live index."""
        raise NotImplementedError

    @abstractmethod
    def open_session(self, room: Room, order: Order) -> None:
        """Insert ``order`` into the live index and save ``room`` together."""
        raise NotImplementedError

    @abstractmethod
    def close_session(self, room: Room, order: Order, stock_deductions: Dict[str, int]) -> None:
        """Archive ``order``, drop it from the live index, decrement stock and save ``room``.

        Either every write is applied or none is.
        """
        raise NotImplementedError

    @abstractmethod
    def move_session(self, order: Order, from_room: Room, to_room: Room) -> None:
        """Re-key a live order from ``from_room`` to ``to_room`` and save both rooms."""
        raise NotImplementedError

    # Order archive -------------------------------------------------------
    @abstractmethod
    def get_order(self, store_id: str, order_id: str) -> Optional[Order]:
        raise NotImplementedError

    @abstractmethod
    def list_orders(
        self,
        store_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Iterable[Order]:
        """Archived orders whose ``ended_at`` lies within the optional bounds."""
        raise NotImplementedError

    @abstractmethod
    def save_order(self, order: Order) -> None:
        raise NotImplementedError

    @abstractmethod
    def save_amendment(self, order: Order, request: Optional[BillEditRequest]) -> None:
        """Replace an archived order and, when given, its completed edit request atomically."""
        raise NotImplementedError

    # Bill edit requests --------------------------------------------------
    @abstractmethod
    def get_bill_request(self, store_id: str, request_id: str) -> Optional[BillEditRequest]:
        raise NotImplementedError

    @abstractmethod
    def list_bill_requests(
        self,
        store_id: str,
        status: Optional[BillEditStatus] = None,
    ) -> Iterable[BillEditRequest]:
        raise NotImplementedError

    @abstractmethod
    def save_bill_request(self, request: BillEditRequest) -> None:
        raise NotImplementedError

    # Audit log -----------------------------------------------------------
    @abstractmethod
    def add_action_log(self, entry: ActionLogEntry) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_action_logs(
        self,
        store_id: str,
        action: Optional[ActionType] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Iterable[ActionLogEntry]:
        """Entries newest first."""
        raise NotImplementedError
