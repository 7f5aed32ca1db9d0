"""In-memory data store intended for the prototype stage and tests.

Entities are copied on the way in and on the way out so callers never hold a
reference into the store; a service that fails half-way leaves no trace, the
same as a rolled-back SQLite transaction.
"""
from __future__ import annotations

from copy import deepcopy
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from domain.action_log import ActionLogEntry, ActionType
from domain.bill_request import BillEditRequest, BillEditStatus
from domain.order import Order
from domain.product import Product
from domain.room import Room
from .repository import KaraokeRepository

# (store_id, entity_id)
_Key = Tuple[str, str]


class InMemoryKaraokeRepository(KaraokeRepository):
    def __init__(self):
        self._rooms: Dict[_Key, Room] = {}
        self._products: Dict[_Key, Product] = {}
        self._live_orders: Dict[_Key, Order] = {}  # keyed by room id
        self._orders: Dict[_Key, Order] = {}
        self._bill_requests: Dict[_Key, BillEditRequest] = {}
        self._action_logs: List[ActionLogEntry] = []

    # Rooms ---------------------------------------------------------------
    def get_room(self, store_id: str, room_id: str) -> Optional[Room]:
        return deepcopy(self._rooms.get((store_id, room_id)))

    def list_rooms(self, store_id: str) -> Iterable[Room]:
        return [deepcopy(room) for (sid, _), room in self._rooms.items() if sid == store_id]

    def save_room(self, room: Room) -> None:
        self._rooms[(room.store_id, room.room_id)] = deepcopy(room)

    def delete_room(self, store_id: str, room_id: str) -> None:
        self._rooms.pop((store_id, room_id), None)

    # Catalog -------------------------------------------------------------
    def get_product(self, store_id: str, product_id: str) -> Optional[Product]:
        return deepcopy(self._products.get((store_id, product_id)))

    def list_products(self, store_id: str) -> Iterable[Product]:
        return [deepcopy(p) for (sid, _), p in self._products.items() if sid == store_id]

    def save_product(self, product: Product) -> None:
        self._products[(product.store_id, product.product_id)] = deepcopy(product)

    def delete_product(self, store_id: str, product_id: str) -> None:
        self._products.pop((store_id, product_id), None)

    # Live-session index --------------------------------------------------
    def get_live_order(self, store_id: str, room_id: str) -> Optional[Order]:
        return deepcopy(self._live_orders.get((store_id, room_id)))

    def list_live_orders(self, store_id: str) -> Iterable[Order]:
        return [deepcopy(o) for (sid, _), o in self._live_orders.items() if sid == store_id]

    def save_live_order(self, order: Order) -> None:
        self._live_orders[(order.store_id, order.room_id)] = deepcopy(order)

    def open_session(self, room: Room, order: Order) -> None:
        self._live_orders[(order.store_id, order.room_id)] = deepcopy(order)
        self._rooms[(room.store_id, room.room_id)] = deepcopy(room)

    def close_session(self, room: Room, order: Order, stock_deductions: Dict[str, int]) -> None:
        # Build every replacement first; the swaps below cannot fail part-way.
        products = {}
        for product_id, quantity in stock_deductions.items():
            product = self._products.get((order.store_id, product_id))
            if product is None:
                continue
            updated = deepcopy(product)
            updated.stock -= quantity
            products[(order.store_id, product_id)] = updated
        archived = deepcopy(order)
        saved_room = deepcopy(room)

        self._products.update(products)
        self._orders[(order.store_id, order.order_id)] = archived
        self._live_orders.pop((order.store_id, order.room_id), None)
        self._rooms[(room.store_id, room.room_id)] = saved_room

    def move_session(self, order: Order, from_room: Room, to_room: Room) -> None:
        moved = deepcopy(order)
        self._live_orders.pop((from_room.store_id, from_room.room_id), None)
        self._live_orders[(to_room.store_id, to_room.room_id)] = moved
        self._rooms[(from_room.store_id, from_room.room_id)] = deepcopy(from_room)
        self._rooms[(to_room.store_id, to_room.room_id)] = deepcopy(to_room)

    # Order archive -------------------------------------------------------
    def get_order(self, store_id: str, order_id: str) -> Optional[Order]:
        return deepcopy(self._orders.get((store_id, order_id)))

    def list_orders(
        self,
        store_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Iterable[Order]:
        selected = []
        for (sid, _), order in self._orders.items():
            if sid != store_id:
                continue
            if since and (order.ended_at is None or order.ended_at < since):
                continue
            if until and (order.ended_at is None or order.ended_at > until):
                continue
            selected.append(deepcopy(order))
        selected.sort(key=lambda o: o.ended_at or o.started_at)
        return selected

    def save_order(self, order: Order) -> None:
        self._orders[(order.store_id, order.order_id)] = deepcopy(order)

    def save_amendment(self, order: Order, request: Optional[BillEditRequest]) -> None:
        self._orders[(order.store_id, order.order_id)] = deepcopy(order)
        if request is not None:
            self._bill_requests[(request.store_id, request.request_id)] = deepcopy(request)

    # Bill edit requests --------------------------------------------------
    def get_bill_request(self, store_id: str, request_id: str) -> Optional[BillEditRequest]:
        return deepcopy(self._bill_requests.get((store_id, request_id)))

    def list_bill_requests(
        self,
        store_id: str,
        status: Optional[BillEditStatus] = None,
    ) -> Iterable[BillEditRequest]:
        selected = [
            deepcopy(req)
            for (sid, _), req in self._bill_requests.items()
            if sid == store_id and (status is None or req.status == status)
        ]
        selected.sort(key=lambda req: req.created_at, reverse=True)
        return selected

    def save_bill_request(self, request: BillEditRequest) -> None:
        self._bill_requests[(request.store_id, request.request_id)] = deepcopy(request)

    # Audit log -----------------------------------------------------------
    def add_action_log(self, entry: ActionLogEntry) -> None:
        self._action_logs.append(entry)

    def list_action_logs(
        self,
        store_id: str,
        action: Optional[ActionType] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Iterable[ActionLogEntry]:
        for entry in reversed(self._action_logs):
            if entry.store_id != store_id:
                continue
            if action and entry.action != action:
                continue
            if since and entry.created_at < since:
                continue
            if until and entry.created_at > until:
                continue
            yield entry
