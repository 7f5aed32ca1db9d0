"""SQLite-backed repository implementation."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Type, Union

from sqlalchemy import literal_column
from sqlalchemy.engine import Engine
from sqlmodel import select

from domain.action_log import ActionLogEntry, ActionType
from domain.bill_request import BillEditRequest, BillEditStatus
from domain.line_item import line_item_from_dict, line_item_to_dict
from domain.order import Order, OrderStatus
from domain.product import Product
from domain.room import Room, RoomStatus, RoomType
from .repository import KaraokeRepository
from .database import build_engine, init_db, session_factory
from .models import (
    ActionLogModel,
    BillEditRequestModel,
    LiveOrderModel,
    OrderModel,
    ProductModel,
    RoomModel,
)

_OrderModelType = Union[LiveOrderModel, OrderModel]


def _to_column(value: Optional[datetime]) -> Optional[datetime]:
    """Columns hold aware UTC; the domain works in naive UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _from_column(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SQLiteKaraokeRepository(KaraokeRepository):
    def __init__(self, engine: Optional[Engine] = None, db_path: Optional[str] = None):
        self.engine = engine or build_engine(db_path)
        init_db(self.engine)
        self._session = session_factory(self.engine)

    # Rooms ----------------------------------------------------------------
    def get_room(self, store_id: str, room_id: str) -> Optional[Room]:
        with self._session() as session:
            model = session.get(RoomModel, {"store_id": store_id, "room_id": room_id})
            if not model:
                return None
            return self._room_from_model(model)

    def list_rooms(self, store_id: str) -> Iterable[Room]:
        with self._session() as session:
            statement = select(RoomModel).where(RoomModel.store_id == store_id).order_by(RoomModel.name)
            return [self._room_from_model(model) for model in session.exec(statement).all()]

    def save_room(self, room: Room) -> None:
        with self._session() as session, session.begin():
            self._put_room(session, room)

    def delete_room(self, store_id: str, room_id: str) -> None:
        with self._session() as session, session.begin():
            model = session.get(RoomModel, {"store_id": store_id, "room_id": room_id})
            if model:
                session.delete(model)

    # Catalog --------------------------------------------------------------
    def get_product(self, store_id: str, product_id: str) -> Optional[Product]:
        with self._session() as session:
            model = session.get(ProductModel, {"store_id": store_id, "product_id": product_id})
            if not model:
                return None
            return self._product_from_model(model)

    def list_products(self, store_id: str) -> Iterable[Product]:
        with self._session() as session:
            statement = (
                select(ProductModel).where(ProductModel.store_id == store_id).order_by(ProductModel.name)
            )
            return [self._product_from_model(model) for model in session.exec(statement).all()]

    def save_product(self, product: Product) -> None:
        with self._session() as session, session.begin():
            model = session.get(ProductModel, {"store_id": product.store_id, "product_id": product.product_id})
            if not model:
                model = ProductModel(store_id=product.store_id, product_id=product.product_id, name=product.name)
            model.name = product.name
            model.category = product.category
            model.unit = product.unit
            model.sell_price = product.sell_price
            model.cost_price = product.cost_price
            model.stock = product.stock
            model.is_time_based = product.is_time_based
            session.add(model)

    def delete_product(self, store_id: str, product_id: str) -> None:
        with self._session() as session, session.begin():
            model = session.get(ProductModel, {"store_id": store_id, "product_id": product_id})
            if model:
                session.delete(model)

    # Live-session index ---------------------------------------------------
    def get_live_order(self, store_id: str, room_id: str) -> Optional[Order]:
        with self._session() as session:
            model = session.get(LiveOrderModel, {"store_id": store_id, "room_id": room_id})
            if not model:
                return None
            return self._order_from_model(model)

    def list_live_orders(self, store_id: str) -> Iterable[Order]:
        with self._session() as session:
            statement = select(LiveOrderModel).where(LiveOrderModel.store_id == store_id)
            return [self._order_from_model(model) for model in session.exec(statement).all()]

    def save_live_order(self, order: Order) -> None:
        with self._session() as session, session.begin():
            self._put_order(session, LiveOrderModel, order)

    def open_session(self, room: Room, order: Order) -> None:
        with self._session() as session, session.begin():
            self._put_order(session, LiveOrderModel, order)
            self._put_room(session, room)

    def close_session(self, room: Room, order: Order, stock_deductions: Dict[str, int]) -> None:
        with self._session() as session, session.begin():
            for product_id, quantity in stock_deductions.items():
                product = session.get(ProductModel, {"store_id": order.store_id, "product_id": product_id})
                if product is None:
                    continue
                product.stock -= quantity
                session.add(product)
            self._put_order(session, OrderModel, order)
            live = session.get(LiveOrderModel, {"store_id": order.store_id, "room_id": order.room_id})
            if live:
                session.delete(live)
            self._put_room(session, room)

    def move_session(self, order: Order, from_room: Room, to_room: Room) -> None:
        with self._session() as session, session.begin():
            live = session.get(LiveOrderModel, {"store_id": from_room.store_id, "room_id": from_room.room_id})
            if live:
                session.delete(live)
                session.flush()
            self._put_order(session, LiveOrderModel, order)
            self._put_room(session, from_room)
            self._put_room(session, to_room)

    # Order archive --------------------------------------------------------
    def get_order(self, store_id: str, order_id: str) -> Optional[Order]:
        with self._session() as session:
            model = session.get(OrderModel, {"store_id": store_id, "order_id": order_id})
            if not model:
                return None
            return self._order_from_model(model)

    def list_orders(
        self,
        store_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Iterable[Order]:
        with self._session() as session:
            statement = (
                select(OrderModel)
                .where(OrderModel.store_id == store_id)
                .order_by(OrderModel.ended_at.asc())
            )
            if since:
                statement = statement.where(OrderModel.ended_at >= _to_column(since))
            if until:
                statement = statement.where(OrderModel.ended_at <= _to_column(until))
            return [self._order_from_model(model) for model in session.exec(statement).all()]

    def save_order(self, order: Order) -> None:
        with self._session() as session, session.begin():
            self._put_order(session, OrderModel, order)

    def save_amendment(self, order: Order, request: Optional[BillEditRequest]) -> None:
        with self._session() as session, session.begin():
            self._put_order(session, OrderModel, order)
            if request is not None:
                self._put_bill_request(session, request)

    # Bill edit requests ---------------------------------------------------
    def get_bill_request(self, store_id: str, request_id: str) -> Optional[BillEditRequest]:
        with self._session() as session:
            model = session.get(BillEditRequestModel, {"store_id": store_id, "request_id": request_id})
            if not model:
                return None
            return self._request_from_model(model)

    def list_bill_requests(
        self,
        store_id: str,
        status: Optional[BillEditStatus] = None,
    ) -> Iterable[BillEditRequest]:
        with self._session() as session:
            statement = (
                select(BillEditRequestModel)
                .where(BillEditRequestModel.store_id == store_id)
                .order_by(BillEditRequestModel.created_at.desc())
            )
            if status:
                statement = statement.where(BillEditRequestModel.status == status.value)
            return [self._request_from_model(model) for model in session.exec(statement).all()]

    def save_bill_request(self, request: BillEditRequest) -> None:
        with self._session() as session, session.begin():
            self._put_bill_request(session, request)

    # Audit log ------------------------------------------------------------
    def add_action_log(self, entry: ActionLogEntry) -> None:
        with self._session() as session, session.begin():
            session.add(
                ActionLogModel(
                    entry_id=entry.entry_id,
                    store_id=entry.store_id,
                    actor_id=entry.actor_id,
                    actor_name=entry.actor_name,
                    action=entry.action.value,
                    target=entry.target,
                    description=entry.description,
                    created_at=_to_column(entry.created_at),
                )
            )

    def list_action_logs(
        self,
        store_id: str,
        action: Optional[ActionType] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Iterable[ActionLogEntry]:
        with self._session() as session:
            statement = (
                select(ActionLogModel)
                .where(ActionLogModel.store_id == store_id)
                # rowid breaks ties between entries written in the same instant
                .order_by(ActionLogModel.created_at.desc(), literal_column("rowid").desc())
            )
            if action:
                statement = statement.where(ActionLogModel.action == action.value)
            if since:
                statement = statement.where(ActionLogModel.created_at >= _to_column(since))
            if until:
                statement = statement.where(ActionLogModel.created_at <= _to_column(until))
            return [
                ActionLogEntry(
                    entry_id=model.entry_id,
                    store_id=model.store_id,
                    actor_id=model.actor_id,
                    actor_name=model.actor_name,
                    action=ActionType(model.action),
                    target=model.target,
                    description=model.description,
                    created_at=_from_column(model.created_at),
                )
                for model in session.exec(statement).all()
            ]

    # Helpers --------------------------------------------------------------
    def _put_room(self, session, room: Room) -> None:
        model = session.get(RoomModel, {"store_id": room.store_id, "room_id": room.room_id})
        if not model:
            model = RoomModel(store_id=room.store_id, room_id=room.room_id, name=room.name)
        model.name = room.name
        model.room_type = room.room_type.value
        model.hourly_rate = room.hourly_rate
        model.status = room.status.value
        session.add(model)

    def _put_order(self, session, model_cls: Type[_OrderModelType], order: Order) -> None:
        if model_cls is LiveOrderModel:
            key = {"store_id": order.store_id, "room_id": order.room_id}
        else:
            key = {"store_id": order.store_id, "order_id": order.order_id}
        model = session.get(model_cls, key)
        if not model:
            model = model_cls(
                store_id=order.store_id,
                room_id=order.room_id,
                order_id=order.order_id,
                started_at=_to_column(order.started_at),
            )
        model.order_id = order.order_id
        model.room_id = order.room_id
        model.started_at = _to_column(order.started_at)
        model.ended_at = _to_column(order.ended_at)
        model.status = order.status.value
        model.items_json = json.dumps([line_item_to_dict(item) for item in order.items], ensure_ascii=False)
        model.vat_rate = order.vat_rate
        model.hourly_rate = order.hourly_rate
        model.discount = order.discount
        model.sub_total = order.sub_total
        model.vat_amount = order.vat_amount
        model.total_amount = order.total_amount
        model.total_profit = order.total_profit
        model.edit_count = order.edit_count
        model.print_count = order.print_count
        session.add(model)

    def _put_bill_request(self, session, request: BillEditRequest) -> None:
        model = session.get(
            BillEditRequestModel, {"store_id": request.store_id, "request_id": request.request_id}
        )
        if not model:
            model = BillEditRequestModel(
                store_id=request.store_id,
                request_id=request.request_id,
                order_id=request.order_id,
                requested_by_id=request.requested_by_id,
                requested_by_name=request.requested_by_name,
                reason=request.reason,
                created_at=_to_column(request.created_at),
            )
        model.status = request.status.value
        model.resolved_by = request.resolved_by
        model.resolved_at = _to_column(request.resolved_at)
        model.completed_at = _to_column(request.completed_at)
        session.add(model)

    def _room_from_model(self, model: RoomModel) -> Room:
        return Room(
            room_id=model.room_id,
            store_id=model.store_id,
            name=model.name,
            hourly_rate=model.hourly_rate,
            room_type=RoomType(model.room_type),
            status=RoomStatus(model.status),
        )

    def _product_from_model(self, model: ProductModel) -> Product:
        return Product(
            product_id=model.product_id,
            store_id=model.store_id,
            name=model.name,
            sell_price=model.sell_price,
            cost_price=model.cost_price,
            stock=model.stock,
            unit=model.unit,
            category=model.category,
            is_time_based=model.is_time_based,
        )

    def _order_from_model(self, model: _OrderModelType) -> Order:
        return Order(
            order_id=model.order_id,
            store_id=model.store_id,
            room_id=model.room_id,
            started_at=_from_column(model.started_at),
            status=OrderStatus(model.status),
            ended_at=_from_column(model.ended_at),
            items=[line_item_from_dict(data) for data in json.loads(model.items_json)],
            vat_rate=model.vat_rate,
            hourly_rate=model.hourly_rate,
            discount=model.discount,
            sub_total=model.sub_total,
            vat_amount=model.vat_amount,
            total_amount=model.total_amount,
            total_profit=model.total_profit,
            edit_count=model.edit_count,
            print_count=model.print_count,
        )

    def _request_from_model(self, model: BillEditRequestModel) -> BillEditRequest:
        return BillEditRequest(
            request_id=model.request_id,
            store_id=model.store_id,
            order_id=model.order_id,
            requested_by_id=model.requested_by_id,
            requested_by_name=model.requested_by_name,
            reason=model.reason,
            created_at=_from_column(model.created_at),
            status=BillEditStatus(model.status),
            resolved_by=model.resolved_by,
            resolved_at=_from_column(model.resolved_at),
            completed_at=_from_column(model.completed_at),
        )
