"""JSON shapes returned by the routers."""
from __future__ import annotations

from typing import Any, Dict, Optional

from domain.action_log import ActionLogEntry
from domain.bill_request import BillEditRequest
from domain.line_item import line_item_to_dict
from domain.order import Order
from domain.product import Product
from domain.room import Room
from domain.tariff import Invoice


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_room(room: Room, live_order: Optional[Order] = None) -> Dict[str, Any]:
    return {
        "roomId": room.room_id,
        "storeId": room.store_id,
        "name": room.name,
        "roomType": room.room_type.value,
        "hourlyRate": room.hourly_rate,
        "status": room.status.value,
        "currentOrderId": live_order.order_id if live_order else None,
        "checkInTime": _iso(live_order.started_at) if live_order else None,
    }


def serialize_product(product: Product) -> Dict[str, Any]:
    return {
        "productId": product.product_id,
        "name": product.name,
        "category": product.category,
        "unit": product.unit,
        "sellPrice": product.sell_price,
        "costPrice": product.cost_price,
        "stock": product.stock,
        "isTimeBased": product.is_time_based,
    }


def serialize_order(order: Order) -> Dict[str, Any]:
    return {
        "orderId": order.order_id,
        "storeId": order.store_id,
        "roomId": order.room_id,
        "status": order.status.value,
        "startedAt": _iso(order.started_at),
        "endedAt": _iso(order.ended_at),
        "items": [line_item_to_dict(item) for item in order.items],
        "vatRate": order.vat_rate,
        "hourlyRate": order.hourly_rate,
        "discount": order.discount,
        "subTotal": order.sub_total,
        "vatAmount": order.vat_amount,
        "totalAmount": order.total_amount,
        "totalProfit": order.total_profit,
        "editCount": order.edit_count,
        "printCount": order.print_count,
    }


def serialize_invoice(invoice: Invoice) -> Dict[str, Any]:
    return {
        "roomMinutes": invoice.room_minutes,
        "roomCharge": invoice.room_charge,
        "itemRevenue": invoice.item_revenue,
        "itemCost": invoice.item_cost,
        "subTotal": invoice.sub_total,
        "vatAmount": invoice.vat_amount,
        "totalAmount": invoice.total_amount,
        "totalProfit": invoice.total_profit,
    }


def serialize_request(request: BillEditRequest) -> Dict[str, Any]:
    return {
        "requestId": request.request_id,
        "orderId": request.order_id,
        "requestedById": request.requested_by_id,
        "requestedByName": request.requested_by_name,
        "reason": request.reason,
        "status": request.status.value,
        "createdAt": _iso(request.created_at),
        "resolvedBy": request.resolved_by,
        "resolvedAt": _iso(request.resolved_at),
        "completedAt": _iso(request.completed_at),
    }


def serialize_log(entry: ActionLogEntry) -> Dict[str, Any]:
    return {
        "entryId": entry.entry_id,
        "actorId": entry.actor_id,
        "actorName": entry.actor_name,
        "action": entry.action.value,
        "target": entry.target,
        "description": entry.description,
        "createdAt": _iso(entry.created_at),
    }
