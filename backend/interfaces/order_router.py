"""Routers for the live order of an open room session."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from domain.errors import BillingEngineError
from domain.order import Order
from interfaces import deps
from interfaces.context import RequestContext, raise_http, request_context
from interfaces.serializers import serialize_invoice, serialize_order

router = APIRouter(prefix="/rooms/{room_id}/order", tags=["orders"])

order_service = deps.order_service


class AddItemRequest(BaseModel):
    productId: str = Field(..., min_length=1)
    quantity: int = Field(1, description="Negative values reduce an existing line; ignored for hourly services")


class ShiftStartRequest(BaseModel):
    minutes: int = Field(..., description="Signed shift in minutes; negative moves the start earlier")


def _order_payload(order: Optional[Order]) -> Dict[str, Any]:
    # A missing session is not an error for item changes; the UI just refreshes.
    return {"order": serialize_order(order) if order else None}


@router.get("")
def get_live_order(room_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    """Current order with a provisional bill priced at the current time."""
    try:
        invoice = order_service.live_bill(ctx.store_id, room_id)
    except BillingEngineError as exc:
        raise_http(exc)
    order = order_service.get_live_order(ctx.store_id, room_id)
    return {"order": serialize_order(order), "invoice": serialize_invoice(invoice)}


@router.post("/items")
def add_item(room_id: str, payload: AddItemRequest, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    order = order_service.add_item(ctx.store_id, room_id, payload.productId, payload.quantity, ctx.actor)
    return _order_payload(order)


@router.post("/items/{item_id}/stop")
def stop_item(room_id: str, item_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    return _order_payload(order_service.stop_metered_item(ctx.store_id, room_id, item_id, ctx.actor))


@router.post("/items/{item_id}/resume")
def resume_item(room_id: str, item_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    return _order_payload(order_service.resume_metered_item(ctx.store_id, room_id, item_id, ctx.actor))


@router.delete("/items/{item_id}")
def remove_item(room_id: str, item_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    return _order_payload(order_service.remove_item(ctx.store_id, room_id, item_id, ctx.actor))


@router.post("/start")
def shift_session_start(
    room_id: str,
    payload: ShiftStartRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    order = order_service.adjust_session_start(ctx.store_id, room_id, payload.minutes, ctx.actor)
    return _order_payload(order)


@router.post("/items/{item_id}/start")
def shift_item_start(
    room_id: str,
    item_id: str,
    payload: ShiftStartRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    order = order_service.adjust_item_start(ctx.store_id, room_id, item_id, payload.minutes, ctx.actor)
    return _order_payload(order)
