"""Routers for the room lifecycle: room admin, session start, checkout, force end, move."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from domain.errors import BillingEngineError
from domain.room import RoomStatus, RoomType
from interfaces import deps
from interfaces.context import RequestContext, raise_http, request_context
from interfaces.serializers import serialize_invoice, serialize_order, serialize_room

router = APIRouter(prefix="/rooms", tags=["rooms"])

room_service = deps.room_service
checkin_service = deps.checkin_service
checkout_service = deps.checkout_service
order_service = deps.order_service


class CreateRoomRequest(BaseModel):
    name: str = Field(..., min_length=1)
    hourlyRate: float = Field(..., ge=0)
    roomType: RoomType = RoomType.NORMAL
    roomId: Optional[str] = Field(None, description="Optional caller-chosen id")


class UpdateRoomRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    hourlyRate: Optional[float] = Field(None, ge=0)
    roomType: Optional[RoomType] = None


class SetStatusRequest(BaseModel):
    status: RoomStatus


class ForceEndRequest(BaseModel):
    targetStatus: RoomStatus


class MoveSessionRequest(BaseModel):
    toRoomId: str = Field(..., min_length=1)


def _room_payload(ctx: RequestContext, room) -> Dict[str, Any]:
    return serialize_room(room, order_service.get_live_order(ctx.store_id, room.room_id))


@router.get("")
def list_rooms(ctx: RequestContext = Depends(request_context)) -> List[Dict[str, Any]]:
    live = {order.room_id: order for order in order_service.list_live_orders(ctx.store_id)}
    return [serialize_room(room, live.get(room.room_id)) for room in room_service.list_rooms(ctx.store_id)]


@router.post("")
def create_room(payload: CreateRoomRequest, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        room = room_service.create_room(
            ctx.store_id,
            ctx.actor,
            name=payload.name,
            hourly_rate=payload.hourlyRate,
            room_type=payload.roomType,
            room_id=payload.roomId,
        )
    except BillingEngineError as exc:
        raise_http(exc)
    return serialize_room(room)


@router.get("/{room_id}")
def get_room(room_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        return _room_payload(ctx, room_service.get_room(ctx.store_id, room_id))
    except BillingEngineError as exc:
        raise_http(exc)


@router.patch("/{room_id}")
def update_room(
    room_id: str,
    payload: UpdateRoomRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    try:
        room = room_service.update_room(
            ctx.store_id,
            ctx.actor,
            room_id,
            name=payload.name,
            hourly_rate=payload.hourlyRate,
            room_type=payload.roomType,
        )
    except BillingEngineError as exc:
        raise_http(exc)
    return _room_payload(ctx, room)


@router.delete("/{room_id}")
def delete_room(room_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        room_service.delete_room(ctx.store_id, ctx.actor, room_id)
    except BillingEngineError as exc:
        raise_http(exc)
    return {"roomId": room_id, "deleted": True}


@router.put("/{room_id}/status")
def set_status(
    room_id: str,
    payload: SetStatusRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    try:
        room = room_service.set_status(ctx.store_id, room_id, payload.status, ctx.actor)
    except BillingEngineError as exc:
        raise_http(exc)
    return _room_payload(ctx, room)


@router.post("/{room_id}/session")
def start_session(room_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        order = checkin_service.start_session(ctx.store_id, room_id, ctx.actor)
    except BillingEngineError as exc:
        raise_http(exc)
    return serialize_order(order)


@router.post("/{room_id}/checkout")
def check_out(room_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        receipt = checkout_service.check_out(ctx.store_id, room_id, ctx.actor)
    except BillingEngineError as exc:
        raise_http(exc)
    return {"order": serialize_order(receipt.order), "invoice": serialize_invoice(receipt.invoice)}


@router.post("/{room_id}/force-end")
def force_end_session(
    room_id: str,
    payload: ForceEndRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    """Cancel the open session without billing it. The UI confirms with the operator first."""
    try:
        cancelled = room_service.force_end_session(ctx.store_id, room_id, payload.targetStatus, ctx.actor)
    except BillingEngineError as exc:
        raise_http(exc)
    return {
        "room": _room_payload(ctx, room_service.get_room(ctx.store_id, room_id)),
        "cancelledOrder": serialize_order(cancelled) if cancelled else None,
    }


@router.post("/{room_id}/move")
def move_session(
    room_id: str,
    payload: MoveSessionRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    try:
        order = room_service.move_session(ctx.store_id, room_id, payload.toRoomId, ctx.actor)
    except BillingEngineError as exc:
        raise_http(exc)
    return serialize_order(order)
