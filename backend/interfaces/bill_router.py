"""Routers for archived bills: listing, reprint, edit requests and amendments."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from domain.action_log import SYSTEM_ACTOR
from domain.bill_request import BillEditDecision, BillEditStatus
from domain.errors import BillingEngineError
from domain.line_item import DiscreteItem, LineItem, MeteredItem
from domain.order import Order
from interfaces import deps
from interfaces.context import RequestContext, parse_time, raise_http, request_context
from interfaces.serializers import serialize_order, serialize_request

router = APIRouter(tags=["bills"])

checkout_service = deps.checkout_service
bill_edit_service = deps.bill_edit_service


class EditRequestCreate(BaseModel):
    reason: str = Field(..., min_length=1)


class ResolveRequest(BaseModel):
    decision: BillEditDecision


class AmendedItem(BaseModel):
    id: str = Field(..., min_length=1, description="Existing item id, or a new one for added lines")
    kind: str = Field("discrete", pattern="^(discrete|metered)$")
    productId: str
    name: str
    sellPrice: float = Field(..., ge=0)
    costPrice: float = Field(0.0, ge=0)
    quantity: Optional[int] = Field(None, ge=1)
    startedAt: Optional[str] = None
    endedAt: Optional[str] = None


class AmendmentRequest(BaseModel):
    items: List[AmendedItem]
    startedAt: Optional[str] = None
    endedAt: Optional[str] = None
    requestId: Optional[str] = None


def _to_line_item(payload: AmendedItem) -> LineItem:
    if payload.kind == "metered":
        started_at = parse_time(payload.startedAt, "startedAt")
        if started_at is None:
            raise HTTPException(status_code=422, detail=f"Item {payload.id}: metered items need startedAt")
        return MeteredItem(
            item_id=payload.id,
            product_id=payload.productId,
            name=payload.name,
            sell_price=payload.sellPrice,
            cost_price=payload.costPrice,
            started_at=started_at,
            ended_at=parse_time(payload.endedAt, "endedAt"),
        )
    if payload.quantity is None:
        raise HTTPException(status_code=422, detail=f"Item {payload.id}: discrete items need quantity")
    return DiscreteItem(
        item_id=payload.id,
        product_id=payload.productId,
        name=payload.name,
        sell_price=payload.sellPrice,
        cost_price=payload.costPrice,
        quantity=payload.quantity,
    )


def _editable_order(ctx: RequestContext, order_id: str) -> Order:
    try:
        order = checkout_service.get_order(ctx.store_id, order_id)
    except BillingEngineError as exc:
        raise_http(exc)
    if bill_edit_service.policy(ctx.store_id).is_locked(order):
        raise HTTPException(status_code=423, detail=f"Bill {order_id} is locked against edits")
    return order


# Bills ----------------------------------------------------------------
@router.get("/bills")
def list_bills(
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    ctx: RequestContext = Depends(request_context),
) -> List[Dict[str, Any]]:
    orders = checkout_service.list_orders(
        ctx.store_id,
        since=parse_time(from_, "from"),
        until=parse_time(to, "to"),
    )
    return [serialize_order(order) for order in orders]


@router.get("/bills/{order_id}")
def get_bill(order_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        return serialize_order(checkout_service.get_order(ctx.store_id, order_id))
    except BillingEngineError as exc:
        raise_http(exc)


@router.post("/bills/{order_id}/print")
def reprint_bill(order_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        return serialize_order(checkout_service.reprint(ctx.store_id, order_id, ctx.actor))
    except BillingEngineError as exc:
        raise_http(exc)


@router.put("/bills/{order_id}")
def amend_bill(
    order_id: str,
    payload: AmendmentRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    """
    Replace the items and times of a paid bill and re-price it.

    Staff may amend directly inside the edit window that opens at checkout;
    afterwards an approved ``requestId`` is needed.
    """
    order = _editable_order(ctx, order_id)
    if payload.requestId is None and not bill_edit_service.policy(ctx.store_id).staff_window_open(order):
        raise HTTPException(status_code=403, detail="Edit window closed; an approved edit request is required")

    items = [_to_line_item(item) for item in payload.items]
    try:
        amended = bill_edit_service.apply_amendment(
            ctx.store_id,
            order_id,
            ctx.actor,
            items,
            new_started_at=parse_time(payload.startedAt, "startedAt"),
            new_ended_at=parse_time(payload.endedAt, "endedAt"),
            request_id=payload.requestId,
        )
    except BillingEngineError as exc:
        raise_http(exc)
    return serialize_order(amended)


# Edit requests --------------------------------------------------------
@router.post("/bills/{order_id}/edit-requests")
def create_edit_request(
    order_id: str,
    payload: EditRequestCreate,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    order = _editable_order(ctx, order_id)
    try:
        request = bill_edit_service.request_edit(ctx.store_id, order_id, ctx.actor, payload.reason)
        if bill_edit_service.policy(ctx.store_id).auto_approves(order):
            request = bill_edit_service.resolve_request(
                ctx.store_id,
                request.request_id,
                SYSTEM_ACTOR,
                BillEditDecision.APPROVE,
            )
    except BillingEngineError as exc:
        raise_http(exc)
    return serialize_request(request)


@router.get("/bill-requests")
def list_edit_requests(
    status: Optional[BillEditStatus] = Query(None),
    ctx: RequestContext = Depends(request_context),
) -> List[Dict[str, Any]]:
    return [serialize_request(request) for request in bill_edit_service.list_requests(ctx.store_id, status)]


@router.post("/bill-requests/{request_id}/resolve")
def resolve_edit_request(
    request_id: str,
    payload: ResolveRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    try:
        request = bill_edit_service.resolve_request(ctx.store_id, request_id, ctx.actor, payload.decision)
    except BillingEngineError as exc:
        raise_http(exc)
    return serialize_request(request)
