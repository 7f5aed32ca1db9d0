"""Routers for the product catalog and purchase restocking."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from domain.errors import BillingEngineError
from interfaces import deps
from interfaces.context import RequestContext, raise_http, request_context
from interfaces.serializers import serialize_product

router = APIRouter(prefix="/products", tags=["catalog"])

catalog_service = deps.catalog_service


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sellPrice: float = Field(..., ge=0, description="Unit price, or hourly price for time-based services")
    costPrice: float = Field(0.0, ge=0)
    stock: int = Field(0, ge=0)
    unit: str = ""
    category: str = ""
    isTimeBased: bool = False
    productId: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    sellPrice: Optional[float] = Field(None, ge=0)
    costPrice: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    category: Optional[str] = None
    isTimeBased: Optional[bool] = None


class RestockRequest(BaseModel):
    quantity: int = Field(..., gt=0)
    importPrice: float = Field(..., ge=0)
    newSellPrice: Optional[float] = Field(None, ge=0)


@router.get("")
def list_products(ctx: RequestContext = Depends(request_context)) -> List[Dict[str, Any]]:
    return [serialize_product(product) for product in catalog_service.list_products(ctx.store_id)]


@router.post("")
def create_product(payload: ProductCreate, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    product = catalog_service.add_product(
        ctx.store_id,
        ctx.actor,
        name=payload.name,
        sell_price=payload.sellPrice,
        cost_price=payload.costPrice,
        stock=payload.stock,
        unit=payload.unit,
        category=payload.category,
        is_time_based=payload.isTimeBased,
        product_id=payload.productId,
    )
    return serialize_product(product)


@router.get("/{product_id}")
def get_product(product_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        return serialize_product(catalog_service.get_product(ctx.store_id, product_id))
    except BillingEngineError as exc:
        raise_http(exc)


@router.patch("/{product_id}")
def update_product(
    product_id: str,
    payload: ProductUpdate,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    try:
        product = catalog_service.update_product(
            ctx.store_id,
            ctx.actor,
            product_id,
            name=payload.name,
            sell_price=payload.sellPrice,
            cost_price=payload.costPrice,
            stock=payload.stock,
            unit=payload.unit,
            category=payload.category,
            is_time_based=payload.isTimeBased,
        )
    except (BillingEngineError, ValueError) as exc:
        raise_http(exc)
    return serialize_product(product)


@router.delete("/{product_id}")
def delete_product(product_id: str, ctx: RequestContext = Depends(request_context)) -> Dict[str, Any]:
    try:
        catalog_service.delete_product(ctx.store_id, ctx.actor, product_id)
    except BillingEngineError as exc:
        raise_http(exc)
    return {"productId": product_id, "deleted": True}


@router.post("/{product_id}/restock")
def restock_product(
    product_id: str,
    payload: RestockRequest,
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    try:
        product = catalog_service.restock(
            ctx.store_id,
            ctx.actor,
            product_id,
            payload.quantity,
            payload.importPrice,
            payload.newSellPrice,
        )
    except (BillingEngineError, ValueError) as exc:
        raise_http(exc)
    return serialize_product(product)
