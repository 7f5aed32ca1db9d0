"""SQLModel ORM tables mirroring the domain entities."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class RoomModel(SQLModel, table=True):
    store_id: str = Field(primary_key=True)
    room_id: str = Field(primary_key=True)
    name: str
    room_type: str = Field(default="NORMAL")
    hourly_rate: float = Field(default=0.0)
    status: str = Field(default="AVAILABLE")


class ProductModel(SQLModel, table=True):
    store_id: str = Field(primary_key=True)
    product_id: str = Field(primary_key=True)
    name: str
    category: str = Field(default="")
    unit: str = Field(default="")
    sell_price: float = 0.0
    cost_price: float = 0.0
    stock: int = 0
    is_time_based: bool = Field(default=False)


class _OrderColumns(SQLModel):
    started_at: datetime
    ended_at: Optional[datetime] = None
    status: str = Field(default="OPEN")
    items_json: str = Field(default="[]")  # JSON: [{"id": ..., "kind": "discrete"|"metered", ...}]
    vat_rate: float = 0.0
    hourly_rate: float = 0.0
    discount: float = 0.0
    sub_total: float = 0.0
    vat_amount: float = 0.0
    total_amount: float = 0.0
    total_profit: float = 0.0
    edit_count: int = 0
    print_count: int = 0


class LiveOrderModel(_OrderColumns, table=True):
    """Live-session index: at most one OPEN order per room."""
    store_id: str = Field(primary_key=True)
    room_id: str = Field(primary_key=True)
    order_id: str = Field(index=True)


class OrderModel(_OrderColumns, table=True):
    """Archive of PAID / CANCELLED orders."""
    store_id: str = Field(primary_key=True)
    order_id: str = Field(primary_key=True)
    room_id: str = Field(index=True)


class BillEditRequestModel(SQLModel, table=True):
    store_id: str = Field(primary_key=True)
    request_id: str = Field(primary_key=True)
    order_id: str = Field(index=True)
    requested_by_id: str
    requested_by_name: str
    reason: str
    status: str = Field(default="PENDING")
    created_at: datetime
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ActionLogModel(SQLModel, table=True):
    entry_id: str = Field(primary_key=True)
    store_id: str = Field(index=True)
    actor_id: str
    actor_name: str
    action: str
    target: str
    description: str
    created_at: datetime = Field(index=True)
