"""Order line items: discrete goods and time-metered services."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Union


@dataclass
class DiscreteItem:
    """Goods billed by quantity. Prices are snapshotted from the catalog when added."""

    item_id: str
    product_id: str
    name: str
    sell_price: float
    cost_price: float
    quantity: int

    kind = "discrete"


@dataclass
class MeteredItem:
    """Hourly service billed by elapsed time; prices are per hour.

    ``ended_at`` of None means the item is still accruing.
    """

    item_id: str
    product_id: str
    name: str
    sell_price: float
    cost_price: float
    started_at: datetime
    ended_at: Optional[datetime] = None

    kind = "metered"

    @property
    def is_running(self) -> bool:
        return self.ended_at is None

    def stop(self, now: datetime) -> bool:
        if self.ended_at is not None:
            return False
        self.ended_at = now
        return True

    def resume(self) -> bool:
        if self.ended_at is None:
            return False
        self.ended_at = None
        return True

    def shift_start(self, delta_minutes: int) -> None:
        self.started_at = self.started_at + timedelta(minutes=delta_minutes)


LineItem = Union[DiscreteItem, MeteredItem]


def line_item_to_dict(item: LineItem) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": item.item_id,
        "kind": item.kind,
        "productId": item.product_id,
        "name": item.name,
        "sellPrice": item.sell_price,
        "costPrice": item.cost_price,
    }
    if isinstance(item, MeteredItem):
        data["startedAt"] = item.started_at.isoformat()
        data["endedAt"] = item.ended_at.isoformat() if item.ended_at else None
    else:
        data["quantity"] = item.quantity
    return data


def line_item_from_dict(data: Dict[str, Any]) -> LineItem:
    kind = data.get("kind", "discrete")
    common = dict(
        item_id=data["id"],
        product_id=data["productId"],
        name=data["name"],
        sell_price=float(data["sellPrice"]),
        cost_price=float(data.get("costPrice", 0.0)),
    )
    if kind == "metered":
        ended_at = data.get("endedAt")
        return MeteredItem(
            started_at=_parse_datetime(data["startedAt"]),
            ended_at=_parse_datetime(ended_at) if ended_at else None,
            **common,
        )
    if kind != "discrete":
        raise ValueError(f"Unknown line item kind: {kind}")
    return DiscreteItem(quantity=int(data["quantity"]), **common)


def _parse_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
