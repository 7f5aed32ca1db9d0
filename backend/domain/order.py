"""Room order: the live charge accumulator while OPEN, the bill once closed."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from .line_item import DiscreteItem, LineItem, MeteredItem
from .product import Product
from .tariff import Invoice


class OrderStatus(str, Enum):
    OPEN = "OPEN"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


@dataclass
class Order:
    order_id: str
    store_id: str
    room_id: str
    started_at: datetime
    status: OrderStatus = OrderStatus.OPEN
    ended_at: Optional[datetime] = None
    items: List[LineItem] = field(default_factory=list)
    vat_rate: float = 0.0
    hourly_rate: float = 0.0
    discount: float = 0.0
    # Totals stay zero while OPEN and are frozen at PAID/CANCELLED.
    sub_total: float = 0.0
    vat_amount: float = 0.0
    total_amount: float = 0.0
    total_profit: float = 0.0
    edit_count: int = 0
    print_count: int = 0

    def find_item(self, item_id: str) -> Optional[LineItem]:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None

    # Accumulator ---------------------------------------------------------
    def add_product(self, product: Product, quantity: int, item_id: str, now: datetime) -> bool:
        """Add a product to the order. Returns False when nothing changed.

        Every add of a time-based product starts an independent metered run, so
        the same service can be in use several times at once. Discrete goods
        merge into the existing line of the same product.
        """
        if product.is_time_based:
            self.items.append(
                MeteredItem(
                    item_id=item_id,
                    product_id=product.product_id,
                    name=product.name,
                    sell_price=product.sell_price,
                    cost_price=product.cost_price,
                    started_at=now,
                )
            )
            return True

        for index, item in enumerate(self.items):
            if isinstance(item, DiscreteItem) and item.product_id == product.product_id:
                merged = item.quantity + quantity
                if merged <= 0:
                    del self.items[index]
                else:
                    item.quantity = merged
                return True

        if quantity <= 0:
            return False
        self.items.append(
            DiscreteItem(
                item_id=item_id,
                product_id=product.product_id,
                name=product.name,
                sell_price=product.sell_price,
                cost_price=product.cost_price,
                quantity=quantity,
            )
        )
        return True

    def stop_metered_item(self, item_id: str, now: datetime) -> bool:
        item = self.find_item(item_id)
        if not isinstance(item, MeteredItem):
            return False
        return item.stop(now)

    def resume_metered_item(self, item_id: str) -> bool:
        item = self.find_item(item_id)
        if not isinstance(item, MeteredItem):
            return False
        return item.resume()

    def remove_item(self, item_id: str) -> Optional[LineItem]:
        item = self.find_item(item_id)
        if item is not None:
            self.items.remove(item)
        return item

    def shift_start(self, delta_minutes: int) -> None:
        # No bounds check: callers correct clock-entry mistakes before checkout.
        self.started_at = self.started_at + timedelta(minutes=delta_minutes)

    def shift_item_start(self, item_id: str, delta_minutes: int) -> bool:
        item = self.find_item(item_id)
        if not isinstance(item, MeteredItem):
            return False
        item.shift_start(delta_minutes)
        return True

    # Closing -------------------------------------------------------------
    def apply_invoice(self, invoice: Invoice) -> None:
        self.sub_total = invoice.sub_total
        self.vat_amount = invoice.vat_amount
        self.total_amount = invoice.total_amount
        self.total_profit = invoice.total_profit

    def mark_paid(self, ended_at: datetime, hourly_rate: float, invoice: Invoice) -> None:
        self.ended_at = ended_at
        self.hourly_rate = hourly_rate
        self.status = OrderStatus.PAID
        self.apply_invoice(invoice)

    def mark_cancelled(self, ended_at: datetime) -> None:
        """Cancelled sessions are billing-inert: no revenue, no profit."""
        self.ended_at = ended_at
        self.status = OrderStatus.CANCELLED
        self.sub_total = 0.0
        self.vat_amount = 0.0
        self.total_amount = 0.0
        self.total_profit = 0.0

    def consumed_quantities(self) -> dict:
        """Quantity of each discrete product on the bill, keyed by product id."""
        consumed: dict = {}
        for item in self.items:
            if isinstance(item, DiscreteItem):
                consumed[item.product_id] = consumed.get(item.product_id, 0) + item.quantity
        return consumed
