"""Catalog product as seen by the billing engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Product:
    product_id: str
    store_id: str
    name: str
    sell_price: float
    cost_price: float = 0.0
    stock: int = 0
    unit: str = ""
    category: str = ""
    # Hourly services (staff, musician) are billed by elapsed time, not quantity.
    is_time_based: bool = False

    def restock(self, quantity: int, import_price: float, new_sell_price: Optional[float] = None) -> None:
        """Add a purchased lot; cost price becomes the weighted average of stock on hand and the lot."""
        if quantity <= 0:
            raise ValueError("Restock quantity must be positive")
        current_value = max(self.stock, 0) * self.cost_price
        new_stock = self.stock + quantity
        if new_stock > 0:
            self.cost_price = round((current_value + quantity * import_price) / new_stock)
        self.stock = new_stock
        if new_sell_price and new_sell_price > 0:
            self.sell_price = new_sell_price
