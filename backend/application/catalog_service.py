"""Catalog service: product snapshots for orders and purchase restocking."""
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import uuid4

from application.audit_service import AuditLog
from application.clock import StoreLocks
from domain.action_log import ActionType, Actor
from domain.errors import NotFound
from domain.product import Product
from infrastructure.repository import KaraokeRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("name", "category", "unit", "sell_price", "cost_price", "stock", "is_time_based")


class CatalogService:
    def __init__(self, repository: KaraokeRepository, audit: AuditLog, locks: StoreLocks):
        self.repo = repository
        self.audit = audit
        self.locks = locks

    def get_product(self, store_id: str, product_id: str) -> Product:
        product = self.repo.get_product(store_id, product_id)
        if not product:
            raise NotFound(f"Product {product_id} not found")
        return product

    def list_products(self, store_id: str) -> List[Product]:
        return list(self.repo.list_products(store_id))

    def add_product(
        self,
        store_id: str,
        actor: Actor,
        name: str,
        sell_price: float,
        cost_price: float = 0.0,
        stock: int = 0,
        unit: str = "",
        category: str = "",
        is_time_based: bool = False,
        product_id: Optional[str] = None,
    ) -> Product:
        product = Product(
            product_id=product_id or str(uuid4()),
            store_id=store_id,
            name=name,
            sell_price=sell_price,
            cost_price=cost_price,
            stock=stock,
            unit=unit,
            category=category,
            is_time_based=is_time_based,
        )
        with self.locks.hold(store_id):
            self.repo.save_product(product)
            self.audit.record(store_id, actor, ActionType.CREATE, product.name, "Added product to catalog")
        return product

    def update_product(self, store_id: str, actor: Actor, product_id: str, **changes) -> Product:
        """Update catalog fields. Orders keep the price snapshot taken when items were added."""
        with self.locks.hold(store_id):
            product = self.get_product(store_id, product_id)
            for key, value in changes.items():
                if key not in _EDITABLE_FIELDS:
                    raise ValueError(f"Unknown product field: {key}")
                if value is not None:
                    setattr(product, key, value)
            self.repo.save_product(product)
            self.audit.record(store_id, actor, ActionType.UPDATE, product.name, "Updated product details")
        return product

    def delete_product(self, store_id: str, actor: Actor, product_id: str) -> None:
        with self.locks.hold(store_id):
            product = self.get_product(store_id, product_id)
            self.repo.delete_product(store_id, product_id)
            self.audit.record(store_id, actor, ActionType.DELETE, product.name, "Removed product from catalog")

    def restock(
        self,
        store_id: str,
        actor: Actor,
        product_id: str,
        quantity: int,
        import_price: float,
        new_sell_price: Optional[float] = None,
    ) -> Product:
        with self.locks.hold(store_id):
            product = self.get_product(store_id, product_id)
            product.restock(quantity, import_price, new_sell_price)
            self.repo.save_product(product)
            self.audit.record(
                store_id,
                actor,
                ActionType.IMPORT,
                product.name,
                f"Restocked {quantity} {product.unit or 'units'} at {import_price:g}",
            )
        logger.info("Restocked %s in store %s: +%s @ %s", product.name, store_id, quantity, import_price)
        return product
