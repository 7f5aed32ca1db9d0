"""Billing service binding the tariff calculator to per-store configuration."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from app.config import AppConfig
from domain.line_item import LineItem
from domain.order import Order
from domain.tariff import BillingRules, Invoice, build_invoice


class BillingService:
    def __init__(self, config: AppConfig):
        self.config = config

    def update_config(self, config: AppConfig) -> None:
        self.config = config

    def rules(self, store_id: str) -> BillingRules:
        return self.config.billing_rules(store_id)

    def vat_rate(self, store_id: str) -> float:
        return self.rules(store_id).vat_rate

    def price_order(
        self,
        order: Order,
        hourly_rate: float,
        ended_at: datetime,
        items: Optional[Iterable[LineItem]] = None,
        started_at: Optional[datetime] = None,
    ) -> Invoice:
        """Price ``order`` as if it ended at ``ended_at``.

        ``items`` and ``started_at`` override the order's own values, which is
        how amendments price a corrected bill before committing it.
        """
        return build_invoice(
            started_at=started_at or order.started_at,
            ended_at=ended_at,
            items=order.items if items is None else items,
            hourly_rate=hourly_rate,
            vat_rate=order.vat_rate,
            rules=self.rules(order.store_id),
        )
