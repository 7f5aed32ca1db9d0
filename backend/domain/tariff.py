"""Tariff calculator: pure pricing of room time and line items.

Every duration is rounded *up* to whole minutes and then up to the configured
step; under-billing elapsed time is the failure being guarded against.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Tuple

from .line_item import LineItem, MeteredItem

_MINUTE = timedelta(minutes=1)


@dataclass(frozen=True)
class BillingRules:
    """Per-store rounding and tax parameters read from configuration."""

    time_rounding_minutes: int = 5
    staff_service_minutes: int = 0
    service_block_minutes: int = 1
    vat_rate: float = 0.0


@dataclass(frozen=True)
class Invoice:
    room_minutes: int
    room_charge: float
    item_revenue: float
    item_cost: float
    sub_total: float
    vat_amount: float
    total_amount: float
    total_profit: float


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, any started minute counting as a full one."""
    delta = end - start
    if delta <= timedelta(0):
        return 0
    return -((-delta) // _MINUTE)


def round_up(minutes: int, step: int) -> int:
    if step > 1:
        return -(-minutes // step) * step
    return minutes


def price_room_time(
    duration_minutes: int,
    hourly_rate: float,
    rounding_step_minutes: int,
    service_addition_minutes: int,
) -> Tuple[int, float]:
    """Return (billed_minutes, amount) for the room itself."""
    billed = round_up(duration_minutes, rounding_step_minutes) + service_addition_minutes
    return billed, billed / 60 * hourly_rate


def metered_minutes(item: MeteredItem, end_if_open_ended: datetime, service_block_minutes: int) -> int:
    effective_end = item.ended_at or end_if_open_ended
    duration = max(1, elapsed_minutes(item.started_at, effective_end))
    return round_up(duration, max(service_block_minutes, 1))


def price_line_items(
    items: Iterable[LineItem],
    end_if_open_ended: datetime,
    service_block_minutes: int,
) -> Tuple[float, float]:
    """Return (revenue, cost) over all line items."""
    revenue = 0.0
    cost = 0.0
    for item in items:
        if isinstance(item, MeteredItem):
            billed = metered_minutes(item, end_if_open_ended, service_block_minutes)
            revenue += billed / 60 * item.sell_price
            cost += billed / 60 * item.cost_price
        else:
            revenue += item.sell_price * item.quantity
            cost += item.cost_price * item.quantity
    return revenue, cost


def build_invoice(
    started_at: datetime,
    ended_at: datetime,
    items: Iterable[LineItem],
    hourly_rate: float,
    vat_rate: float,
    rules: BillingRules,
) -> Invoice:
    """Price a whole session. Room time carries no cost, so it is pure margin."""
    room_minutes, room_charge = price_room_time(
        elapsed_minutes(started_at, ended_at),
        hourly_rate,
        rules.time_rounding_minutes,
        rules.staff_service_minutes,
    )
    revenue, cost = price_line_items(items, ended_at, rules.service_block_minutes)
    sub_total = room_charge + revenue
    vat_amount = sub_total * vat_rate / 100
    return Invoice(
        room_minutes=room_minutes,
        room_charge=room_charge,
        item_revenue=revenue,
        item_cost=cost,
        sub_total=sub_total,
        vat_amount=vat_amount,
        total_amount=sub_total + vat_amount,
        total_profit=sub_total - cost,
    )
