"""
Tariff calculator tests
"""
from datetime import datetime, timedelta

import pytest

from domain.line_item import DiscreteItem, MeteredItem
from domain.tariff import (
    BillingRules,
    build_invoice,
    elapsed_minutes,
    metered_minutes,
    price_line_items,
    price_room_time,
    round_up,
)

T0 = datetime(2024, 1, 1, 18, 0, 0)


def _metered(start, end=None, sell=50000, cost=0):
    return MeteredItem(
        item_id="m1",
        product_id="singer",
        name="Singer",
        sell_price=sell,
        cost_price=cost,
        started_at=start,
        ended_at=end,
    )


class TestElapsedMinutes:
    def test_partial_minute_counts_as_full(self):
        assert elapsed_minutes(T0, T0 + timedelta(minutes=5, seconds=1)) == 6

    def test_exact_minutes(self):
        assert elapsed_minutes(T0, T0 + timedelta(minutes=50)) == 50

    def test_end_before_start_is_zero(self):
        assert elapsed_minutes(T0, T0 - timedelta(minutes=3)) == 0
        assert elapsed_minutes(T0, T0) == 0


class TestRounding:
    @pytest.mark.parametrize(
        "minutes, expected",
        [(61, 65), (60, 60), (1, 5), (0, 0), (64, 65), (66, 70)],
    )
    def test_round_up_to_step(self, minutes, expected):
        assert round_up(minutes, 5) == expected

    def test_step_of_one_or_less_is_identity(self):
        assert round_up(61, 1) == 61
        assert round_up(61, 0) == 61

    def test_room_time_adds_staff_service_after_rounding(self):
        billed, amount = price_room_time(61, 60000, 5, 10)
        assert billed == 75
        assert amount == pytest.approx(75000)


class TestLineItems:
    def test_metered_item_rounds_up_to_block(self):
        """22 minutes in 10 minute blocks bills 30 minutes"""
        item = _metered(T0, T0 + timedelta(minutes=22))
        assert metered_minutes(item, T0 + timedelta(hours=5), 10) == 30

    def test_running_metered_item_uses_session_end(self):
        item = _metered(T0)
        assert metered_minutes(item, T0 + timedelta(minutes=41), 10) == 50

    def test_metered_item_bills_at_least_one_minute(self):
        item = _metered(T0, T0)
        assert metered_minutes(item, T0, 1) == 1

    def test_revenue_and_cost(self):
        items = [
            DiscreteItem("d1", "beer", "Beer", sell_price=30000, cost_price=15000, quantity=3),
            _metered(T0, T0 + timedelta(minutes=60), sell=50000, cost=20000),
        ]
        revenue, cost = price_line_items(items, T0 + timedelta(minutes=60), 10)
        assert revenue == pytest.approx(90000 + 50000)
        assert cost == pytest.approx(45000 + 20000)


class TestBuildInvoice:
    def test_room_only_session(self):
        """150000/hr for 50 minutes, rounded to 5 plus 10 service minutes, 10% VAT"""
        rules = BillingRules(time_rounding_minutes=5, staff_service_minutes=10, service_block_minutes=10, vat_rate=10)
        invoice = build_invoice(T0, T0 + timedelta(minutes=50), [], 150000, 10, rules)

        assert invoice.room_minutes == 60
        assert invoice.room_charge == pytest.approx(150000)
        assert invoice.vat_amount == pytest.approx(15000)
        assert invoice.total_amount == pytest.approx(165000)
        assert invoice.total_profit == pytest.approx(150000)

    def test_metered_service_revenue(self):
        rules = BillingRules(time_rounding_minutes=5, staff_service_minutes=0, service_block_minutes=10, vat_rate=0)
        item = _metered(T0, T0 + timedelta(minutes=22))
        invoice = build_invoice(T0, T0 + timedelta(minutes=22), [item], 0, 0, rules)

        assert invoice.item_revenue == pytest.approx(25000)
        assert invoice.total_amount == pytest.approx(25000)

    def test_vat_uses_given_rate_not_rules(self):
        rules = BillingRules(vat_rate=50)
        invoice = build_invoice(T0, T0 + timedelta(minutes=60), [], 60000, 8, rules)
        assert invoice.sub_total == pytest.approx(60000)
        assert invoice.vat_amount == pytest.approx(4800)

    def test_profit_subtracts_item_cost(self):
        rules = BillingRules(time_rounding_minutes=1, staff_service_minutes=0, service_block_minutes=1, vat_rate=0)
        items = [DiscreteItem("d1", "beer", "Beer", sell_price=30000, cost_price=15000, quantity=2)]
        invoice = build_invoice(T0, T0 + timedelta(minutes=30), items, 60000, 0, rules)
        assert invoice.sub_total == pytest.approx(30000 + 60000)
        assert invoice.total_profit == pytest.approx(30000 + 60000 - 30000)
