"""
Live order accumulator tests
"""
from datetime import timedelta

import pytest

from conftest import ALICE, STORE
from domain.action_log import ActionType
from domain.line_item import DiscreteItem, MeteredItem


@pytest.fixture
def open_room(services):
    services.checkin.start_session(STORE, "r1", ALICE)
    return services


def _updates(services):
    return services.audit.list_entries(STORE, action=ActionType.UPDATE)


class TestDiscreteItems:
    def test_add_merges_into_existing_line(self, open_room):
        open_room.orders.add_item(STORE, "r1", "beer", 2, ALICE)
        order = open_room.orders.add_item(STORE, "r1", "beer", 3, ALICE)

        assert len(order.items) == 1
        assert isinstance(order.items[0], DiscreteItem)
        assert order.items[0].quantity == 5

    def test_negative_quantity_reduces_and_removes(self, open_room):
        open_room.orders.add_item(STORE, "r1", "beer", 2, ALICE)
        order = open_room.orders.add_item(STORE, "r1", "beer", -1, ALICE)
        assert order.items[0].quantity == 1

        order = open_room.orders.add_item(STORE, "r1", "beer", -5, ALICE)
        assert order.items == []

    def test_non_positive_quantity_without_line_is_noop(self, open_room):
        order = open_room.orders.add_item(STORE, "r1", "beer", 0, ALICE)
        assert order.items == []
        assert _updates(open_room) == []

    def test_price_is_snapshotted_at_add_time(self, open_room):
        open_room.orders.add_item(STORE, "r1", "beer", 1, ALICE)
        open_room.catalog.update_product(STORE, ALICE, "beer", sell_price=99000)

        order = open_room.orders.get_live_order(STORE, "r1")
        assert order.items[0].sell_price == 30000

    def test_remove_item(self, open_room):
        order = open_room.orders.add_item(STORE, "r1", "beer", 2, ALICE)
        order = open_room.orders.remove_item(STORE, "r1", order.items[0].item_id, ALICE)
        assert order.items == []

    def test_stock_is_not_touched_while_open(self, open_room):
        open_room.orders.add_item(STORE, "r1", "beer", 4, ALICE)
        assert open_room.catalog.get_product(STORE, "beer").stock == 20


class TestMeteredItems:
    def test_each_add_starts_independent_run(self, open_room):
        open_room.orders.add_item(STORE, "r1", "singer", 1, ALICE)
        order = open_room.orders.add_item(STORE, "r1", "singer", 1, ALICE)

        assert len(order.items) == 2
        assert all(isinstance(item, MeteredItem) and item.is_running for item in order.items)

    def test_stop_twice_keeps_first_end(self, open_room):
        order = open_room.orders.add_item(STORE, "r1", "singer", 1, ALICE)
        item_id = order.items[0].item_id

        open_room.clock.advance(minutes=10)
        first = open_room.orders.stop_metered_item(STORE, "r1", item_id, ALICE)
        first_end = first.find_item(item_id).ended_at
        open_room.clock.advance(minutes=10)
        second = open_room.orders.stop_metered_item(STORE, "r1", item_id, ALICE)

        assert second.find_item(item_id).ended_at == first_end
        assert len(_updates(open_room)) == 2  # add + first stop

    def test_resume_running_item_is_noop(self, open_room):
        order = open_room.orders.add_item(STORE, "r1", "singer", 1, ALICE)
        item_id = order.items[0].item_id
        before = len(_updates(open_room))

        order = open_room.orders.resume_metered_item(STORE, "r1", item_id, ALICE)

        assert order.find_item(item_id).is_running
        assert len(_updates(open_room)) == before

    def test_stop_then_resume_clears_end(self, open_room):
        order = open_room.orders.add_item(STORE, "r1", "singer", 1, ALICE)
        item_id = order.items[0].item_id
        open_room.orders.stop_metered_item(STORE, "r1", item_id, ALICE)
        order = open_room.orders.resume_metered_item(STORE, "r1", item_id, ALICE)
        assert order.find_item(item_id).ended_at is None

    def test_shift_item_start(self, open_room):
        order = open_room.orders.add_item(STORE, "r1", "singer", 1, ALICE)
        item = order.items[0]
        order = open_room.orders.adjust_item_start(STORE, "r1", item.item_id, -15, ALICE)
        assert order.find_item(item.item_id).started_at == item.started_at - timedelta(minutes=15)


class TestMissingTargets:
    def test_calls_on_room_without_session_return_none(self, services):
        assert services.orders.add_item(STORE, "r2", "beer", 1, ALICE) is None
        assert services.orders.remove_item(STORE, "r2", "x", ALICE) is None
        assert services.orders.stop_metered_item(STORE, "r2", "x", ALICE) is None
        assert services.orders.adjust_session_start(STORE, "r2", 5, ALICE) is None
        assert services.audit.list_entries(STORE) == []

    def test_unknown_item_or_product_leaves_order_unchanged(self, open_room):
        open_room.orders.add_item(STORE, "r1", "beer", 1, ALICE)
        before = open_room.orders.get_live_order(STORE, "r1")
        log_count = len(open_room.audit.list_entries(STORE))

        open_room.orders.add_item(STORE, "r1", "no-such-product", 1, ALICE)
        open_room.orders.remove_item(STORE, "r1", "no-such-item", ALICE)
        open_room.orders.stop_metered_item(STORE, "r1", "no-such-item", ALICE)
        open_room.orders.adjust_item_start(STORE, "r1", "no-such-item", 5, ALICE)

        assert open_room.orders.get_live_order(STORE, "r1") == before
        assert len(open_room.audit.list_entries(STORE)) == log_count

    def test_stop_on_discrete_item_is_noop(self, open_room):
        order = open_room.orders.add_item(STORE, "r1", "beer", 1, ALICE)
        item_id = order.items[0].item_id
        order = open_room.orders.stop_metered_item(STORE, "r1", item_id, ALICE)
        assert order.find_item(item_id).quantity == 1


class TestSessionStartAndLiveBill:
    def test_shift_session_start(self, open_room):
        started = open_room.orders.get_live_order(STORE, "r1").started_at
        order = open_room.orders.adjust_session_start(STORE, "r1", -20, ALICE)
        assert order.started_at == started - timedelta(minutes=20)

    def test_zero_shift_is_noop(self, open_room):
        before = len(open_room.audit.list_entries(STORE))
        open_room.orders.adjust_session_start(STORE, "r1", 0, ALICE)
        assert len(open_room.audit.list_entries(STORE)) == before

    def test_live_bill_prices_at_current_time(self, open_room):
        open_room.clock.advance(minutes=50)
        invoice = open_room.orders.live_bill(STORE, "r1")
        assert invoice.room_minutes == 60
        assert invoice.total_amount == pytest.approx(165000)
        # live bill does not close anything
        assert open_room.orders.get_live_order(STORE, "r1") is not None
