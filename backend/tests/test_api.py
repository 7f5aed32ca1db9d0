"""
HTTP API tests. Every test runs in its own store, so the shared app state never leaks between tests.
"""
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.config import AppConfig
from app.main import app
from application.clock import ManualClock
from interfaces import deps


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers():
    return {"X-Store-Id": f"store-{uuid4()}", "X-User-Id": "u-alice", "X-User-Name": "Alice"}


@pytest.fixture
def api_clock(monkeypatch):
    """Swap the wall clock of every service for a manual one."""
    clock = ManualClock()
    for service in (
        deps.audit_log,
        deps.checkin_service,
        deps.checkout_service,
        deps.order_service,
        deps.room_service,
        deps.bill_edit_service,
    ):
        monkeypatch.setattr(service, "clock", clock)
    return clock


@pytest.fixture
def room(client, headers):
    response = client.post("/rooms", json={"name": "Room 1", "hourlyRate": 150000, "roomId": "r1"}, headers=headers)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def beer(client, headers):
    response = client.post(
        "/products",
        json={"name": "Beer", "sellPrice": 30000, "costPrice": 15000, "stock": 20, "productId": "beer"},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestContext:
    def test_store_header_is_required(self, client):
        assert client.get("/rooms").status_code == 422

    def test_rooms_are_scoped_to_store(self, client, headers, room):
        other = dict(headers, **{"X-Store-Id": f"store-{uuid4()}"})
        assert client.get("/rooms", headers=other).json() == []
        assert [r["roomId"] for r in client.get("/rooms", headers=headers).json()] == ["r1"]


class TestSessionFlow:
    def test_full_session(self, client, headers, room, beer, api_clock):
        response = client.post("/rooms/r1/session", headers=headers)
        assert response.status_code == 200
        order_id = response.json()["orderId"]

        response = client.post("/rooms/r1/order/items", json={"productId": "beer", "quantity": 2}, headers=headers)
        assert response.json()["order"]["items"][0]["quantity"] == 2

        api_clock.advance(minutes=50)
        live = client.get("/rooms/r1/order", headers=headers).json()
        assert live["invoice"]["roomMinutes"] == 60

        response = client.post("/rooms/r1/checkout", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["order"]["orderId"] == order_id
        assert body["order"]["status"] == "PAID"
        assert body["invoice"]["totalAmount"] == pytest.approx((150000 + 60000) * 1.1)

        rooms = client.get("/rooms", headers=headers).json()
        assert rooms[0]["status"] == "CLEANING"
        assert rooms[0]["currentOrderId"] is None
        assert client.get("/products/beer", headers=headers).json()["stock"] == 18

    def test_double_start_is_conflict(self, client, headers, room):
        client.post("/rooms/r1/session", headers=headers)
        response = client.post("/rooms/r1/session", headers=headers)
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "InvalidState"

    def test_checkout_without_session(self, client, headers, room):
        response = client.post("/rooms/r1/checkout", headers=headers)
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "NoActiveSession"

    def test_unknown_room_is_404(self, client, headers):
        assert client.post("/rooms/nope/session", headers=headers).status_code == 404

    def test_item_change_without_session_is_not_an_error(self, client, headers, room, beer):
        response = client.post("/rooms/r1/order/items", json={"productId": "beer", "quantity": 1}, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"order": None}

    def test_move_to_busy_room(self, client, headers, room):
        client.post("/rooms", json={"name": "Room 2", "hourlyRate": 100000, "roomId": "r2"}, headers=headers)
        client.post("/rooms/r1/session", headers=headers)
        client.post("/rooms/r2/session", headers=headers)

        response = client.post("/rooms/r1/move", json={"toRoomId": "r2"}, headers=headers)
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "TargetUnavailable"

    def test_force_end(self, client, headers, room):
        client.post("/rooms/r1/session", headers=headers)
        response = client.post("/rooms/r1/force-end", json={"targetStatus": "CLEANING"}, headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["cancelledOrder"]["status"] == "CANCELLED"
        assert body["room"]["status"] == "CLEANING"

    def test_invalid_status_value(self, client, headers, room):
        response = client.put("/rooms/r1/status", json={"status": "PARTY"}, headers=headers)
        assert response.status_code == 422


class TestBillEditing:
    @pytest.fixture
    def paid_bill(self, client, headers, room, beer, api_clock):
        client.post("/rooms/r1/session", headers=headers)
        client.post("/rooms/r1/order/items", json={"productId": "beer", "quantity": 2}, headers=headers)
        api_clock.advance(minutes=50)
        return client.post("/rooms/r1/checkout", headers=headers).json()["order"]

    def test_staff_can_amend_inside_window(self, client, headers, paid_bill):
        items = paid_bill["items"]
        items[0]["quantity"] = 3

        response = client.put(f"/bills/{paid_bill['orderId']}", json={"items": items}, headers=headers)

        assert response.status_code == 200
        assert response.json()["editCount"] == 1

    def test_request_needed_after_window(self, client, headers, paid_bill, api_clock):
        api_clock.advance(minutes=30)
        items = paid_bill["items"]
        items[0]["quantity"] = 3
        order_id = paid_bill["orderId"]

        assert client.put(f"/bills/{order_id}", json={"items": items}, headers=headers).status_code == 403

        request = client.post(f"/bills/{order_id}/edit-requests", json={"reason": "one more beer"}, headers=headers)
        assert request.json()["status"] == "PENDING"
        request_id = request.json()["requestId"]
        manager = dict(headers, **{"X-User-Id": "u-bob", "X-User-Name": "Bob"})
        resolved = client.post(
            f"/bill-requests/{request_id}/resolve",
            json={"decision": "APPROVE"},
            headers=manager,
        )
        assert resolved.json()["resolvedBy"] == "Bob"

        response = client.put(
            f"/bills/{order_id}",
            json={"items": items, "requestId": request_id},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["editCount"] == 1
        completed = client.get("/bill-requests", params={"status": "COMPLETED"}, headers=headers).json()
        assert [r["requestId"] for r in completed] == [request_id]

    def test_locked_bill(self, client, headers, paid_bill, api_clock):
        api_clock.advance(minutes=1441)
        response = client.post(
            f"/bills/{paid_bill['orderId']}/edit-requests",
            json={"reason": "too late"},
            headers=headers,
        )
        assert response.status_code == 423

    def test_auto_approve_window(self, client, headers, paid_bill, monkeypatch):
        raw = dict(deps.settings.raw, bill_editing={"admin_auto_approve_minutes": 10})
        monkeypatch.setattr(deps.bill_edit_service, "config", AppConfig(raw=raw))

        response = client.post(
            f"/bills/{paid_bill['orderId']}/edit-requests",
            json={"reason": "quick fix"},
            headers=headers,
        )
        assert response.json()["status"] == "APPROVED"
        assert response.json()["resolvedBy"] == "System"

    def test_metered_item_without_start_is_rejected(self, client, headers, paid_bill):
        items = paid_bill["items"] + [
            {"id": "new", "kind": "metered", "productId": "singer", "name": "Singer", "sellPrice": 50000}
        ]
        response = client.put(f"/bills/{paid_bill['orderId']}", json={"items": items}, headers=headers)
        assert response.status_code == 422

    def test_reprint(self, client, headers, paid_bill):
        response = client.post(f"/bills/{paid_bill['orderId']}/print", headers=headers)
        assert response.json()["printCount"] == 1


class TestAuditAndReport:
    def test_audit_json_and_csv(self, client, headers, room):
        client.post("/rooms/r1/session", headers=headers)

        entries = client.get("/audit-logs", headers=headers).json()
        assert [e["action"] for e in entries] == ["CREATE", "CREATE"]
        assert entries[0]["actorName"] == "Alice"

        response = client.get("/audit-logs/export", headers=headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.splitlines()[0] == "time,actor,action,target,description"
        exports = client.get("/audit-logs", params={"action": "EXPORT"}, headers=headers).json()
        assert len(exports) == 1

    def test_report(self, client, headers, room, api_clock):
        start = api_clock.now().isoformat()
        client.post("/rooms/r1/session", headers=headers)
        api_clock.advance(minutes=50)
        client.post("/rooms/r1/checkout", headers=headers)

        response = client.get("/report", params={"from": start, "to": api_clock.now().isoformat()}, headers=headers)

        assert response.status_code == 200
        assert response.json()["summary"]["paidOrders"] == 1
        assert response.json()["summary"]["totalRevenue"] == pytest.approx(165000)

    def test_report_bad_range(self, client, headers):
        response = client.get("/report", params={"from": "yesterday", "to": "today"}, headers=headers)
        assert response.status_code == 400


class TestSettings:
    def test_effective_store_settings(self, client, headers):
        body = client.get("/settings", headers=headers).json()
        assert body["vatRate"] == 10
        assert body["timeRoundingMinutes"] == 5
        assert "OCCUPIED" not in body["forceEndTargets"]

    def test_store_override(self, client, headers):
        demo = dict(headers, **{"X-Store-Id": "store-demo"})
        assert client.get("/settings", headers=demo).json()["vatRate"] == 8

    def test_reload(self, client, headers):
        response = client.post("/settings/reload", headers=headers)
        assert response.status_code == 200
        assert response.json()["configVersion"] == "v1"
