import fakeredis.aioredis
from fastapi.testclient import TestClient
from helpers import FrozenClock

from kitchenpass.config import QueueNumberStyle, Settings
from kitchenpass.main import create_app

CASHIER = {"X-Actor-Id": "cashier-1", "X-Actor-Name": "Nok", "X-Actor-Role": "cashier"}


def _submit(client, menu, **overrides):
    payload = {
        "order_type": "dine_in",
        "table_number": "5",
        "lines": [
            {"menu_item_id": menu["pad_thai"], "quantity": 2},
            {"menu_item_id": menu["thai_tea"], "quantity": 1},
        ],
    }
    payload.update(overrides)
    return client.post("/api/orders", json=payload, headers=CASHIER)


def _tickets(data):
    return {t["station"]: t for t in data["tickets"]}


def test_health(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-1"})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "data": {"status": "ok"}}
    assert resp.headers["X-Request-ID"] == "req-1"


def test_submit_dine_in_order_routes_tickets(client, menu):
    resp = _submit(client, menu)
    assert resp.status_code == 200
    data = resp.json()["data"]
    order = data["order"]
    assert data["created"] is True
    assert order["total_amount"] == "205.00"
    assert order["bill_status"] == "UNPAID"
    assert order["status"] == "PENDING"
    assert order["created_by"] == "cashier-1"
    tickets = _tickets(data)
    assert set(tickets) == {"kitchen", "tea"}
    assert [i["name"] for i in tickets["kitchen"]["items"]] == ["Pad Thai"]
    assert [i["quantity"] for i in tickets["tea"]["items"]] == [1]

    detail = client.get(f"/api/orders/{order['id']}").json()["data"]
    assert len(detail["tickets"]) == 2
    assert detail["balance"]["remaining"] == "205.00"
    assert detail["payments"] == []


def test_empty_cart_rejected_without_persisting(client, menu):
    resp = _submit(client, menu, lines=[])
    assert resp.status_code == 422
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "EMPTY_CART"
    assert body["request_id"]
    assert client.get("/api/orders").json()["data"] == []


def test_order_type_details_validated(client, menu):
    assert _submit(client, menu, table_number=None).json()["error"]["code"] == "MISSING_TABLE"
    resp = _submit(client, menu, order_type="delivery", table_number=None, contact_info="0812345678")
    assert resp.json()["error"]["code"] == "MISSING_DELIVERY_INFO"
    resp = _submit(client, menu, lines=[{"menu_item_id": "nope"}])
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "ITEM_UNAVAILABLE"
    resp = _submit(client, menu, lines=[{"menu_item_id": menu["pad_thai"], "quantity": 0}])
    assert resp.json()["error"]["code"] == "INVALID_QUANTITY"


def test_resubmitting_same_order_id_returns_first_order(client, menu):
    first = _submit(client, menu, order_id="till-1-0001").json()["data"]
    second = _submit(client, menu, order_id="till-1-0001").json()["data"]
    assert second["created"] is False
    assert second["order"]["id"] == first["order"]["id"]
    assert {t["id"] for t in second["tickets"]} == {t["id"] for t in first["tickets"]}
    assert len(client.get("/api/orders").json()["data"]) == 1


def test_idempotency_key_replays_response(client, menu):
    headers = {**CASHIER, "Idempotency-Key": "abc-123"}
    payload = {
        "order_type": "takeaway",
        "lines": [{"menu_item_id": menu["thai_tea"], "quantity": 2}],
    }
    first = client.post("/api/orders", json=payload, headers=headers)
    second = client.post("/api/orders", json=payload, headers=headers)
    assert first.status_code == second.status_code == 200
    assert second.headers["Idempotent-Replay"] == "true"
    assert second.json() == first.json()
    assert len(client.get("/api/orders").json()["data"]) == 1


def test_kds_flow_aggregates_order_status(client, menu, clock):
    data = _submit(client, menu).json()["data"]
    order_id = data["order"]["id"]
    tickets = _tickets(data)

    queue = client.get("/api/kds/kitchen/queue").json()["data"]
    assert [t["id"] for t in queue["tickets"]] == [tickets["kitchen"]["id"]]
    assert queue["refresh_after"] == 30
    assert queue["tickets"][0]["timer"]["band"] == "on_track"

    clock.advance(minutes=10)
    entry = client.get("/api/kds/kitchen/queue").json()["data"]["tickets"][0]
    assert entry["timer"]["age_minutes"] == 10
    assert entry["timer"]["band"] == "warning"
    assert entry["display_priority"] == "HIGH"
    assert entry["priority"] == "NORMAL"

    tea_id = tickets["tea"]["id"]
    resp = client.post(f"/api/kds/tickets/{tea_id}/start")
    assert resp.json()["data"]["order"]["status"] == "IN_PROGRESS"
    again = client.post(f"/api/kds/tickets/{tea_id}/start")
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "INVALID_TRANSITION"
    skip = client.post(f"/api/kds/tickets/{tickets['kitchen']['id']}/ready")
    assert skip.status_code == 409

    client.post(f"/api/kds/tickets/{tea_id}/ready")
    assert client.get(f"/api/orders/{order_id}").json()["data"]["order"]["status"] == "IN_PROGRESS"

    kitchen_id = tickets["kitchen"]["id"]
    client.post(f"/api/kds/tickets/{kitchen_id}/start")
    resp = client.post(f"/api/kds/tickets/{kitchen_id}/ready")
    assert resp.json()["data"]["order"]["status"] == "READY"

    client.post(f"/api/kds/tickets/{kitchen_id}/close")
    resp = client.post(f"/api/kds/tickets/{tea_id}/close")
    assert resp.json()["data"]["order"]["status"] == "COMPLETED"
    assert client.get("/api/kds/kitchen/queue").json()["data"]["tickets"] == []


def test_ready_ticket_timer_is_frozen(client, menu, clock):
    data = _submit(client, menu).json()["data"]
    kitchen_id = _tickets(data)["kitchen"]["id"]
    clock.advance(minutes=2)
    client.post(f"/api/kds/tickets/{kitchen_id}/start")
    clock.advance(minutes=10)
    client.post(f"/api/kds/tickets/{kitchen_id}/ready")
    clock.advance(minutes=20)
    (entry,) = client.get("/api/kds/kitchen/queue").json()["data"]["tickets"]
    assert entry["status"] == "READY"
    assert entry["timer"] == {"age_minutes": 12, "sla_minutes": 15, "band": "warning", "frozen": True}
    assert client.get("/api/kds/kitchen/queue?include_ready=false").json()["data"]["tickets"] == []


def test_cash_payment_with_change_settles_order(client, menu):
    order_id = _submit(client, menu).json()["data"]["order"]["id"]
    url = f"/api/orders/{order_id}/payments"

    card = client.post(url, json={"amount": "300", "method": "card"})
    assert card.status_code == 422
    assert card.json()["error"]["code"] == "INVALID_AMOUNT"

    resp = client.post(url, json={"payment_id": "pay-1", "amount": "500", "method": "cash"}, headers=CASHIER)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["payment"]["amount"] == "205.00"
    assert data["payment"]["change"] == "295.00"
    assert data["order"]["bill_status"] == "PAID"
    assert data["balance"]["remaining"] == "0.00"

    dup = client.post(url, json={"payment_id": "pay-1", "amount": "500", "method": "cash"})
    assert dup.json()["data"]["duplicate"] is True

    extra = client.post(url, json={"amount": "10", "method": "cash"})
    assert extra.status_code == 409
    assert extra.json()["error"]["code"] == "ALREADY_PAID"

    detail = client.get(f"/api/orders/{order_id}").json()["data"]
    assert len(detail["payments"]) == 1
    paid = client.get("/api/orders?bill_status=PAID").json()["data"]
    assert [o["id"] for o in paid] == [order_id]


def test_split_payment(client, menu):
    order_id = _submit(client, menu).json()["data"]["order"]["id"]
    url = f"/api/orders/{order_id}/payments"
    first = client.post(url, json={"amount": "100", "method": "qr", "reference": "QR123"}).json()["data"]
    assert first["order"]["bill_status"] == "UNPAID"
    assert first["balance"]["remaining"] == "105.00"
    second = client.post(url, json={"amount": "105", "method": "transfer"}).json()["data"]
    assert second["order"]["bill_status"] == "PAID"


def test_oversized_payment_amount_rejected(client, menu):
    order_id = _submit(client, menu).json()["data"]["order"]["id"]
    resp = client.post(f"/api/orders/{order_id}/payments", json={"amount": "1e30", "method": "cash"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "INVALID_AMOUNT"
    detail = client.get(f"/api/orders/{order_id}").json()["data"]
    assert detail["payments"] == []
    assert detail["order"]["bill_status"] == "UNPAID"


def test_free_item_order_is_paid_on_creation(client):
    free = {"id": "water", "name": "Water", "price": "0", "category": "drinks", "station": "tea"}
    assert client.post("/api/menu", json=free).status_code == 200
    resp = client.post(
        "/api/orders",
        json={"order_type": "takeaway", "lines": [{"menu_item_id": "water"}]},
        headers=CASHIER,
    )
    order = resp.json()["data"]["order"]
    assert order["total_amount"] == "0.00"
    assert order["bill_status"] == "PAID"
    pay = client.post(f"/api/orders/{order['id']}/payments", json={"amount": "1", "method": "cash"})
    assert pay.json()["error"]["code"] == "ALREADY_PAID"


def test_discount_modifier_cannot_make_price_negative(client):
    item = {
        "id": "water",
        "name": "Water",
        "price": "0",
        "category": "drinks",
        "station": "tea",
        "modifiers": [{"name": "disc", "price": "-50"}],
    }
    assert client.post("/api/menu", json=item).status_code == 200
    resp = client.post(
        "/api/orders",
        json={"order_type": "takeaway", "lines": [{"menu_item_id": "water", "modifiers": ["disc"]}]},
        headers=CASHIER,
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "INVALID_AMOUNT"
    assert client.get("/api/orders").json()["data"] == []


def test_void_cancels_order_and_clears_kds(client, menu):
    data = _submit(client, menu).json()["data"]
    order_id = data["order"]["id"]
    tea_id = _tickets(data)["tea"]["id"]

    resp = client.post(f"/api/orders/{order_id}/void", json={"reason": "customer left"}, headers=CASHIER)
    assert resp.status_code == 200
    voided = resp.json()["data"]
    assert voided["order"]["status"] == "CANCELLED"
    assert "customer left" in voided["order"]["notes"]
    assert len(voided["voided_tickets"]) == 2

    assert client.get("/api/kds/tea/queue").json()["data"]["tickets"] == []
    assert client.post(f"/api/kds/tickets/{tea_id}/start").status_code == 409
    pay = client.post(f"/api/orders/{order_id}/payments", json={"amount": "205", "method": "cash"})
    assert pay.json()["error"]["code"] == "ORDER_CANCELLED"
    again = client.post(f"/api/orders/{order_id}/void", json={"reason": "twice"})
    assert again.status_code == 409


def test_refund_keeps_payments(client, menu):
    order_id = _submit(client, menu).json()["data"]["order"]["id"]
    client.post(f"/api/orders/{order_id}/payments", json={"amount": "205", "method": "card"})
    resp = client.post(f"/api/orders/{order_id}/void", json={"reason": "cold food", "refund": True})
    assert "[refund" in resp.json()["data"]["order"]["notes"]
    detail = client.get(f"/api/orders/{order_id}").json()["data"]
    assert detail["order"]["bill_status"] == "PAID"
    assert len(detail["payments"]) == 1


def test_unknown_order_is_404(client):
    resp = client.get("/api/orders/missing")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


def test_menu_availability_and_soft_delete(client, menu):
    resp = client.patch(f"/api/menu/{menu['green_curry']}", json={"available": False, "price": "130"})
    assert resp.json()["data"]["available"] is False
    assert resp.json()["data"]["price"] == "130.00"
    names = [m["name"] for m in client.get("/api/menu").json()["data"]]
    assert "Green Curry" not in names
    everything = client.get("/api/menu?include_unavailable=true").json()["data"]
    assert "Green Curry" in [m["name"] for m in everything]

    resp = _submit(client, menu, lines=[{"menu_item_id": menu["green_curry"]}])
    assert resp.json()["error"]["code"] == "ITEM_UNAVAILABLE"

    client.delete(f"/api/menu/{menu['pad_thai']}")
    drinks = client.get("/api/menu?category=mains&include_unavailable=true").json()["data"]
    assert [m["name"] for m in drinks] == ["Green Curry"]
    resp = _submit(client, menu, lines=[{"menu_item_id": menu["pad_thai"]}])
    assert resp.json()["error"]["code"] == "ITEM_UNAVAILABLE"

    restored = client.post(f"/api/menu/{menu['pad_thai']}/restore").json()["data"]
    assert restored["deleted_at"] is None


def test_modifiers_change_price(client, menu):
    resp = _submit(
        client,
        menu,
        lines=[{"menu_item_id": menu["pad_thai"], "quantity": 1, "modifiers": ["extra egg"]}],
    )
    order = resp.json()["data"]["order"]
    assert order["total_amount"] == "90.00"
    assert order["items"][0]["modifiers"] == ["extra egg"]
    bad = _submit(client, menu, lines=[{"menu_item_id": menu["pad_thai"], "modifiers": ["cheese"]}])
    assert bad.json()["error"]["code"] == "UNKNOWN_MODIFIER"


def test_reports_for_the_day(client, menu):
    paid_id = _submit(client, menu).json()["data"]["order"]["id"]
    client.post(f"/api/orders/{paid_id}/payments", json={"amount": "205", "method": "cash"})
    void_id = _submit(client, menu).json()["data"]["order"]["id"]
    client.post(f"/api/orders/{void_id}/void", json={"reason": "mistake"})

    today = client.get("/api/reports/today").json()["data"]
    assert today["date"] == "2024-03-01"
    assert today["sales"] == "205.00"
    assert today["orders"] == 1
    assert today["payment_methods"]["cash"] == "205.00"
    assert today["order_types"]["dine_in"] == 1

    hourly = client.get("/api/reports/hourly").json()["data"]["hours"]
    assert {h["hour"]: h["orders"] for h in hourly}["12:00"] == 1
    sales = client.get("/api/reports/sales").json()["data"]["items"]
    assert [(s["name"], s["quantity"]) for s in sales] == [("Pad Thai", 2), ("Thai Tea", 1)]
    sla = client.get("/api/reports/sla").json()["data"]
    assert sla["performance"] == 100.0
    assert client.get("/api/reports/today?date=2024-02-29").json()["data"]["orders"] == 0


def test_sequential_queue_numbers(tmp_path):
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/seq.db",
        queue_number_style=QueueNumberStyle.SEQUENTIAL,
    )
    app = create_app(settings, redis=fakeredis.aioredis.FakeRedis(), clock=FrozenClock())
    with TestClient(app) as client:
        client.post("/api/menu", json={"id": "tea", "name": "Tea", "price": "40", "category": "drinks", "station": "tea"})
        payload = {"order_type": "takeaway", "lines": [{"menu_item_id": "tea"}]}
        numbers = [client.post("/api/orders", json=payload).json()["data"]["order"]["queue_number"] for _ in range(2)]
    assert numbers == ["A001", "A002"]
