from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

from helpers import T0

from kitchenpass.services.reports import (
    hourly_breakdown,
    order_types,
    payment_methods,
    sales_by_item,
    sla_compliance,
    today_stats,
)


def _item(menu_item_id, name, quantity, unit_price):
    return {"menu_item_id": menu_item_id, "name": name, "quantity": quantity, "unit_price": unit_price}


def _order(id, total, bill_status="PAID", status="COMPLETED", order_type="dine_in", created_at=T0, items=()):
    return SimpleNamespace(
        id=id,
        total_amount=Decimal(total),
        bill_status=bill_status,
        status=status,
        order_type=order_type,
        created_at=created_at,
        items=list(items),
    )


ORDERS = [
    _order("o1", "205", items=[_item("pad", "Pad Thai", 2, "80"), _item("tea", "Thai Tea", 1, "45")]),
    _order(
        "o2",
        "90",
        order_type="takeaway",
        created_at=T0 + timedelta(hours=2),
        items=[_item("tea", "Thai Tea", 2, "45")],
    ),
    _order("o3", "120", bill_status="UNPAID", status="PENDING", items=[_item("curry", "Green Curry", 1, "120")]),
    _order("o4", "80", status="CANCELLED", order_type="delivery", items=[_item("pad", "Pad Thai", 1, "80")]),
]


def test_today_stats_counts_only_settled_sales():
    stats = today_stats(ORDERS)
    assert stats["orders"] == 3
    assert stats["paid_orders"] == 2
    assert stats["unpaid_orders"] == 1
    assert stats["cancelled_orders"] == 1
    assert stats["sales"] == "295.00"
    assert stats["average_order_value"] == "147.50"
    assert [i["name"] for i in stats["top_items"]] == ["Thai Tea", "Pad Thai"]


def test_today_stats_on_empty_day():
    stats = today_stats([])
    assert stats["sales"] == "0.00"
    assert stats["average_order_value"] == "0.00"
    assert stats["top_items"] == []


def test_sales_by_item():
    rows = sales_by_item(ORDERS)
    assert rows == [
        {"menu_item_id": "tea", "name": "Thai Tea", "quantity": 3, "revenue": "135.00"},
        {"menu_item_id": "pad", "name": "Pad Thai", "quantity": 2, "revenue": "160.00"},
    ]


def test_hourly_breakdown_uses_business_timezone():
    hours = hourly_breakdown(ORDERS, "Asia/Bangkok")
    assert len(hours) == 24
    by_label = {h["hour"]: h for h in hours}
    assert by_label["12:00"] == {"hour": "12:00", "orders": 2, "sales": "205.00"}
    assert by_label["14:00"] == {"hour": "14:00", "orders": 1, "sales": "90.00"}
    assert by_label["05:00"]["orders"] == 0


def test_payment_methods_skip_cancelled_orders():
    payments = [
        SimpleNamespace(order_id="o1", method="cash", amount=Decimal("205")),
        SimpleNamespace(order_id="o2", method="qr", amount=Decimal("90")),
        SimpleNamespace(order_id="o4", method="card", amount=Decimal("80")),
    ]
    assert payment_methods(payments, ORDERS) == {
        "cash": "205.00",
        "card": "0.00",
        "transfer": "0.00",
        "qr": "90.00",
    }


def test_order_types():
    assert order_types(ORDERS) == {"dine_in": 2, "takeaway": 1, "delivery": 0}


def _ticket(status, sla, created, started=None, completed=None, voided=None):
    return SimpleNamespace(
        status=status,
        sla_minutes=sla,
        created_at=T0 + timedelta(minutes=created),
        started_at=T0 + timedelta(minutes=started) if started is not None else None,
        completed_at=T0 + timedelta(minutes=completed) if completed is not None else None,
        voided_at=voided,
    )


def test_sla_compliance():
    tickets = [
        _ticket("READY", 15, 0, started=2, completed=12),
        _ticket("CLOSED", 15, 0, completed=20),
        _ticket("IN_PROGRESS", 15, 0, started=1),
        _ticket("READY", 20, 0, completed=5, voided=T0),
    ]
    report = sla_compliance(tickets)
    assert report == {
        "completed": 2,
        "average_cook_minutes": 15.0,
        "breaches": 1,
        "performance": 50.0,
    }


def test_sla_compliance_without_finished_tickets():
    assert sla_compliance([])["performance"] == 100.0
