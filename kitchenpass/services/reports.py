"""Sales and kitchen performance reports.

All helpers are pure functions over rows already loaded for one business
day. Sales only count orders that are ``PAID`` and not ``CANCELLED``; a
voided order keeps its payments in the ledger but leaves the figures.
Money values are rendered as two-decimal strings.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List
from zoneinfo import ZoneInfo

from ..domain.order_status import BillStatus, OrderStatus, OrderType, PaymentMethod, TicketStatus
from ..utils.clock import ensure_aware

CENTS = Decimal("0.01")
TOP_ITEMS = 5


def _money(value: Decimal) -> str:
    return str(value.quantize(CENTS))


def _settled(orders: Iterable[Any]) -> List[Any]:
    return [
        o
        for o in orders
        if o.bill_status == BillStatus.PAID.value and o.status != OrderStatus.CANCELLED.value
    ]


def _live(orders: Iterable[Any]) -> List[Any]:
    return [o for o in orders if o.status != OrderStatus.CANCELLED.value]


def _total(orders: Iterable[Any]) -> Decimal:
    return sum((Decimal(str(o.total_amount)) for o in orders), Decimal("0"))


def _item_counts(orders: Iterable[Any]) -> Dict[str, Dict[str, Any]]:
    rows: Dict[str, Dict[str, Any]] = {}
    for order in orders:
        for item in order.items or []:
            row = rows.setdefault(
                item["menu_item_id"],
                {"menu_item_id": item["menu_item_id"], "name": item["name"], "quantity": 0, "revenue": Decimal("0")},
            )
            row["quantity"] += int(item["quantity"])
            row["revenue"] += Decimal(str(item["unit_price"])) * int(item["quantity"])
    return rows


def sales_by_item(orders: Iterable[Any]) -> List[Dict[str, Any]]:
    """Quantity and revenue per menu item, best sellers first."""

    rows = sorted(
        _item_counts(_settled(orders)).values(),
        key=lambda r: (-r["quantity"], r["name"]),
    )
    return [{**r, "revenue": _money(r["revenue"])} for r in rows]


def today_stats(orders: Iterable[Any]) -> Dict[str, Any]:
    """Headline figures for the day.

    ``orders`` counts every non-cancelled order; ``sales`` and
    ``average_order_value`` only the settled ones.
    """

    orders = list(orders)
    settled = _settled(orders)
    sales = _total(settled)
    average = sales / len(settled) if settled else Decimal("0")
    return {
        "orders": len(_live(orders)),
        "paid_orders": len(settled),
        "unpaid_orders": len([o for o in _live(orders) if o.bill_status != BillStatus.PAID.value]),
        "cancelled_orders": len([o for o in orders if o.status == OrderStatus.CANCELLED.value]),
        "sales": _money(sales),
        "average_order_value": _money(average),
        "top_items": sales_by_item(settled)[:TOP_ITEMS],
    }


def hourly_breakdown(orders: Iterable[Any], tz_name: str) -> List[Dict[str, Any]]:
    """Orders and sales in 24 local-time buckets labelled ``HH:00``."""

    tz = ZoneInfo(tz_name)
    counts: Counter = Counter()
    sales: Dict[int, Decimal] = defaultdict(lambda: Decimal("0"))
    for order in _live(orders):
        hour = ensure_aware(order.created_at).astimezone(tz).hour
        counts[hour] += 1
        if order.bill_status == BillStatus.PAID.value:
            sales[hour] += Decimal(str(order.total_amount))
    return [
        {"hour": f"{h:02d}:00", "orders": counts[h], "sales": _money(sales[h])}
        for h in range(24)
    ]


def payment_methods(payments: Iterable[Any], orders: Iterable[Any]) -> Dict[str, str]:
    """Sum of recorded payments per method, excluding cancelled orders."""

    cancelled = {o.id for o in orders if o.status == OrderStatus.CANCELLED.value}
    totals = {m.value: Decimal("0") for m in PaymentMethod}
    for payment in payments:
        if payment.order_id in cancelled:
            continue
        totals[payment.method] = totals.get(payment.method, Decimal("0")) + Decimal(
            str(payment.amount)
        )
    return {method: _money(amount) for method, amount in totals.items()}


def order_types(orders: Iterable[Any]) -> Dict[str, int]:
    counts = {t.value: 0 for t in OrderType}
    for order in _live(orders):
        counts[order.order_type] = counts.get(order.order_type, 0) + 1
    return counts


def sla_compliance(tickets: Iterable[Any]) -> Dict[str, Any]:
    """Cook times of finished tickets measured against their SLA.

    Cook time runs from ``started_at`` (or ``created_at`` when the ticket
    was never started) to ``completed_at``. A ticket breaches when its cook
    time exceeds ``sla_minutes``. Performance is 100 when nothing finished.
    """

    finished = [
        t
        for t in tickets
        if t.completed_at is not None
        and t.voided_at is None
        and t.status in (TicketStatus.READY.value, TicketStatus.CLOSED.value)
    ]
    if not finished:
        return {"completed": 0, "average_cook_minutes": 0.0, "breaches": 0, "performance": 100.0}

    breaches = 0
    total_minutes = 0.0
    for ticket in finished:
        start = ensure_aware(ticket.started_at or ticket.created_at)
        minutes = (ensure_aware(ticket.completed_at) - start).total_seconds() / 60
        total_minutes += minutes
        if minutes > ticket.sla_minutes:
            breaches += 1
    return {
        "completed": len(finished),
        "average_cook_minutes": round(total_minutes / len(finished), 1),
        "breaches": breaches,
        "performance": round(100 * (len(finished) - breaches) / len(finished), 1),
    }


__all__ = [
    "hourly_breakdown",
    "order_types",
    "payment_methods",
    "sales_by_item",
    "sla_compliance",
    "today_stats",
]
