"""Aggregate an order's fulfillment status from its tickets."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from .errors import InvariantViolation
from .order_status import TERMINAL_TICKET_STATUSES, OrderStatus, TicketStatus


def aggregate_status(
    current: OrderStatus | str, ticket_statuses: Iterable[TicketStatus | str]
) -> OrderStatus:
    current = OrderStatus(current)
    if current is OrderStatus.CANCELLED:
        return current
    statuses = [TicketStatus(s) for s in ticket_statuses]
    if not statuses:
        raise InvariantViolation("order has no tickets")
    if all(s is TicketStatus.CLOSED for s in statuses):
        return OrderStatus.COMPLETED
    if all(s in TERMINAL_TICKET_STATUSES for s in statuses):
        return OrderStatus.READY
    if all(s is TicketStatus.PENDING for s in statuses):
        return OrderStatus.PENDING
    return OrderStatus.IN_PROGRESS


def refresh_order(order: Any, tickets: Iterable[Any], now: datetime) -> bool:
    """Recompute ``order.status`` from ``tickets``; return ``True`` if it changed."""

    tickets = list(tickets)
    for ticket in tickets:
        if ticket.order_id != order.id:
            raise InvariantViolation(
                "ticket does not belong to order", ticket_id=ticket.id, order_id=order.id
            )
    status = aggregate_status(order.status, (t.status for t in tickets))
    if status.value == order.status:
        return False
    order.status = status.value
    order.updated_at = now
    return True
