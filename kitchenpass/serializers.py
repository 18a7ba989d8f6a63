"""Turn database rows into JSON-ready dictionaries.

The same shapes are returned by the HTTP routes and carried in change feed
events, so the client applies one canonical representation.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from .utils.clock import ensure_aware


def _ts(value: datetime | None) -> str | None:
    value = ensure_aware(value)
    return value.isoformat() if value is not None else None


def _money(value: Any) -> str | None:
    if value is None:
        return None
    return str(Decimal(str(value)).quantize(Decimal("0.01")))


def menu_item_to_dict(item) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "name_th": item.name_th,
        "price": _money(item.price),
        "category": item.category,
        "station": item.station,
        "available": item.available,
        "description": item.description,
        "modifiers": list(item.modifiers or []),
        "deleted_at": _ts(item.deleted_at),
    }


def order_to_dict(order) -> dict[str, Any]:
    return {
        "id": order.id,
        "queue_number": order.queue_number,
        "order_type": order.order_type,
        "table_number": order.table_number,
        "customer_name": order.customer_name,
        "contact_info": order.contact_info,
        "platform": order.platform,
        "items": list(order.items or []),
        "total_amount": _money(order.total_amount),
        "bill_status": order.bill_status,
        "status": order.status,
        "notes": order.notes,
        "created_by": order.created_by,
        "created_at": _ts(order.created_at),
        "updated_at": _ts(order.updated_at),
    }


def ticket_to_dict(ticket) -> dict[str, Any]:
    return {
        "id": ticket.id,
        "order_id": ticket.order_id,
        "queue_number": ticket.queue_number,
        "station": ticket.station,
        "items": list(ticket.items or []),
        "status": ticket.status,
        "priority": ticket.priority,
        "sla_minutes": ticket.sla_minutes,
        "order_type": ticket.order_type,
        "table_number": ticket.table_number,
        "created_at": _ts(ticket.created_at),
        "started_at": _ts(ticket.started_at),
        "completed_at": _ts(ticket.completed_at),
        "closed_at": _ts(ticket.closed_at),
        "voided_at": _ts(ticket.voided_at),
        "updated_at": _ts(ticket.updated_at),
    }


def payment_to_dict(payment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "order_id": payment.order_id,
        "amount": _money(payment.amount),
        "method": payment.method,
        "reference": payment.reference,
        "change": _money(payment.change),
        "created_by": payment.created_by,
        "created_at": _ts(payment.created_at),
    }
