"""Order and ticket status enumerations and allowed transitions."""

from __future__ import annotations

from enum import Enum


class OrderType(str, Enum):
    """How the customer receives the order."""

    DINE_IN = "dine_in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


class Station(str, Enum):
    """Kitchen work areas a menu item can be routed to."""

    KITCHEN = "kitchen"
    TEA = "tea"


class OrderStatus(str, Enum):
    """Fulfillment status of an order, aggregated from its tickets."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BillStatus(str, Enum):
    """Binary payment flag derived from the payment ledger."""

    UNPAID = "UNPAID"
    PAID = "PAID"


class TicketStatus(str, Enum):
    """Enumerate the lifecycle states for a kitchen ticket."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    READY = "READY"
    CLOSED = "CLOSED"


class TicketPriority(str, Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    QR = "qr"


TRANSITIONS: dict[TicketStatus, list[TicketStatus]] = {
    TicketStatus.PENDING: [TicketStatus.IN_PROGRESS],
    TicketStatus.IN_PROGRESS: [TicketStatus.READY],
    TicketStatus.READY: [TicketStatus.CLOSED],
    TicketStatus.CLOSED: [],
}

OPEN_TICKET_STATUSES = frozenset({TicketStatus.PENDING, TicketStatus.IN_PROGRESS})
TERMINAL_TICKET_STATUSES = frozenset({TicketStatus.READY, TicketStatus.CLOSED})


def can_transition(src: TicketStatus, dst: TicketStatus) -> bool:
    """Return ``True`` if a ticket can move from ``src`` to ``dst``."""

    return dst in TRANSITIONS.get(src, [])
