"""Domain models and helpers."""

from .order_status import (
    TRANSITIONS,
    BillStatus,
    OrderStatus,
    OrderType,
    PaymentMethod,
    Station,
    TicketPriority,
    TicketStatus,
    can_transition,
)

__all__ = [
    "BillStatus",
    "OrderStatus",
    "OrderType",
    "PaymentMethod",
    "Station",
    "TRANSITIONS",
    "TicketPriority",
    "TicketStatus",
    "can_transition",
]
