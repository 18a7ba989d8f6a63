"""SLA thresholds and urgency banding for tickets and orders.

``age_minutes`` is the floor of elapsed whole minutes. Once a ticket reaches
a terminal state its age freezes at ``completed_at - created_at``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from ..utils.clock import ensure_aware
from .order_status import (
    TERMINAL_TICKET_STATUSES,
    OrderType,
    Station,
    TicketPriority,
    TicketStatus,
)

DEFAULT_SLA_MINUTES: dict[OrderType, int] = {
    OrderType.DINE_IN: 15,
    OrderType.TAKEAWAY: 20,
    OrderType.DELIVERY: 20,
}
WARNING_RATIO = 0.7


class SlaBand(str, Enum):
    ON_TRACK = "on_track"
    WARNING = "warning"
    BREACH = "breach"


_BAND_PRIORITY = {
    SlaBand.ON_TRACK: TicketPriority.NORMAL,
    SlaBand.WARNING: TicketPriority.HIGH,
    SlaBand.BREACH: TicketPriority.URGENT,
}
_PRIORITY_RANK = {p: i for i, p in enumerate(TicketPriority)}


def sla_minutes_for(
    order_type: OrderType | str,
    station: Station | str | None = None,
    table: Mapping[str, int] | None = None,
) -> int:
    """Return the SLA budget in minutes.

    The budget depends on the order type only; ``station`` is accepted so a
    per-station table can be plugged in through ``table`` keys of the form
    ``"<order_type>:<station>"``.
    """

    order_type = OrderType(order_type)
    if table:
        if station is not None:
            key = f"{order_type.value}:{Station(station).value}"
            if key in table:
                return int(table[key])
        if order_type.value in table:
            return int(table[order_type.value])
    return DEFAULT_SLA_MINUTES[order_type]


def age_minutes(
    created_at: datetime, now: datetime, completed_at: datetime | None = None
) -> int:
    end = ensure_aware(completed_at) or ensure_aware(now)
    elapsed = (end - ensure_aware(created_at)).total_seconds()
    return max(0, math.floor(elapsed / 60))


def warning_from(threshold: int, ratio: float = WARNING_RATIO) -> int:
    """Lowest age in whole minutes that falls in the warning band."""
    return math.floor(Decimal(str(ratio)) * threshold)


def classify(age: int, threshold: int, ratio: float = WARNING_RATIO) -> SlaBand:
    if age >= threshold:
        return SlaBand.BREACH
    if age >= warning_from(threshold, ratio):
        return SlaBand.WARNING
    return SlaBand.ON_TRACK


def display_priority(band: SlaBand, stored: TicketPriority | str) -> TicketPriority:
    """Escalate the stored priority by the urgency band, never lowering it."""
    stored = TicketPriority(stored)
    derived = _BAND_PRIORITY[band]
    return max(stored, derived, key=_PRIORITY_RANK.__getitem__)


@dataclass(frozen=True)
class Timer:
    age_minutes: int
    sla_minutes: int
    band: SlaBand
    frozen: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "age_minutes": self.age_minutes,
            "sla_minutes": self.sla_minutes,
            "band": self.band.value,
            "frozen": self.frozen,
        }


def timer(
    created_at: datetime,
    sla: int,
    now: datetime,
    completed_at: datetime | None = None,
    ratio: float = WARNING_RATIO,
) -> Timer:
    age = age_minutes(created_at, now, completed_at)
    return Timer(age, sla, classify(age, sla, ratio), completed_at is not None)


def ticket_timer(ticket: Any, now: datetime, ratio: float = WARNING_RATIO) -> Timer:
    """Return the live timer of an open ticket or the frozen one of a done ticket."""

    completed_at = None
    if TicketStatus(ticket.status) in TERMINAL_TICKET_STATUSES:
        completed_at = ticket.completed_at or ticket.closed_at
    return timer(ticket.created_at, ticket.sla_minutes, now, completed_at, ratio)
