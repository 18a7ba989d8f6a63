"""Ticket state machine.

Transitions are one way and each stamps its own timestamp. A rejected move
raises :class:`InvalidTransition` and leaves the ticket untouched.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .errors import InvalidTransition
from .order_status import TicketStatus, can_transition


class TicketLike(Protocol):
    """Entity with the attributes the state machine reads and stamps."""

    id: str
    status: str
    started_at: datetime | None
    completed_at: datetime | None
    closed_at: datetime | None
    voided_at: datetime | None
    updated_at: datetime | None


_STAMP_FIELD = {
    TicketStatus.IN_PROGRESS: "started_at",
    TicketStatus.READY: "completed_at",
    TicketStatus.CLOSED: "closed_at",
}


def advance(ticket: TicketLike, dest: TicketStatus | str, now: datetime) -> TicketStatus:
    """Move ``ticket`` to ``dest`` and stamp the matching timestamp."""

    current = TicketStatus(ticket.status)
    dest = TicketStatus(dest)
    if ticket.voided_at is not None:
        raise InvalidTransition(
            "ticket belongs to a voided order",
            ticket_id=ticket.id,
            current=current.value,
            target=dest.value,
        )
    if not can_transition(current, dest):
        raise InvalidTransition(
            f"cannot move ticket from {current.value} to {dest.value}",
            ticket_id=ticket.id,
            current=current.value,
            target=dest.value,
        )
    ticket.status = dest.value
    setattr(ticket, _STAMP_FIELD[dest], now)
    ticket.updated_at = now
    return dest
