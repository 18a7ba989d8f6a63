"""Kitchen Display System routes.

Each station sees its own queue of tickets with live SLA timers. Clients
poll the queue at most every ``refresh_after`` seconds and otherwise follow
the change feed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from .config import Settings
from .deps import get_clock, get_config, get_feed, get_store
from .domain.order_status import Station, TicketStatus
from .events import ChangeFeed
from .repos_sqlalchemy import SqlStore
from .serializers import order_to_dict
from .services.kds_service import queue_entry, station_queue, transition_ticket
from .utils.clock import Clock
from .utils.responses import ok

router = APIRouter(prefix="/api/kds")


@router.get("/{station}/queue")
async def list_queue(
    station: Station,
    include_ready: bool = True,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    """Return the station's tickets, oldest first, with SLA timers."""

    now = clock.now()
    tickets = await station_queue(
        store, station, now, settings.sla_warning_ratio, include_ready=include_ready
    )
    return ok(
        {
            "station": station.value,
            "tickets": tickets,
            "now": now.isoformat(),
            "refresh_after": settings.kds_refresh_secs,
        }
    )


async def _transition(
    ticket_id: str,
    dest: TicketStatus,
    store: SqlStore,
    feed: ChangeFeed,
    clock: Clock,
    settings: Settings,
) -> dict:
    now = clock.now()
    ticket, order = await transition_ticket(store, feed, ticket_id, dest, now)
    return ok(
        {
            "ticket": queue_entry(ticket, now, settings.sla_warning_ratio),
            "order": order_to_dict(order),
        }
    )


@router.post("/tickets/{ticket_id}/start")
async def start_ticket(
    ticket_id: str,
    store: SqlStore = Depends(get_store),
    feed: ChangeFeed = Depends(get_feed),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    return await _transition(ticket_id, TicketStatus.IN_PROGRESS, store, feed, clock, settings)


@router.post("/tickets/{ticket_id}/ready")
async def ready_ticket(
    ticket_id: str,
    store: SqlStore = Depends(get_store),
    feed: ChangeFeed = Depends(get_feed),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    return await _transition(ticket_id, TicketStatus.READY, store, feed, clock, settings)


@router.post("/tickets/{ticket_id}/close")
async def close_ticket(
    ticket_id: str,
    store: SqlStore = Depends(get_store),
    feed: ChangeFeed = Depends(get_feed),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    """Mark a ready ticket as served."""
    return await _transition(ticket_id, TicketStatus.CLOSED, store, feed, clock, settings)
