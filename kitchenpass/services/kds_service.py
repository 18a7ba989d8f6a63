from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm.exc import StaleDataError

from ..domain.errors import InvalidTransition
from ..domain.fulfillment import refresh_order
from ..domain.order_status import OPEN_TICKET_STATUSES, Station, TicketStatus
from ..domain.realtime import ChangeKind, EntityKind
from ..domain.sla import WARNING_RATIO, display_priority, ticket_timer
from ..domain.tickets import advance
from ..events import ChangeFeed
from ..repos_sqlalchemy import SqlStore
from ..serializers import order_to_dict, ticket_to_dict

logger = logging.getLogger("kitchenpass.kds")


async def transition_ticket(
    store: SqlStore,
    feed: ChangeFeed,
    ticket_id: str,
    dest: TicketStatus,
    now: datetime,
) -> tuple[Any, Any]:
    """Advance a ticket and re-aggregate its order in one transaction.

    A second staff member bumping the same ticket gets ``InvalidTransition``
    and nothing changes.
    """

    try:
        async with store.transaction():
            ticket = await store.require("ticket", ticket_id)
            order = await store.require("order", ticket.order_id)
            advance(ticket, dest, now)
            siblings = await store.query_all("ticket", {"order_id": order.id})
            order_changed = refresh_order(order, siblings, now)
            await store.flush()
    except StaleDataError:
        logger.info("ticket %s changed concurrently", ticket_id)
        raise InvalidTransition(
            "ticket was changed by another station",
            ticket_id=ticket_id,
            target=TicketStatus(dest).value,
        ) from None

    logger.info(
        "ticket %s -> %s order=%s order_status=%s",
        ticket.id,
        ticket.status,
        order.id,
        order.status,
    )
    await feed.publish_many(ChangeKind.UPDATE, EntityKind.TICKET, [ticket_to_dict(ticket)])
    if order_changed:
        await feed.publish_many(ChangeKind.UPDATE, EntityKind.ORDER, [order_to_dict(order)])
    return ticket, order


def queue_entry(ticket: Any, now: datetime, ratio: float = WARNING_RATIO) -> dict[str, Any]:
    """Serialize a ticket together with its SLA timer for the KDS board."""
    timer = ticket_timer(ticket, now, ratio)
    data = ticket_to_dict(ticket)
    data["timer"] = timer.as_dict()
    data["display_priority"] = display_priority(timer.band, ticket.priority).value
    return data


async def station_queue(
    store: SqlStore,
    station: Station,
    now: datetime,
    ratio: float = WARNING_RATIO,
    include_ready: bool = True,
) -> list[dict[str, Any]]:
    """Return a station's active tickets, oldest first.

    Voided tickets and closed tickets are hidden. Ready tickets stay on the
    board (with frozen timers) until they are closed, unless
    ``include_ready`` is false.
    """

    statuses = {s.value for s in OPEN_TICKET_STATUSES}
    if include_ready:
        statuses.add(TicketStatus.READY.value)
    tickets = await store.query_all(
        "ticket",
        {
            "station": Station(station).value,
            "status__in": sorted(statuses),
            "voided_at__isnull": True,
        },
        order_by="created_at",
    )
    return [queue_entry(t, now, ratio) for t in tickets]
