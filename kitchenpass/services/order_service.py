"""Order submission: turn a cart into one order and its station tickets.

:func:`build_order` is pure. It validates the cart and the order-type
context before anything is persisted and returns unsaved rows.
:func:`submit_order` writes the order and its tickets in one transaction and
announces them on the change feed. The cart is never cleared here; the
caller clears it after a successful submission.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from ..deps.actor import Actor
from ..domain.cart import Cart
from ..domain.errors import EmptyCart, MissingDeliveryInfo, MissingTable
from ..domain.order_status import (
    OrderStatus,
    OrderType,
    TicketPriority,
    TicketStatus,
)
from ..domain.payments import bill_status_for
from ..domain.realtime import ChangeKind, EntityKind
from ..domain.routing import check_partition, items_total, partition_items, snapshot_lines
from ..domain.sla import sla_minutes_for
from ..events import ChangeFeed
from ..models import AuditLog, Order, Ticket, new_id
from ..repos_sqlalchemy import SqlStore
from ..serializers import order_to_dict, ticket_to_dict

logger = logging.getLogger("kitchenpass.orders")


@dataclass(frozen=True)
class OrderContext:
    """Order-type specific details captured at the till."""

    order_type: OrderType
    table_number: str | None = None
    customer_name: str | None = None
    contact_info: str | None = None
    platform: str | None = None


@dataclass
class Submission:
    order: Order
    tickets: list[Ticket]
    created: bool = True


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate(cart: Cart, context: OrderContext) -> None:
    """Reject the submission before any persistence call."""

    if cart.is_empty:
        raise EmptyCart()
    if context.order_type is OrderType.DINE_IN and _blank(context.table_number):
        raise MissingTable()
    if context.order_type is OrderType.DELIVERY and (
        _blank(context.contact_info) or _blank(context.platform)
    ):
        raise MissingDeliveryInfo()


def build_order(
    cart: Cart,
    context: OrderContext,
    actor: Actor,
    now: datetime,
    queue_number: str,
    order_id: str | None = None,
    sla_table: Mapping[str, int] | None = None,
) -> Submission:
    """Return an unsaved order with one ticket per station that has items."""

    validate(cart, context)
    order_type = OrderType(context.order_type)
    items = snapshot_lines(cart.lines)
    total = items_total(items)
    order = Order(
        id=order_id or new_id(),
        queue_number=queue_number,
        order_type=order_type.value,
        table_number=context.table_number.strip() if order_type is OrderType.DINE_IN else None,
        customer_name=context.customer_name or None,
        contact_info=context.contact_info or None,
        platform=context.platform if order_type is OrderType.DELIVERY else None,
        items=items,
        total_amount=total,
        bill_status=bill_status_for(total, []).value,
        status=OrderStatus.PENDING.value,
        notes=None,
        created_by=actor.actor_id,
        created_at=now,
        updated_at=now,
    )

    tickets = [
        Ticket(
            id=new_id(),
            order_id=order.id,
            queue_number=queue_number,
            station=station.value,
            items=group,
            status=TicketStatus.PENDING.value,
            priority=TicketPriority.NORMAL.value,
            sla_minutes=sla_minutes_for(order_type, station, sla_table),
            order_type=order_type.value,
            table_number=order.table_number,
            created_at=now,
            started_at=None,
            completed_at=None,
            closed_at=None,
            voided_at=None,
            updated_at=now,
        )
        for station, group in partition_items(items)
    ]
    check_partition(items, (t.items for t in tickets))
    return Submission(order, tickets)


async def submit_order(
    store: SqlStore,
    feed: ChangeFeed,
    cart: Cart,
    context: OrderContext,
    actor: Actor,
    now: datetime,
    queue_number: str,
    order_id: str | None = None,
    sla_table: Mapping[str, int] | None = None,
) -> Submission:
    """Persist the order and its tickets atomically.

    Submitting again with the same ``order_id`` returns the stored order and
    tickets without writing anything.
    """

    if order_id is not None:
        existing = await store.get("order", order_id)
        if existing is not None:
            tickets = await store.query_all(
                "ticket", {"order_id": order_id}, order_by="station"
            )
            logger.info("order %s already submitted", order_id)
            return Submission(existing, tickets, created=False)

    submission = build_order(
        cart, context, actor, now, queue_number, order_id=order_id, sla_table=sla_table
    )
    order, tickets = submission.order, submission.tickets
    async with store.transaction():
        await store.insert("order", order)
        for ticket in tickets:
            await store.insert("ticket", ticket)
        await store.insert(
            "audit_log",
            AuditLog(
                actor=actor.actor_id,
                action="order.submit",
                meta={"order_id": order.id, "queue_number": order.queue_number},
                at=now,
            ),
        )

    logger.info(
        "order %s submitted queue=%s type=%s tickets=%d total=%s",
        order.id,
        order.queue_number,
        order.order_type,
        len(tickets),
        order.total_amount,
        extra={"actor": actor.actor_id},
    )
    await feed.publish_many(ChangeKind.INSERT, EntityKind.ORDER, [order_to_dict(order)])
    await feed.publish_many(
        ChangeKind.INSERT, EntityKind.TICKET, [ticket_to_dict(t) for t in tickets]
    )
    return submission
