"""Payment recording, settlement and voids.

The payment insert and the ``bill_status`` flip happen in one transaction;
a payment recorded without the flip would break the bill invariant.
Payments are never edited or deleted. A void or refund cancels the order
and leaves the ledger as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..deps.actor import Actor
from ..domain.errors import Conflict, InvalidTransition
from ..domain.order_status import OrderStatus, PaymentMethod, TERMINAL_TICKET_STATUSES, TicketStatus
from ..domain.payments import reconcile, settle
from ..domain.realtime import ChangeKind, EntityKind
from ..events import ChangeFeed
from ..models import AuditLog, Payment, new_id
from ..repos_sqlalchemy import SqlStore
from ..serializers import order_to_dict, payment_to_dict, ticket_to_dict

logger = logging.getLogger("kitchenpass.payments")


@dataclass
class PaymentOutcome:
    payment: Payment
    order: Any
    duplicate: bool = False

    @property
    def change(self) -> Decimal | None:
        return self.payment.change


async def record_payment(
    store: SqlStore,
    feed: ChangeFeed,
    order_id: str,
    tendered: Any,
    method: PaymentMethod | str,
    actor: Actor,
    now: datetime,
    reference: str | None = None,
    payment_id: str | None = None,
    cash_overpay_limit: Decimal = Decimal("1000"),
) -> PaymentOutcome:
    """Record one payment and settle the order once the ledger covers it.

    Re-sending a payment with an id that is already stored returns that
    payment unchanged, so retries never double count.
    """

    if payment_id is not None:
        existing = await store.get("payment", payment_id)
        if existing is not None:
            if existing.order_id != order_id:
                raise Conflict("payment id belongs to another order", payment_id=payment_id)
            order = await store.require("order", order_id)
            return PaymentOutcome(existing, order, duplicate=True)

    async with store.transaction():
        order = await store.require("order", order_id)
        payments = await store.query_all("payment", {"order_id": order_id})
        draft = reconcile(
            order,
            payments,
            tendered,
            method,
            reference=reference,
            cash_overpay_limit=cash_overpay_limit,
        )
        payment = Payment(
            id=payment_id or new_id(),
            order_id=order_id,
            amount=draft.amount,
            method=draft.method.value,
            reference=draft.reference,
            change=draft.change,
            created_by=actor.actor_id,
            created_at=now,
        )
        await store.insert("payment", payment)
        settled = settle(order, [*payments, payment], now)
        await store.insert(
            "audit_log",
            AuditLog(
                actor=actor.actor_id,
                action="payment.record",
                meta={
                    "order_id": order_id,
                    "payment_id": payment.id,
                    "amount": str(payment.amount),
                    "method": payment.method,
                },
                at=now,
            ),
        )

    logger.info(
        "payment %s order=%s amount=%s method=%s settled=%s",
        payment.id,
        order_id,
        payment.amount,
        payment.method,
        settled,
        extra={"actor": actor.actor_id},
    )
    await feed.publish_many(ChangeKind.INSERT, EntityKind.PAYMENT, [payment_to_dict(payment)])
    if settled:
        await feed.publish_many(ChangeKind.UPDATE, EntityKind.ORDER, [order_to_dict(order)])
    return PaymentOutcome(payment, order)


async def void_order(
    store: SqlStore,
    feed: ChangeFeed,
    order_id: str,
    reason: str,
    actor: Actor,
    now: datetime,
    action: str = "void",
) -> tuple[Any, list[Any]]:
    """Cancel an order with an audit note; ``action`` is ``void`` or ``refund``.

    Tickets that are still open are stamped ``voided_at`` so the kitchen
    board drops them; their status is left as it was.
    """

    async with store.transaction():
        order = await store.require("order", order_id)
        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidTransition("order is already cancelled", order_id=order_id)
        note = f"[{action} {now.isoformat()} by {actor.actor_id}] {reason}".strip()
        order.notes = f"{order.notes}\n{note}" if order.notes else note
        order.status = OrderStatus.CANCELLED.value
        order.updated_at = now

        tickets = await store.query_all("ticket", {"order_id": order_id})
        voided = []
        for ticket in tickets:
            if TicketStatus(ticket.status) not in TERMINAL_TICKET_STATUSES:
                ticket.voided_at = now
                ticket.updated_at = now
                voided.append(ticket)
        await store.insert(
            "audit_log",
            AuditLog(
                actor=actor.actor_id,
                action=f"order.{action}",
                meta={"order_id": order_id, "reason": reason, "bill_status": order.bill_status},
                at=now,
            ),
        )

    logger.warning(
        "order %s %s: %s", order_id, action, reason, extra={"actor": actor.actor_id}
    )
    await feed.publish_many(ChangeKind.UPDATE, EntityKind.ORDER, [order_to_dict(order)])
    await feed.publish_many(
        ChangeKind.UPDATE, EntityKind.TICKET, [ticket_to_dict(t) for t in voided]
    )
    return order, voided
