"""Order submission, lookup and void routes."""

from __future__ import annotations

from datetime import date as date_cls
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .config import Settings
from .deps import Actor, get_actor, get_clock, get_config, get_feed, get_store
from .domain.cart import Cart
from .domain.errors import ItemUnavailable
from .domain.order_status import BillStatus, OrderStatus, OrderType
from .domain.payments import balance
from .events import ChangeFeed
from .repos_sqlalchemy import SqlStore
from .serializers import order_to_dict, payment_to_dict, ticket_to_dict
from .services.order_service import OrderContext, submit_order
from .services.payment_service import void_order
from .services.queue_numbers import next_queue_number
from .utils.clock import Clock, business_day_bounds, day_bounds
from .utils.responses import ok

router = APIRouter(prefix="/api/orders")


class OrderLine(BaseModel):
    """One cart line referencing a catalog item."""

    menu_item_id: str
    quantity: int = 1
    modifiers: List[str] = []
    note: Optional[str] = None


class OrderPayload(BaseModel):
    """Cart contents plus the order-type details captured at the till.

    ``order_id`` may be generated by the client so a retried submission
    returns the order created by the first attempt.
    """

    order_id: Optional[str] = Field(None, max_length=64)
    order_type: OrderType
    table_number: Optional[str] = None
    customer_name: Optional[str] = None
    contact_info: Optional[str] = None
    platform: Optional[str] = None
    lines: List[OrderLine] = []


class VoidPayload(BaseModel):
    reason: str = Field(..., min_length=1)
    refund: bool = False


async def _build_cart(store: SqlStore, lines: List[OrderLine]) -> Cart:
    cart = Cart()
    ids = sorted({line.menu_item_id for line in lines})
    catalog = {m.id: m for m in await store.query_all("menu_item", {"id__in": ids})} if ids else {}
    for line in lines:
        item = catalog.get(line.menu_item_id)
        if item is None:
            raise ItemUnavailable("menu item does not exist", menu_item_id=line.menu_item_id)
        cart.add_item(item, line.quantity, line.modifiers, line.note)
    return cart


async def order_detail(store: SqlStore, order_id: str) -> dict:
    """Return the order with its tickets, payments and balance."""

    order = await store.require("order", order_id)
    tickets = await store.query_all("ticket", {"order_id": order_id}, order_by="station")
    payments = await store.query_all("payment", {"order_id": order_id}, order_by="created_at")
    return {
        "order": order_to_dict(order),
        "tickets": [ticket_to_dict(t) for t in tickets],
        "payments": [payment_to_dict(p) for p in payments],
        "balance": balance(order, payments).as_dict(),
    }


@router.post("")
async def create_order(
    payload: OrderPayload,
    store: SqlStore = Depends(get_store),
    feed: ChangeFeed = Depends(get_feed),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
    actor: Actor = Depends(get_actor),
) -> dict:
    """Submit a cart as a new order and route its tickets to the stations."""

    now = clock.now()
    cart = Cart()
    if payload.order_id is None or await store.get("order", payload.order_id) is None:
        cart = await _build_cart(store, payload.lines)
    context = OrderContext(
        order_type=payload.order_type,
        table_number=payload.table_number,
        customer_name=payload.customer_name,
        contact_info=payload.contact_info,
        platform=payload.platform,
    )
    queue_number = await next_queue_number(store, settings, now)
    submission = await submit_order(
        store,
        feed,
        cart,
        context,
        actor,
        now,
        queue_number,
        order_id=payload.order_id,
        sla_table=settings.sla_minutes,
    )
    return ok(
        {
            "order": order_to_dict(submission.order),
            "tickets": [ticket_to_dict(t) for t in submission.tickets],
            "created": submission.created,
        }
    )


@router.get("")
async def list_orders(
    bill_status: Optional[BillStatus] = None,
    status: Optional[OrderStatus] = None,
    today: bool = False,
    date: Optional[date_cls] = None,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    """List orders, newest first, filtered by bill status and business day."""

    filters: dict = {}
    if bill_status is not None:
        filters["bill_status"] = bill_status.value
    if status is not None:
        filters["status"] = status.value
    if date is not None:
        start, end = day_bounds(date, settings.business_timezone)
        filters.update(created_at__gte=start, created_at__lt=end)
    elif today:
        start, end = business_day_bounds(clock.now(), settings.business_timezone)
        filters.update(created_at__gte=start, created_at__lt=end)
    orders = await store.query_all("order", filters, order_by="-created_at")
    return ok([order_to_dict(o) for o in orders])


@router.get("/{order_id}")
async def get_order(order_id: str, store: SqlStore = Depends(get_store)) -> dict:
    return ok(await order_detail(store, order_id))


@router.post("/{order_id}/void")
async def void(
    order_id: str,
    payload: VoidPayload,
    store: SqlStore = Depends(get_store),
    feed: ChangeFeed = Depends(get_feed),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_actor),
) -> dict:
    """Cancel an order; ``refund`` marks it as refunded in the audit trail."""

    action = "refund" if payload.refund else "void"
    order, voided = await void_order(
        store, feed, order_id, payload.reason, actor, clock.now(), action=action
    )
    return ok(
        {
            "order": order_to_dict(order),
            "voided_tickets": [t.id for t in voided],
        }
    )
