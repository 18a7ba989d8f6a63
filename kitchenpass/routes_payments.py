"""Payment recording route."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .config import Settings
from .deps import Actor, get_actor, get_clock, get_config, get_feed, get_store
from .domain.order_status import PaymentMethod
from .domain.payments import balance
from .events import ChangeFeed
from .repos_sqlalchemy import SqlStore
from .serializers import order_to_dict, payment_to_dict
from .services.payment_service import record_payment
from .utils.clock import Clock
from .utils.responses import ok

router = APIRouter()


class PaymentPayload(BaseModel):
    """Tendered amount; cash may exceed the balance and receive change."""

    payment_id: Optional[str] = Field(None, max_length=64)
    amount: Decimal = Field(..., examples=["500.00"])
    method: PaymentMethod
    reference: Optional[str] = None


@router.post("/api/orders/{order_id}/payments")
async def create_payment(
    order_id: str,
    payload: PaymentPayload,
    store: SqlStore = Depends(get_store),
    feed: ChangeFeed = Depends(get_feed),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
    actor: Actor = Depends(get_actor),
) -> dict:
    outcome = await record_payment(
        store,
        feed,
        order_id,
        payload.amount,
        payload.method,
        actor,
        clock.now(),
        reference=payload.reference,
        payment_id=payload.payment_id,
        cash_overpay_limit=settings.cash_overpay_limit,
    )
    payments = await store.query_all("payment", {"order_id": order_id})
    return ok(
        {
            "payment": payment_to_dict(outcome.payment),
            "order": order_to_dict(outcome.order),
            "balance": balance(outcome.order, payments).as_dict(),
            "duplicate": outcome.duplicate,
        }
    )
