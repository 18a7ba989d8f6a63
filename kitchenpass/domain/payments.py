"""Payment ledger reconciliation.

``bill_status`` is ``PAID`` exactly when the ledger covers the order total.
Only cash may exceed the remaining balance; the excess is handed back as
change and never counts toward the order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .errors import AlreadyPaid, InvalidAmount, OrderCancelled
from .order_status import BillStatus, OrderStatus, PaymentMethod

CENTS = Decimal("0.01")
# largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def to_money(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
        if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
            raise InvalidAmount(amount=str(value))
        return amount.quantize(CENTS)
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmount(amount=str(value)) from exc


def paid_total(payments: Iterable[Any]) -> Decimal:
    return sum((Decimal(str(p.amount)) for p in payments), Decimal("0")).quantize(CENTS)


@dataclass(frozen=True)
class Balance:
    total: Decimal
    paid: Decimal
    remaining: Decimal
    change: Decimal

    def as_dict(self) -> dict[str, str]:
        return {
            "total": str(self.total),
            "paid": str(self.paid),
            "remaining": str(self.remaining),
            "change": str(self.change),
        }


def balance(order: Any, payments: Iterable[Any]) -> Balance:
    payments = list(payments)
    total = Decimal(str(order.total_amount)).quantize(CENTS)
    paid = paid_total(payments)
    change = sum(
        (Decimal(str(p.change)) for p in payments if p.change is not None), Decimal("0")
    ).quantize(CENTS)
    return Balance(total, paid, max(total - paid, Decimal("0.00")), change)


def bill_status_for(total: Any, payments: Iterable[Any]) -> BillStatus:
    if paid_total(payments) >= Decimal(str(total)):
        return BillStatus.PAID
    return BillStatus.UNPAID


@dataclass(frozen=True)
class PaymentDraft:
    """Amounts to record for one tendered payment."""

    amount: Decimal
    change: Decimal | None
    method: PaymentMethod
    reference: str | None


def reconcile(
    order: Any,
    payments: Iterable[Any],
    tendered: Any,
    method: PaymentMethod | str,
    reference: str | None = None,
    cash_overpay_limit: Decimal = Decimal("1000"),
) -> PaymentDraft:
    """Validate a tendered amount against the order's remaining balance."""

    method = PaymentMethod(method)
    tendered = to_money(tendered)
    if tendered <= 0:
        raise InvalidAmount("amount must be greater than 0", amount=str(tendered))
    if order.status == OrderStatus.CANCELLED.value:
        raise OrderCancelled(order_id=order.id)

    state = balance(order, payments)
    if state.paid >= state.total:
        raise AlreadyPaid(order_id=order.id, paid=str(state.paid), total=str(state.total))

    excess = tendered - state.remaining
    if excess <= 0:
        return PaymentDraft(tendered, None, method, reference or None)
    if method is not PaymentMethod.CASH:
        raise InvalidAmount(
            "only cash may exceed the remaining balance",
            amount=str(tendered),
            remaining=str(state.remaining),
        )
    if excess > Decimal(str(cash_overpay_limit)):
        raise InvalidAmount(
            "cash overpayment exceeds the change limit",
            amount=str(tendered),
            remaining=str(state.remaining),
        )
    return PaymentDraft(state.remaining, excess, method, reference or None)


def settle(order: Any, payments: Iterable[Any], now: datetime) -> bool:
    """Flip ``order.bill_status`` to ``PAID`` once the ledger covers the total."""

    if order.bill_status == BillStatus.PAID.value:
        return False
    if bill_status_for(order.total_amount, payments) is not BillStatus.PAID:
        return False
    order.bill_status = BillStatus.PAID.value
    order.updated_at = now
    return True
