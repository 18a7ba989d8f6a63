"""Client-side cart that accumulates line items before submission.

The cart has no persistent representation. It is consumed by
:func:`kitchenpass.services.order_service.build_order`, which snapshots its
lines into the order.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable

from .errors import InvalidAmount, InvalidQuantity, ItemUnavailable, NotFound, UnknownModifier
from .order_status import Station


@dataclass
class CartLine:
    """One selected menu item with its modifiers and quantity."""

    line_id: str
    menu_item_id: str
    name: str
    unit_price: Decimal
    station: Station
    quantity: int
    modifiers: tuple[str, ...] = ()
    note: str | None = None

    @property
    def key(self) -> tuple[str, frozenset[str], str | None]:
        return (self.menu_item_id, frozenset(self.modifiers), self.note)

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


def _check_quantity(quantity: Any) -> int:
    # bool is an int subclass but never a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(quantity=quantity)
    return quantity


def _modifier_prices(menu_item: Any) -> dict[str, Decimal]:
    return {
        str(mod["name"]): Decimal(str(mod.get("price", 0)))
        for mod in (getattr(menu_item, "modifiers", None) or [])
    }


@dataclass
class Cart:
    """In-memory aggregation of lines for one in-progress order."""

    _lines: list[CartLine] = field(default_factory=list)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add_item(
        self,
        menu_item: Any,
        quantity: int = 1,
        modifiers: Iterable[str] = (),
        note: str | None = None,
    ) -> CartLine:
        """Add ``quantity`` of ``menu_item`` with ``modifiers``.

        A line with the same menu item, modifier set and note is merged by
        incrementing its quantity; anything else appends a new line. The
        unit price is the catalog price plus the chosen modifiers' deltas
        and may not drop below zero.
        """

        quantity = _check_quantity(quantity)
        if getattr(menu_item, "available", True) is False or getattr(
            menu_item, "deleted_at", None
        ) is not None:
            raise ItemUnavailable(menu_item_id=str(menu_item.id))

        offered = _modifier_prices(menu_item)
        chosen = tuple(dict.fromkeys(modifiers))
        unknown = [name for name in chosen if name not in offered]
        if unknown:
            raise UnknownModifier(menu_item_id=str(menu_item.id), modifiers=unknown)

        note = note or None
        key = (str(menu_item.id), frozenset(chosen), note)
        for line in self._lines:
            if line.key == key:
                line.quantity += quantity
                return line

        unit_price = Decimal(str(menu_item.price)) + sum(
            (offered[name] for name in chosen), Decimal("0")
        )
        if unit_price < 0:
            raise InvalidAmount(menu_item_id=str(menu_item.id), unit_price=str(unit_price))
        line = CartLine(
            line_id=uuid.uuid4().hex,
            menu_item_id=str(menu_item.id),
            name=menu_item.name,
            unit_price=unit_price,
            station=Station(menu_item.station),
            quantity=quantity,
            modifiers=chosen,
            note=note,
        )
        self._lines.append(line)
        return line

    def set_quantity(self, line_id: str, quantity: int) -> CartLine | None:
        """Set a line's quantity; zero or less removes the line."""

        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity(quantity=quantity)
        if quantity <= 0:
            self.remove_item(line_id)
            return None
        for line in self._lines:
            if line.line_id == line_id:
                line.quantity = quantity
                return line
        raise NotFound("cart line not found", line_id=line_id)

    def remove_item(self, line_id: str) -> None:
        self._lines = [line for line in self._lines if line.line_id != line_id]

    def clear(self) -> None:
        self._lines = []

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self._lines), Decimal("0"))
