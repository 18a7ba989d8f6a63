"""Snapshot cart lines into order items and split them per station."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

from .cart import CartLine
from .errors import InvariantViolation
from .order_status import Station


def snapshot_lines(lines: Iterable[CartLine]) -> list[dict[str, Any]]:
    """Copy cart lines into JSON-ready order item snapshots.

    Names, unit prices and modifier names are frozen here so later catalog
    edits never change an already submitted order.
    """

    return [
        {
            "line_no": idx,
            "menu_item_id": line.menu_item_id,
            "name": line.name,
            "quantity": line.quantity,
            "unit_price": str(line.unit_price),
            "modifiers": list(line.modifiers),
            "note": line.note,
            "station": line.station.value,
        }
        for idx, line in enumerate(lines)
    ]


def items_total(items: Iterable[dict[str, Any]]) -> Decimal:
    """Sum ``unit_price * quantity`` over order item snapshots."""
    return sum(
        (Decimal(item["unit_price"]) * item["quantity"] for item in items),
        Decimal("0"),
    )


def partition_items(
    items: Iterable[dict[str, Any]],
) -> list[tuple[Station, list[dict[str, Any]]]]:
    """Group order items by station, skipping stations with no items.

    Stations are returned in :class:`Station` declaration order and items
    keep their order within a station.
    """

    groups: dict[Station, list[dict[str, Any]]] = {station: [] for station in Station}
    for item in items:
        groups[Station(item["station"])].append(item)
    return [(station, group) for station, group in groups.items() if group]


def check_partition(
    order_items: list[dict[str, Any]], ticket_items: Iterable[list[dict[str, Any]]]
) -> None:
    """Raise :class:`InvariantViolation` unless tickets partition the order."""

    seen: list[int] = []
    for group in ticket_items:
        if not group:
            raise InvariantViolation("ticket without items")
        seen.extend(item["line_no"] for item in group)
    if sorted(seen) != sorted(item["line_no"] for item in order_items):
        raise InvariantViolation("tickets do not partition the order items")
