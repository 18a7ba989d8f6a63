"""Change events and the client-side view they are applied to.

Events arrive at least once and in no particular order across entities.
:class:`LocalView` applies them by id with last-write-wins on the record's
timestamp, so replays and stale deliveries are no-ops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ..utils.clock import parse_ts

logger = logging.getLogger("kitchenpass.realtime")


class ChangeKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class EntityKind(str, Enum):
    ORDER = "order"
    TICKET = "ticket"
    PAYMENT = "payment"


@dataclass(frozen=True)
class ChangeEvent:
    """Tagged union of ``{kind, entity, data}``; ``data`` is a serialized record."""

    kind: ChangeKind
    entity: EntityKind
    data: dict[str, Any]

    @property
    def record_id(self) -> str:
        return str(self.data["id"])

    def as_dict(self) -> dict[str, Any]:
        return {"op": self.kind.value, "entity": self.entity.value, "record": self.data}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ChangeEvent":
        return cls(
            ChangeKind(payload["op"]), EntityKind(payload["entity"]), dict(payload["record"])
        )


def _version(entity: EntityKind, data: dict[str, Any]) -> datetime | None:
    # payments are immutable, so their creation time is their version
    if entity is EntityKind.PAYMENT:
        return parse_ts(data.get("created_at"))
    return parse_ts(data.get("updated_at") or data.get("created_at"))


@dataclass
class LocalView:
    """Explicit state container for the records a client displays."""

    orders: dict[str, dict[str, Any]] = field(default_factory=dict)
    tickets: dict[str, dict[str, Any]] = field(default_factory=dict)
    payments: dict[str, dict[str, Any]] = field(default_factory=dict)
    _tombstones: dict[tuple[EntityKind, str], datetime | None] = field(
        default_factory=dict
    )

    def collection(self, entity: EntityKind) -> dict[str, dict[str, Any]]:
        if entity is EntityKind.ORDER:
            return self.orders
        if entity is EntityKind.TICKET:
            return self.tickets
        if entity is EntityKind.PAYMENT:
            return self.payments
        raise ValueError(f"unknown entity {entity!r}")

    def apply(self, event: ChangeEvent) -> bool:
        """Apply ``event``; return ``True`` if the view changed."""

        records = self.collection(event.entity)
        record_id = event.record_id
        incoming = _version(event.entity, event.data)

        if event.kind is ChangeKind.DELETE:
            tomb_key = (event.entity, record_id)
            previous = self._tombstones.get(tomb_key)
            if previous is None or (incoming is not None and incoming > previous):
                self._tombstones[tomb_key] = incoming
            return records.pop(record_id, None) is not None

        if (event.entity, record_id) in self._tombstones:
            deleted_at = self._tombstones[(event.entity, record_id)]
            if deleted_at is None or incoming is None or incoming <= deleted_at:
                logger.debug("ignoring %s for deleted %s %s", event.kind.value, event.entity.value, record_id)
                return False

        current = records.get(record_id)
        if current is not None:
            existing = _version(event.entity, current)
            if existing is not None and incoming is not None and incoming < existing:
                logger.debug("ignoring stale %s %s", event.entity.value, record_id)
                return False
            if current == event.data:
                return False
        records[record_id] = dict(event.data)
        return True

    def upsert_local(self, entity: EntityKind, data: dict[str, Any]) -> bool:
        """Apply an optimistic local write through the same rules as the feed."""
        return self.apply(ChangeEvent(ChangeKind.UPDATE, entity, data))
