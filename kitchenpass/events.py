# events.py

"""In-memory Pub/Sub dispatcher and the change feed built on it."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

from .domain.realtime import ChangeEvent, ChangeKind, EntityKind

logger = logging.getLogger("kitchenpass.realtime")

Predicate = Callable[[Any], bool]


class EventBus:
    """Dispatch events to subscribers via :class:`asyncio.Queue` instances."""

    def __init__(self) -> None:
        self._subs: Dict[str, List[Tuple[asyncio.Queue, Predicate | None]]] = defaultdict(
            list
        )

    def subscribe(
        self,
        name: str,
        predicate: Predicate | None = None,
        queue: asyncio.Queue | None = None,
    ) -> asyncio.Queue:
        """Register interest in ``name`` events and return a queue.

        When ``predicate`` is given only payloads it accepts are delivered.
        Passing ``queue`` lets one consumer listen on several names.
        """

        queue = queue if queue is not None else asyncio.Queue()
        self._subs[name].append((queue, predicate))
        return queue

    def unsubscribe(self, name: str, queue: asyncio.Queue) -> None:
        self._subs[name] = [(q, p) for q, p in self._subs.get(name, []) if q is not queue]

    async def publish(self, name: str, payload: Any) -> None:
        """Broadcast ``payload`` to all subscribers of ``name``."""

        for queue, predicate in list(self._subs.get(name, [])):
            if predicate is None or predicate(payload):
                await queue.put(payload)


def _topic(entity: EntityKind) -> str:
    return f"change.{entity.value}"


def _matcher(filters: Dict[str, Any]) -> Predicate | None:
    if not filters:
        return None

    def _field(event: ChangeEvent, key: str) -> Any:
        if key == "order_id" and event.entity is EntityKind.ORDER:
            return event.data.get("id")
        return event.data.get(key)

    def _match(event: ChangeEvent) -> bool:
        return all(str(_field(event, k)) == str(v) for k, v in filters.items())

    return _match


class ChangeFeed:
    """Subscription interface over order, ticket and payment mutations.

    Delivery is at-least-once with no ordering across entities; consumers
    apply events through :class:`~kitchenpass.domain.realtime.LocalView`.
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self.bus = bus or EventBus()

    def subscribe(
        self, entity: EntityKind | None = None, **filters: Any
    ) -> asyncio.Queue:
        """Return a queue of :class:`ChangeEvent` for ``entity`` (or all)."""

        entities = [entity] if entity is not None else list(EntityKind)
        predicate = _matcher({k: v for k, v in filters.items() if v is not None})
        queue: asyncio.Queue = asyncio.Queue()
        for kind in entities:
            self.bus.subscribe(_topic(kind), predicate, queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        for kind in EntityKind:
            self.bus.unsubscribe(_topic(kind), queue)

    async def publish(self, event: ChangeEvent) -> None:
        logger.debug(
            "change %s %s %s", event.kind.value, event.entity.value, event.record_id
        )
        await self.bus.publish(_topic(event.entity), event)

    async def publish_many(
        self, kind: ChangeKind, entity: EntityKind, records: List[Dict[str, Any]]
    ) -> None:
        for record in records:
            await self.publish(ChangeEvent(kind, entity, record))
