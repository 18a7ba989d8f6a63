"""Server-Sent Events stream of order, ticket and payment changes.

Each change is emitted as ``event: <entity>`` with the JSON encoded
``{"op", "entity", "record"}`` payload. Delivery is at least once; clients
apply events through their local view, which ignores duplicates and stale
records. A ``:keepalive`` comment is sent when the feed is idle.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from .deps import get_feed
from .domain.order_status import Station
from .domain.realtime import ChangeEvent, EntityKind
from .events import ChangeFeed

KEEPALIVE_INTERVAL = 15

logger = logging.getLogger("kitchenpass.realtime")

router = APIRouter()


def format_event(event: ChangeEvent) -> str:
    return f"event: {event.entity.value}\ndata: {json.dumps(event.as_dict())}\n\n"


async def sse_events(
    queue: asyncio.Queue,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive: float = KEEPALIVE_INTERVAL,
) -> AsyncIterator[str]:
    """Yield SSE frames from ``queue`` until the client goes away."""

    while not await is_disconnected():
        try:
            event = await asyncio.wait_for(queue.get(), timeout=keepalive)
        except asyncio.TimeoutError:
            yield ":keepalive\n\n"
            continue
        yield format_event(event)


@router.get(
    "/api/realtime/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def stream_changes(
    request: Request,
    entity: Optional[EntityKind] = None,
    station: Optional[Station] = None,
    order_id: Optional[str] = None,
    feed: ChangeFeed = Depends(get_feed),
) -> StreamingResponse:
    """Stream changes, optionally narrowed to one entity, station or order."""

    queue = feed.subscribe(
        entity, station=station.value if station else None, order_id=order_id
    )
    logger.info(
        "realtime subscriber entity=%s station=%s order=%s",
        entity.value if entity else "*",
        station.value if station else "*",
        order_id or "*",
    )

    async def event_gen():
        try:
            async for frame in sse_events(queue, request.is_disconnected):
                yield frame
        finally:
            feed.unsubscribe(queue)

    return StreamingResponse(event_gen(), media_type="text/event-stream")
