"""Human readable queue numbers printed at the till and on tickets.

Queue numbers are display identifiers, not keys. Collisions are tolerated
but rare within one business day.
"""

from __future__ import annotations

import random
from datetime import datetime
from zoneinfo import ZoneInfo

from ..config import QueueNumberStyle, Settings
from ..repos.store import Store
from ..utils.clock import business_day_bounds, ensure_aware


def timestamp_queue_number(now: datetime, tz_name: str, rng: random.Random | None = None) -> str:
    """Render ``DDMMHHMM`` in local time followed by two random digits."""
    local = ensure_aware(now).astimezone(ZoneInfo(tz_name))
    suffix = (rng or random).randrange(100)
    return f"{local:%d%m%H%M}{suffix:02d}"


def sequential_queue_number(orders_today: int) -> str:
    return f"A{orders_today + 1:03d}"


async def next_queue_number(store: Store, settings: Settings, now: datetime) -> str:
    if settings.queue_number_style is QueueNumberStyle.SEQUENTIAL:
        start, end = business_day_bounds(now, settings.business_timezone)
        todays = await store.query_all(
            "order", {"created_at__gte": start, "created_at__lt": end}
        )
        return sequential_queue_number(len(todays))
    return timestamp_queue_number(now, settings.business_timezone)
