"""Shared builders for the test suite."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

# 12:00 in Asia/Bangkok
T0 = datetime(2024, 3, 1, 5, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


def menu_item(id="pad-thai", price="80", station="kitchen", modifiers=(), **kwargs):
    """Catalog row stand-in for pure domain tests."""
    data = {
        "id": id,
        "name": id.replace("-", " ").title(),
        "price": price,
        "station": station,
        "available": True,
        "deleted_at": None,
        "modifiers": list(modifiers),
    }
    data.update(kwargs)
    return SimpleNamespace(**data)
