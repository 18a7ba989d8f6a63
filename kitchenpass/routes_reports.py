"""Manager reporting routes for one business day."""

from __future__ import annotations

from datetime import date as date_cls
from typing import Optional

from fastapi import APIRouter, Depends

from .config import Settings
from .deps import get_clock, get_config, get_store
from .repos_sqlalchemy import SqlStore
from .services import reports
from .utils.clock import Clock, business_day, day_bounds
from .utils.responses import ok

router = APIRouter(prefix="/api/reports")


def _bounds(day: Optional[date_cls], clock: Clock, settings: Settings):
    day = day or business_day(clock.now(), settings.business_timezone)
    start, end = day_bounds(day, settings.business_timezone)
    return day, start, end


async def _orders(store: SqlStore, start, end) -> list:
    return await store.query_all(
        "order", {"created_at__gte": start, "created_at__lt": end}, order_by="created_at"
    )


@router.get("/today")
async def today(
    date: Optional[date_cls] = None,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    """Headline figures, payment mix and order-type mix of the day."""

    day, start, end = _bounds(date, clock, settings)
    orders = await _orders(store, start, end)
    ids = [o.id for o in orders]
    payments = await store.query_all("payment", {"order_id__in": ids}) if ids else []
    return ok(
        {
            "date": day.isoformat(),
            **reports.today_stats(orders),
            "payment_methods": reports.payment_methods(payments, orders),
            "order_types": reports.order_types(orders),
        }
    )


@router.get("/hourly")
async def hourly(
    date: Optional[date_cls] = None,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    day, start, end = _bounds(date, clock, settings)
    orders = await _orders(store, start, end)
    return ok(
        {
            "date": day.isoformat(),
            "hours": reports.hourly_breakdown(orders, settings.business_timezone),
        }
    )


@router.get("/sales")
async def sales(
    date: Optional[date_cls] = None,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    day, start, end = _bounds(date, clock, settings)
    orders = await _orders(store, start, end)
    return ok({"date": day.isoformat(), "items": reports.sales_by_item(orders)})


@router.get("/sla")
async def sla(
    date: Optional[date_cls] = None,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_config),
) -> dict:
    """Kitchen cook times against each ticket's SLA."""

    day, start, end = _bounds(date, clock, settings)
    tickets = await store.query_all(
        "ticket", {"created_at__gte": start, "created_at__lt": end}
    )
    return ok({"date": day.isoformat(), **reports.sla_compliance(tickets)})
