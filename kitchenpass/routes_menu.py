"""Menu catalog routes.

Menu items are soft deleted so that historical orders keep resolving the
items they reference.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .deps import Actor, get_actor, get_clock, get_store
from .domain.order_status import Station
from .models import MenuItem, new_id
from .repos_sqlalchemy import SqlStore
from .serializers import menu_item_to_dict
from .utils.clock import Clock
from .utils.responses import ok
from .utils.soft_delete import guard_not_deleted, restore, soft_delete

logger = logging.getLogger("kitchenpass.menu")

router = APIRouter(prefix="/api/menu")


class Modifier(BaseModel):
    """Optional add-on with a price delta."""

    name: str = Field(..., min_length=1)
    price: Decimal = Decimal("0")


class MenuItemCreate(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, examples=["Pad Thai"])
    name_th: Optional[str] = None
    price: Decimal = Field(..., ge=0, examples=["80.00"])
    category: str = Field(..., min_length=1)
    station: Station = Station.KITCHEN
    available: bool = True
    description: Optional[str] = None
    modifiers: List[Modifier] = []


class MenuItemPatch(BaseModel):
    """Partial update; only the fields sent are changed."""

    name: Optional[str] = Field(None, min_length=1)
    name_th: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = None
    station: Optional[Station] = None
    available: Optional[bool] = None
    description: Optional[str] = None
    modifiers: Optional[List[Modifier]] = None


NULLABLE_FIELDS = {"name_th", "description"}


def _modifiers(mods: List[Modifier]) -> list[dict]:
    return [{"name": m.name, "price": str(m.price)} for m in mods]


@router.get("")
async def list_menu(
    category: Optional[str] = None,
    include_unavailable: bool = False,
    store: SqlStore = Depends(get_store),
) -> dict:
    """Return catalog items that can be sold, optionally by ``category``."""

    filters: dict = {"deleted_at__isnull": True}
    if category:
        filters["category"] = category
    if not include_unavailable:
        filters["available"] = True
    items = await store.query_all("menu_item", filters, order_by=["category", "name"])
    return ok([menu_item_to_dict(i) for i in items])


@router.post("")
async def create_menu_item(
    payload: MenuItemCreate,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_actor),
) -> dict:
    now = clock.now()
    item = MenuItem(
        id=payload.id or new_id(),
        name=payload.name,
        name_th=payload.name_th,
        price=payload.price,
        category=payload.category,
        station=payload.station.value,
        available=payload.available,
        description=payload.description,
        modifiers=_modifiers(payload.modifiers),
        created_at=now,
        updated_at=now,
        deleted_at=None,
    )
    await store.insert("menu_item", item)
    logger.info("menu item %s created", item.id, extra={"actor": actor.actor_id})
    return ok(menu_item_to_dict(item))


@router.patch("/{item_id}")
async def update_menu_item(
    item_id: str,
    payload: MenuItemPatch,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_actor),
) -> dict:
    """Edit a menu item or toggle its availability."""

    changes = {
        k: v
        for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_FIELDS
    }
    async with store.transaction():
        item = await store.require("menu_item", item_id)
        guard_not_deleted(item, "menu item is deleted")
        for field, value in changes.items():
            if field == "modifiers":
                value = _modifiers(payload.modifiers or [])
            elif field == "station" and value is not None:
                value = Station(value).value
            setattr(item, field, value)
        item.updated_at = clock.now()
    logger.info(
        "menu item %s updated fields=%s", item_id, sorted(changes), extra={"actor": actor.actor_id}
    )
    return ok(menu_item_to_dict(item))


@router.delete("/{item_id}")
async def delete_menu_item(
    item_id: str,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    actor: Actor = Depends(get_actor),
) -> dict:
    async with store.transaction():
        item = await store.require("menu_item", item_id)
        now = clock.now()
        soft_delete(item, now)
        item.updated_at = now
    logger.info("menu item %s deleted", item_id, extra={"actor": actor.actor_id})
    return ok({"deleted": True, "id": item_id})


@router.post("/{item_id}/restore")
async def restore_menu_item(
    item_id: str,
    store: SqlStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> dict:
    async with store.transaction():
        item = await store.require("menu_item", item_id)
        restore(item)
        item.updated_at = clock.now()
    return ok(menu_item_to_dict(item))
