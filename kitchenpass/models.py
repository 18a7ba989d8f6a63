"""Database models for the restaurant store.

Order items are embedded JSON snapshots on ``orders``; tickets carry their
own copy of the items routed to them. Timestamps are written from the
injected clock so tests stay deterministic.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_id() -> str:
    return uuid.uuid4().hex


class MenuItem(Base):
    """Sellable catalog entry."""

    __tablename__ = "menu_items"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    name_th = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String, nullable=False)
    station = Column(String, nullable=False, default="kitchen")
    available = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)
    modifiers = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class Order(Base):
    """One customer transaction."""

    __tablename__ = "orders"

    id = Column(String(64), primary_key=True, default=new_id)
    queue_number = Column(String, nullable=False, index=True)
    order_type = Column(String, nullable=False)
    table_number = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)
    contact_info = Column(String, nullable=True)
    platform = Column(String, nullable=True)
    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(10, 2), nullable=False)
    bill_status = Column(String, nullable=False, default="UNPAID")
    status = Column(String, nullable=False, default="PENDING")
    notes = Column(Text, nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class Ticket(Base):
    """Per-station work slip derived from one order.

    ``version`` guards concurrent transitions: a write based on a stale read
    fails instead of overwriting the other station's change.
    """

    __tablename__ = "tickets"
    __table_args__ = (Index("ix_tickets_station_status", "station", "status"),)

    id = Column(String(64), primary_key=True, default=new_id)
    order_id = Column(String(64), ForeignKey("orders.id"), nullable=False, index=True)
    queue_number = Column(String, nullable=False)
    station = Column(String, nullable=False)
    items = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default="PENDING")
    priority = Column(String, nullable=False, default="NORMAL")
    sla_minutes = Column(Integer, nullable=False)
    order_type = Column(String, nullable=False)
    table_number = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    voided_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Payment(Base):
    """Immutable payment record against an order."""

    __tablename__ = "payments"

    id = Column(String(64), primary_key=True, default=new_id)
    order_id = Column(String(64), ForeignKey("orders.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    change = Column("change_amount", Numeric(10, 2), nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class AuditLog(Base):
    """Append-only audit trail of submissions, payments and voids."""

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor = Column(String, nullable=False)
    action = Column(String, nullable=False)
    meta = Column(JSON, nullable=False, default=dict)
    at = Column(DateTime(timezone=True), nullable=False)
