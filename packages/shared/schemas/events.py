"""Shared event schema (v1).

The backend stores an append-only event log for sessions, orders and payments.
The admin views read it back to show what happened to an order.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EntityTypeV1(str, Enum):
    SESSION = "Session"
    ORDER = "Order"
    PAYMENT = "Payment"


class EventTypeV1(str, Enum):
    SESSION_CREATED = "SESSION_CREATED"
    SESSION_DELETED = "SESSION_DELETED"
    SESSIONS_PURGED = "SESSIONS_PURGED"
    COOKIES_ACCEPTED = "COOKIES_ACCEPTED"
    SELECTION_CREATED = "SELECTION_CREATED"
    BASKET_UPDATED = "BASKET_UPDATED"
    ORDER_CREATED = "ORDER_CREATED"
    PAYMENT_LINK_CREATED = "PAYMENT_LINK_CREATED"
    PAYMENT_ACCEPTED = "PAYMENT_ACCEPTED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_CAPTURED = "PAYMENT_CAPTURED"
    CONFIRMATION_SENT = "CONFIRMATION_SENT"
    CONFIRMATION_FAILED = "CONFIRMATION_FAILED"
    INVOICE_SENT = "INVOICE_SENT"


class EventV1(BaseModel):
    id: str

    entity_type: EntityTypeV1
    entity_id: str

    event_type: EventTypeV1
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: str
