from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from packages.shared.schemas.events import EventV1


class OrderCreateRequest(BaseModel):
    session_id: str | None = None


class OrderCreateResponse(BaseModel):
    order_id: str
    payment_link: str
    total_amount: int


class OrderOut(BaseModel):
    id: str
    session_id: str
    status: str
    basket_details: dict[str, Any]
    total_amount: int
    currency: str
    payment_provider: str | None = None
    payment_id: str | None = None
    payment_link: str | None = None
    payment_details: dict[str, Any] = Field(default_factory=dict)
    order_confirmation_sent: bool
    created_at: str
    updated_at: str | None = None


class PaymentStatusResponse(BaseModel):
    accepted: bool
    order: OrderOut


class PaymentCallbackResponse(BaseModel):
    message: str
    order_id: str
    status: str


class CaptureResponse(BaseModel):
    order: OrderOut


class OrderDetail(BaseModel):
    order: OrderOut
    events: list[EventV1]


class InvoiceResponse(BaseModel):
    message_id: str
    order: OrderOut
