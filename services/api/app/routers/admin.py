from __future__ import annotations

import hmac
import os

from fastapi import APIRouter, Depends, Header, HTTPException
from packages.shared.schemas.events import EventV1
from services.api.app.db.deps import get_db
from services.api.app.models.order import CaptureResponse, InvoiceResponse, OrderDetail, OrderOut
from services.api.app.routers.order import (
    optional_email_sender,
    raise_order_http_error,
    resolve_payment_gateway,
)
from services.api.app.services import orders
from services.api.app.services.email_factory import get_email_sender
from services.api.app.services.events import events_for
from sqlalchemy.orm import Session

router = APIRouter(prefix="/v1/admin")


def require_admin_token(x_admin_token: str | None = Header(default=None)) -> None:
    expected = os.getenv("SHOP_ADMIN_TOKEN", "")
    if not expected or not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.get("/orders", response_model=list[OrderOut], dependencies=[Depends(require_admin_token)])
def list_orders(
    status: str | None = None, limit: int = 200, db: Session = Depends(get_db)
) -> list[OrderOut]:
    rows = orders.list_orders(db, status=status, limit=max(1, min(limit, 200)))
    return [orders.order_out(o) for o in rows]


@router.get(
    "/orders/{order_id}", response_model=OrderDetail, dependencies=[Depends(require_admin_token)]
)
def get_order_detail(order_id: str, db: Session = Depends(get_db)) -> OrderDetail:
    try:
        order = orders.get_order(db, order_id)
    except Exception as e:
        raise_order_http_error(e)

    events = [
        EventV1(
            id=ev.id,
            entity_type=ev.entity_type,
            entity_id=ev.entity_id,
            event_type=ev.event_type,
            payload=ev.event_payload_json or {},
            created_at=ev.created_at.isoformat(),
        )
        for ev in events_for(db, order.id)
    ]

    return OrderDetail(order=orders.order_out(order), events=events)


@router.post(
    "/orders/{order_id}/capture",
    response_model=CaptureResponse,
    dependencies=[Depends(require_admin_token)],
)
def capture_order(order_id: str, db: Session = Depends(get_db)) -> CaptureResponse:
    gateway = resolve_payment_gateway()
    try:
        order = orders.capture_payment(db, order_id, gateway=gateway)
    except Exception as e:
        raise_order_http_error(e)

    return CaptureResponse(order=orders.order_out(order))


@router.post(
    "/orders/{order_id}/refresh-payment",
    response_model=OrderOut,
    dependencies=[Depends(require_admin_token)],
)
def refresh_order_payment(order_id: str, db: Session = Depends(get_db)) -> OrderOut:
    gateway = resolve_payment_gateway()
    try:
        order = orders.refresh_payment(
            db, order_id, gateway=gateway, mailer=optional_email_sender()
        )
    except Exception as e:
        raise_order_http_error(e)

    return orders.order_out(order)


@router.post(
    "/orders/{order_id}/invoice",
    response_model=InvoiceResponse,
    dependencies=[Depends(require_admin_token)],
)
def send_order_invoice(order_id: str, db: Session = Depends(get_db)) -> InvoiceResponse:
    try:
        order, message_id = orders.send_invoice(db, order_id, mailer=get_email_sender())
    except Exception as e:
        raise_order_http_error(e)

    return InvoiceResponse(message_id=message_id, order=orders.order_out(order))
