from __future__ import annotations

from fastapi import APIRouter, Cookie, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from services.api.app.db.deps import get_db
from services.api.app.logging import get_logger
from services.api.app.models.order import (
    OrderCreateRequest,
    OrderCreateResponse,
    OrderOut,
    PaymentCallbackResponse,
    PaymentStatusResponse,
)
from services.api.app.services import orders
from services.api.app.services.email_base import (
    EmailNotConfiguredError,
    EmailSendError,
    EmailSender,
)
from services.api.app.services.email_factory import get_email_sender
from services.api.app.services.payment_base import (
    PaymentAdapterError,
    PaymentCapturePendingError,
    PaymentGateway,
    PaymentNotConfiguredError,
)
from services.api.app.services.payment_factory import get_payment_gateway
from services.api.app.services.sessions import SessionNotFoundError
from sqlalchemy.orm import Session

logger = get_logger(__name__)

router = APIRouter()


def raise_order_http_error(e: Exception) -> None:
    if isinstance(e, (orders.OrderNotFoundError, SessionNotFoundError)):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, (orders.EmptyBasketError, orders.InvalidCallbackError)):
        raise HTTPException(status_code=400, detail=str(e)) from e

    if isinstance(e, orders.InvalidCallbackSignatureError):
        raise HTTPException(status_code=401, detail=str(e)) from e

    if isinstance(e, orders.OrderStateError):
        raise HTTPException(status_code=409, detail=str(e)) from e

    if isinstance(e, PaymentNotConfiguredError):
        raise HTTPException(status_code=503, detail=str(e)) from e

    if isinstance(e, PaymentCapturePendingError):
        raise HTTPException(status_code=202, detail=str(e)) from e

    if isinstance(e, EmailNotConfiguredError):
        raise HTTPException(status_code=503, detail=str(e)) from e

    if isinstance(e, PaymentAdapterError):
        raise HTTPException(status_code=502, detail=str(e)) from e

    if isinstance(e, EmailSendError):
        raise HTTPException(status_code=502, detail=str(e)) from e

    raise HTTPException(status_code=500, detail="Internal Server Error") from e


def resolve_payment_gateway() -> PaymentGateway:
    try:
        return get_payment_gateway()
    except PaymentAdapterError as e:
        raise_order_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


def optional_email_sender() -> EmailSender | None:
    # Email problems never fail the callback.
    try:
        return get_email_sender()
    except (EmailSendError, ValueError) as e:
        logger.error("Email sender unavailable: %s", e)
        return None


@router.post("/v1/orders", response_model=OrderCreateResponse)
def create_order(
    payload: OrderCreateRequest,
    session_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> OrderCreateResponse:
    sid = (payload.session_id or session_id or "").strip()
    if not sid:
        raise HTTPException(status_code=400, detail="Missing session_id")

    gateway = resolve_payment_gateway()
    try:
        created = orders.create_order(db, sid, gateway=gateway)
    except Exception as e:
        raise_order_http_error(e)

    return OrderCreateResponse(
        order_id=created.order_id,
        payment_link=created.payment_link,
        total_amount=created.total_amount,
    )


@router.get("/v1/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: str, db: Session = Depends(get_db)) -> OrderOut:
    try:
        order = orders.get_order(db, order_id)
    except Exception as e:
        raise_order_http_error(e)

    return orders.order_out(order)


@router.get("/v1/payments/status", response_model=PaymentStatusResponse)
def get_payment_status(order_id: str, db: Session = Depends(get_db)) -> PaymentStatusResponse:
    try:
        accepted, order = orders.payment_status(db, order_id)
    except Exception as e:
        raise_order_http_error(e)

    return PaymentStatusResponse(accepted=accepted, order=orders.order_out(order))


@router.post("/v1/payments/quickpay/callback", response_model=PaymentCallbackResponse)
async def quickpay_callback(
    request: Request,
    quickpay_checksum_sha256: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> PaymentCallbackResponse:
    raw_body = await request.body()
    gateway = resolve_payment_gateway()

    # Blocking database and email work runs in the threadpool.
    try:
        order = await run_in_threadpool(
            orders.handle_payment_callback,
            db,
            raw_body=raw_body,
            checksum=quickpay_checksum_sha256,
            gateway=gateway,
            mailer=optional_email_sender(),
        )
    except Exception as e:
        raise_order_http_error(e)

    return PaymentCallbackResponse(
        message="Order updated successfully",
        order_id=order.id,
        status=order.status,
    )
