"""Checkout: turn a session basket into an order, then follow the payment provider."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import uuid4

from packages.shared.schemas.basket_v1 import BasketV1
from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.api.app.db.models import Order
from services.api.app.logging import get_logger
from services.api.app.models.order import OrderOut
from services.api.app.services.email_base import EmailSender
from services.api.app.services.events import log_event
from services.api.app.services.invoice import build_invoice_email, render_invoice_pdf
from services.api.app.services.order_email import build_order_confirmation
from services.api.app.services.payment_base import PaymentGateway, PaymentLinkUrls
from services.api.app.services.sessions import get_basket
from sqlalchemy.orm import Session

logger = get_logger(__name__)

ORDER_ID_LENGTH = 20
DEFAULT_PUBLIC_BASE_URL = "http://localhost:3000"

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_FAILED = "failed"
STATUS_CAPTURED = "captured"
ACCEPTED_STATUSES = frozenset({STATUS_PAID, STATUS_CAPTURED})


class OrderError(Exception):
    """Base class for checkout errors."""


class OrderNotFoundError(OrderError, LookupError):
    def __init__(self, order_id: str) -> None:
        super().__init__("Order not found")
        self.order_id = order_id


class EmptyBasketError(OrderError, ValueError):
    def __init__(self) -> None:
        super().__init__("Basket is empty")


class InvalidCallbackError(OrderError, ValueError):
    """The callback body is not a payment document we can act on."""


class InvalidCallbackSignatureError(OrderError):
    def __init__(self) -> None:
        super().__init__("Invalid callback signature")


class OrderStateError(OrderError):
    """The order is not in a state that allows the requested transition."""


@dataclass(frozen=True, slots=True)
class CreatedOrder:
    order_id: str
    payment_link: str
    total_amount: int


def payment_urls(order_id: str) -> PaymentLinkUrls:
    base = os.getenv("SHOP_PUBLIC_BASE_URL", DEFAULT_PUBLIC_BASE_URL).rstrip("/")
    return PaymentLinkUrls(
        continue_url=f"{base}/order-confirmation?orderId={order_id}",
        cancel_url=f"{base}/basket",
        callback_url=f"{base}/v1/payments/quickpay/callback",
    )


def order_total(basket: BasketV1) -> int:
    return basket.grand_total()


def get_order(db: Session, order_id: str) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


def create_order(db: Session, session_id: str, *, gateway: PaymentGateway) -> CreatedOrder:
    """Snapshot the basket into a pending order and open a payment link for its total.

    Provider failures propagate; the pending order row stays behind so the attempt is
    visible in the admin listing.
    """

    basket = get_basket(db, session_id)
    if not basket.items:
        raise EmptyBasketError()

    total = order_total(basket)
    order = Order(
        id=uuid4().hex[:ORDER_ID_LENGTH],
        session_id=session_id,
        status=STATUS_PENDING,
        basket_details=basket.model_dump(mode="json"),
        total_amount=total,
        currency="DKK",
        payment_provider=gateway.vendor,
        payment_details={},
    )
    db.add(order)
    log_event(
        db,
        entity_type=EntityTypeV1.ORDER,
        entity_id=order.id,
        event_type=EventTypeV1.ORDER_CREATED,
        event_payload={"session_id": session_id, "total_amount": total},
    )
    db.commit()
    logger.info("Order %s created from session %s (total=%d)", order.id, session_id, total)

    payment = gateway.create_payment(order_id=order.id, currency=order.currency)
    link = gateway.create_payment_link(
        payment_id=payment.payment_id, amount=total, urls=payment_urls(order.id)
    )

    order.payment_id = payment.payment_id
    order.payment_link = link
    order.payment_details = dict(payment.details)
    order.updated_at = datetime.utcnow()
    log_event(
        db,
        entity_type=EntityTypeV1.PAYMENT,
        entity_id=order.id,
        event_type=EventTypeV1.PAYMENT_LINK_CREATED,
        event_payload={"payment_id": payment.payment_id, "vendor": gateway.vendor},
    )
    db.commit()

    return CreatedOrder(order_id=order.id, payment_link=link, total_amount=total)


def _operations(payment: dict[str, Any]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for op in payment.get("operations") or []:
        if not isinstance(op, dict):
            continue
        out.append(
            {
                "id": op.get("id"),
                "type": op.get("type"),
                "amount": op.get("amount"),
                "qp_status_code": op.get("qp_status_code"),
                "qp_status_msg": op.get("qp_status_msg"),
            }
        )
    return out


def _find_callback_order(db: Session, payment: dict[str, Any]) -> Order:
    order_id = payment.get("order_id")
    if order_id:
        return get_order(db, str(order_id))

    payment_id = payment.get("id")
    if payment_id is None:
        raise InvalidCallbackError("Callback carries neither order_id nor id")

    order = db.query(Order).filter(Order.payment_id == str(payment_id)).first()
    if order is None:
        raise OrderNotFoundError(str(payment_id))
    return order


def _send_confirmation(db: Session, order: Order, mailer: EmailSender) -> None:
    message = build_order_confirmation(order)
    if message is None:
        logger.warning("Order %s has no customer email; confirmation skipped", order.id)
        return

    try:
        message_id = mailer.send(message)
    except Exception as e:
        logger.error("Confirmation email for order %s failed: %s", order.id, e)
        log_event(
            db,
            entity_type=EntityTypeV1.ORDER,
            entity_id=order.id,
            event_type=EventTypeV1.CONFIRMATION_FAILED,
            event_payload={"error": str(e)},
        )
        return

    order.order_confirmation_sent = True
    order.order_confirmation_sent_at = datetime.utcnow()
    log_event(
        db,
        entity_type=EntityTypeV1.ORDER,
        entity_id=order.id,
        event_type=EventTypeV1.CONFIRMATION_SENT,
        event_payload={"message_id": message_id, "to": message.to},
    )
    logger.info("Confirmation email for order %s sent (%s)", order.id, message_id)


def _apply_payment(
    db: Session, order: Order, payment: dict[str, Any], mailer: EmailSender | None
) -> None:
    accepted = bool(payment.get("accepted"))

    # A rejection never downgrades a paid or captured order.
    if accepted:
        if order.status != STATUS_CAPTURED:
            order.status = STATUS_PAID
    elif order.status not in ACCEPTED_STATUSES:
        order.status = STATUS_FAILED

    details = dict(order.payment_details or {})
    details.update(
        {
            "id": payment.get("id", order.payment_id),
            "state": payment.get("state"),
            "accepted": accepted,
            "operations": _operations(payment),
        }
    )
    order.payment_details = details
    order.updated_at = datetime.utcnow()

    log_event(
        db,
        entity_type=EntityTypeV1.PAYMENT,
        entity_id=order.id,
        event_type=EventTypeV1.PAYMENT_ACCEPTED if accepted else EventTypeV1.PAYMENT_FAILED,
        event_payload={"payment_id": details["id"], "state": payment.get("state")},
    )
    logger.info("Order %s payment update: accepted=%s status=%s", order.id, accepted, order.status)

    if accepted and mailer is not None and not order.order_confirmation_sent:
        _send_confirmation(db, order, mailer)


def handle_payment_callback(
    db: Session,
    *,
    raw_body: bytes,
    checksum: str | None,
    gateway: PaymentGateway,
    mailer: EmailSender | None = None,
) -> Order:
    if not gateway.verify_callback(raw_body, checksum):
        logger.warning("Rejected payment callback with bad checksum")
        raise InvalidCallbackSignatureError()

    try:
        payment = json.loads(raw_body.decode("utf-8"))
    except ValueError as e:
        raise InvalidCallbackError("Callback body is not valid JSON") from e
    if not isinstance(payment, dict):
        raise InvalidCallbackError("Callback body must be a JSON object")

    order = _find_callback_order(db, payment)
    _apply_payment(db, order, payment, mailer)
    db.commit()
    return order


def refresh_payment(
    db: Session,
    order_id: str,
    *,
    gateway: PaymentGateway,
    mailer: EmailSender | None = None,
) -> Order:
    """Re-read the payment from the provider and apply it as if its callback had arrived.

    Covers callbacks that never reached us. The provider document is trusted as is.
    """

    order = get_order(db, order_id)
    if not order.payment_id:
        raise OrderStateError("Order has no payment to refresh")

    payment = gateway.get_payment(order.payment_id)
    _apply_payment(db, order, payment, mailer)
    db.commit()
    return order


def payment_status(db: Session, order_id: str) -> tuple[bool, Order]:
    order = get_order(db, order_id)
    return order.status in ACCEPTED_STATUSES, order


def capture_payment(db: Session, order_id: str, *, gateway: PaymentGateway) -> Order:
    order = get_order(db, order_id)
    if not order.payment_id:
        raise OrderStateError("Order has no payment to capture")
    if order.status == STATUS_CAPTURED:
        raise OrderStateError("Order is already captured")
    if order.status != STATUS_PAID:
        raise OrderStateError(f"Order status is {order.status!r}; only paid orders can be captured")

    result = gateway.capture(payment_id=order.payment_id, amount=order.total_amount)

    details = dict(order.payment_details or {})
    details["state"] = result.state
    details["operations"] = [*(details.get("operations") or []), result.operation]
    order.payment_details = details
    order.status = STATUS_CAPTURED
    order.updated_at = datetime.utcnow()

    log_event(
        db,
        entity_type=EntityTypeV1.PAYMENT,
        entity_id=order.id,
        event_type=EventTypeV1.PAYMENT_CAPTURED,
        event_payload={"payment_id": order.payment_id, "amount": order.total_amount},
    )
    db.commit()
    logger.info("Order %s captured (%d)", order.id, order.total_amount)
    return order


def send_invoice(db: Session, order_id: str, *, mailer: EmailSender) -> tuple[Order, str]:
    """Render the PDF invoice and mail it to the customer.

    Marks the order confirmation as sent. Mail errors propagate and leave the order untouched.
    """

    order = get_order(db, order_id)
    if order.status not in ACCEPTED_STATUSES:
        raise OrderStateError(f"Order status is {order.status!r}; only paid orders are invoiced")

    message = build_invoice_email(order, render_invoice_pdf(order))
    if message is None:
        raise OrderStateError("Order has no customer email")

    message_id = mailer.send(message)

    order.order_confirmation_sent = True
    order.order_confirmation_sent_at = datetime.utcnow()
    log_event(
        db,
        entity_type=EntityTypeV1.ORDER,
        entity_id=order.id,
        event_type=EventTypeV1.INVOICE_SENT,
        event_payload={"message_id": message_id, "to": message.to},
    )
    db.commit()
    logger.info("Invoice for order %s sent (%s)", order.id, message_id)
    return order, message_id


def list_orders(db: Session, *, status: str | None = None, limit: int = 200) -> list[Order]:
    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc()).limit(limit).all()


def order_out(order: Order) -> OrderOut:
    return OrderOut(
        id=order.id,
        session_id=order.session_id,
        status=order.status,
        basket_details=order.basket_details or {},
        total_amount=order.total_amount,
        currency=order.currency,
        payment_provider=order.payment_provider,
        payment_id=order.payment_id,
        payment_link=order.payment_link,
        payment_details=order.payment_details or {},
        order_confirmation_sent=order.order_confirmation_sent,
        created_at=order.created_at.isoformat(),
        updated_at=order.updated_at.isoformat() if order.updated_at else None,
    )
