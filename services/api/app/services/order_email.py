from __future__ import annotations

import html

from packages.shared.schemas.basket_v1 import BasketV1
from services.api.app.db.models import Order
from services.api.app.services.email_base import EmailMessage

SHOP_NAME = "Mixed Energy"


def format_kr(amount_ore: int) -> str:
    return f"{amount_ore / 100:.2f} kr"


def _lines(basket: BasketV1) -> list[str]:
    return [
        f"{item.title or item.slug} - Antal: {item.quantity} - Pris: {format_kr(item.total_price)}"
        for item in basket.items
    ]


def build_order_confirmation(order: Order) -> EmailMessage | None:
    """Danish order confirmation for a paid order; None when the order has no email."""

    basket = BasketV1.model_validate(order.basket_details or {})
    email = basket.customer_details.email
    if not email:
        return None

    name = basket.customer_details.full_name or "kunde"
    lines = _lines(basket)
    recycling = basket.recycling_total()
    delivery = basket.delivery_fee()

    text = "\n".join(
        [
            f"Hej {name},",
            "",
            f"Tak for din ordre hos {SHOP_NAME}!",
            "",
            f"Ordre ID: {order.id}",
            "",
            "Dine bestilte varer:",
            *lines,
            "",
            f"Pant: {format_kr(recycling)}",
            f"Fragt: {format_kr(delivery)}",
            f"Total pris: {format_kr(order.total_amount)}",
            "",
            "Vi giver besked, når din ordre er på vej.",
            "",
            "Med venlig hilsen,",
            SHOP_NAME,
        ]
    )

    items_html = "".join(f"<li>{html.escape(line)}</li>" for line in lines)
    body_html = (
        f"<p>Hej {html.escape(name)},</p>"
        f"<p>Tak for din ordre hos {SHOP_NAME}!</p>"
        f"<p><strong>Ordre ID:</strong> {html.escape(order.id)}</p>"
        "<p><strong>Dine bestilte varer:</strong></p>"
        f"<ul>{items_html}</ul>"
        f"<p>Pant: {format_kr(recycling)}<br/>Fragt: {format_kr(delivery)}</p>"
        f"<p><strong>Total pris:</strong> {format_kr(order.total_amount)}</p>"
        "<p>Vi giver besked, når din ordre er på vej.</p>"
        f"<p>Med venlig hilsen,<br/>{SHOP_NAME}</p>"
    )

    return EmailMessage(
        to=email,
        subject=f"Ordrebekræftelse fra {SHOP_NAME} ({order.id})",
        text=text,
        html=body_html,
    )
