"""PDF invoice for an order, rendered from the basket snapshot taken at checkout."""

from __future__ import annotations

import html
from datetime import datetime

from fpdf import FPDF
from fpdf.enums import XPos, YPos
from packages.shared.schemas.basket_v1 import BasketV1
from services.api.app.db.models import Order
from services.api.app.services.email_base import EmailAttachment, EmailMessage
from services.api.app.services.order_email import SHOP_NAME, format_kr

INVOICE_CONTENT_TYPE = "application/pdf"


def invoice_filename(order: Order) -> str:
    return f"faktura-{order.id}.pdf"


def _latin1(text: str) -> str:
    # The core Helvetica font only covers latin-1.
    return text.encode("latin-1", "replace").decode("latin-1")


def render_invoice_pdf(order: Order, *, issued_at: datetime | None = None) -> bytes:
    basket = BasketV1.model_validate(order.basket_details or {})
    customer = basket.customer_details
    issued = (issued_at or datetime.utcnow()).strftime("%d-%m-%Y")

    pdf = FPDF()
    pdf.set_title(_latin1(f"Faktura {order.id}"))
    pdf.set_author(SHOP_NAME)
    pdf.add_page()

    def line(text: str, *, align: str = "L") -> None:
        pdf.cell(0, 7, _latin1(text), align=align, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 12, "Faktura", align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    pdf.set_font("Helvetica", size=12)
    line(f"Ordre ID: {order.id}")
    line(f"Dato: {issued}")
    line(f"Kunde: {customer.full_name or ''}")
    line(f"Email: {customer.email or ''}")
    address = " ".join(p for p in (customer.address, customer.street_number) if p)
    city = " ".join(p for p in (customer.postal_code, customer.city) if p)
    if address or city:
        line(f"Adresse: {', '.join(p for p in (address, city) if p)}")
    pdf.ln(4)

    pdf.set_font("Helvetica", "U", 12)
    line("Varer:")
    pdf.set_font("Helvetica", size=12)
    for item in basket.items:
        title = item.title or item.slug
        line(f"{title} - Antal: {item.quantity} - Pris: {format_kr(item.total_price)}")
    pdf.ln(4)

    line(f"Pant: {format_kr(basket.recycling_total())}", align="R")
    line(f"Fragt: {format_kr(basket.delivery_fee())}", align="R")
    pdf.set_font("Helvetica", "B", 12)
    line(f"Total pris: {format_kr(order.total_amount)}", align="R")

    return bytes(pdf.output())


def build_invoice_email(order: Order, pdf: bytes) -> EmailMessage | None:
    """Invoice mail with the PDF attached; None when the order has no email."""

    basket = BasketV1.model_validate(order.basket_details or {})
    email = basket.customer_details.email
    if not email:
        return None

    name = basket.customer_details.full_name or "kunde"
    text = "\n".join(
        [
            f"Hej {name},",
            "",
            f"Hermed din faktura for ordre {order.id}.",
            f"Total pris: {format_kr(order.total_amount)}",
            "",
            "Med venlig hilsen,",
            SHOP_NAME,
        ]
    )
    body_html = (
        f"<p>Hej {html.escape(name)},</p>"
        f"<p>Hermed din faktura for ordre {html.escape(order.id)}.</p>"
        f"<p><strong>Total pris:</strong> {format_kr(order.total_amount)}</p>"
        f"<p>Med venlig hilsen,<br/>{SHOP_NAME}</p>"
    )

    return EmailMessage(
        to=email,
        subject=f"Faktura fra {SHOP_NAME} ({order.id})",
        text=text,
        html=body_html,
        attachments=(
            EmailAttachment(
                filename=invoice_filename(order),
                content=pdf,
                content_type=INVOICE_CONTENT_TYPE,
            ),
        ),
    )
