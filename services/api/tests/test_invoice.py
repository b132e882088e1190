from __future__ import annotations

from datetime import datetime

from services.api.app.db.models import Order
from services.api.app.services.invoice import build_invoice_email, render_invoice_pdf


def _order(email: str | None) -> Order:
    return Order(
        id="abc123",
        session_id="s1",
        status="paid",
        basket_details={
            "items": [
                {"slug": "mixed-any", "title": "Mixed Energy", "quantity": 2, "total_price": 16000}
            ],
            "customer_details": {"full_name": "Søren Ærø", "email": email},
        },
        total_amount=25100,
        currency="DKK",
    )


def test_invoice_pdf_renders_danish_text() -> None:
    pdf = render_invoice_pdf(_order("soren@example.dk"), issued_at=datetime(2026, 3, 1))
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500


def test_invoice_email_needs_customer_email() -> None:
    assert build_invoice_email(_order(None), b"%PDF") is None

    message = build_invoice_email(_order("soren@example.dk"), b"%PDF")
    assert message is not None
    assert message.to == "soren@example.dk"
    assert "Total pris: 251.00 kr" in message.text
    assert message.attachments[0].filename == "faktura-abc123.pdf"
