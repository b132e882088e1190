from __future__ import annotations

import os

from services.api.app.services.email_base import EmailSender
from services.api.app.services.email_mock import MockEmailSender


def get_email_sender() -> EmailSender:
    mode = os.getenv("SHOP_EMAIL_ADAPTER", "mock").strip().lower()

    if mode == "mock":
        return MockEmailSender()

    if mode == "resend":
        from services.api.app.services.email_resend import ResendEmailSender

        return ResendEmailSender.from_env()

    raise ValueError(f"Unknown SHOP_EMAIL_ADAPTER={mode!r}. Expected mock or resend.")
