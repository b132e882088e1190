from __future__ import annotations

import os
from typing import Any

import resend

from services.api.app.services.email_base import (
    EmailMessage,
    EmailNotConfiguredError,
    EmailSendError,
)


class ResendEmailSender:
    """Transactional email through Resend.

    The SDK keeps its key at module level, so it is set once when the sender is built.

    Env vars:
    - SHOP_EMAIL_ADAPTER=resend
    - RESEND_API_KEY (required)
    - SHOP_EMAIL_FROM (default: Mixed Energy <info@mixedenergy.dk>)
    """

    vendor = "RESEND"

    def __init__(self, *, sender: str) -> None:
        self._sender = sender

    @classmethod
    def from_env(cls) -> "ResendEmailSender":
        api_key = os.getenv("RESEND_API_KEY", "").strip()
        if not api_key:
            raise EmailNotConfiguredError("RESEND_API_KEY")

        resend.api_key = api_key
        return cls(sender=os.getenv("SHOP_EMAIL_FROM", "Mixed Energy <info@mixedenergy.dk>"))

    def send(self, message: EmailMessage) -> str:
        payload: dict[str, Any] = {
            "from": self._sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        if message.attachments:
            payload["attachments"] = [
                {
                    "filename": a.filename,
                    "content": list(a.content),
                    "content_type": a.content_type,
                }
                for a in message.attachments
            ]

        try:
            response = resend.Emails.send(payload)
        except Exception as e:
            raise EmailSendError(f"Resend rejected the message: {e}") from e

        message_id = response.get("id") if isinstance(response, dict) else None
        if not message_id:
            raise EmailSendError(f"Unexpected Resend response: {response!r}")
        return str(message_id)
