from __future__ import annotations

from uuid import uuid4

from services.api.app.services.email_base import EmailMessage

_OUTBOX: list[EmailMessage] = []


class MockEmailSender:
    vendor = "EMAIL_MOCK"

    def send(self, message: EmailMessage) -> str:
        _OUTBOX.append(message)
        return f"mock_{uuid4().hex[:10]}"


def outbox() -> list[EmailMessage]:
    return _OUTBOX
