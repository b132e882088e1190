from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class EmailSendError(Exception):
    """Raised when an email provider rejects or fails to send a message."""


class EmailNotConfiguredError(EmailSendError):
    def __init__(self, setting: str) -> None:
        super().__init__(f"Email sending is not configured. Set {setting}.")
        self.setting = setting


@dataclass(frozen=True, slots=True)
class EmailAttachment:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass(frozen=True, slots=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    html: str
    attachments: tuple[EmailAttachment, ...] = ()


class EmailSender(Protocol):
    vendor: str

    def send(self, message: EmailMessage) -> str:
        """Send the message and return the provider's message id."""
        ...
