from __future__ import annotations

import pytest
import resend
from services.api.app.services.email_base import EmailAttachment, EmailMessage, EmailSendError
from services.api.app.services.email_resend import ResendEmailSender

MESSAGE = EmailMessage(
    to="mette@example.dk",
    subject="Faktura fra Mixed Energy (abc)",
    text="Hej Mette",
    html="<p>Hej Mette</p>",
    attachments=(EmailAttachment(filename="faktura-abc.pdf", content=b"%PDF-1.4"),),
)


@pytest.fixture()
def resend_env(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    monkeypatch.setattr(resend, "api_key", None)
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    monkeypatch.setenv("SHOP_EMAIL_FROM", "Shop <shop@example.dk>")

    sent: list[dict] = []

    def _send(payload: dict) -> dict:
        sent.append({"payload": payload, "api_key": resend.api_key})
        return {"id": "re_msg_1"}

    monkeypatch.setattr(resend.Emails, "send", _send)
    return sent


def test_resend_key_is_set_once_when_built(resend_env: list[dict]) -> None:
    sender = ResendEmailSender.from_env()
    assert resend.api_key == "re_test"

    assert sender.send(MESSAGE) == "re_msg_1"
    assert sender.send(MESSAGE) == "re_msg_1"

    # The key is not swapped around each send.
    assert [s["api_key"] for s in resend_env] == ["re_test", "re_test"]
    assert resend.api_key == "re_test"

    payload = resend_env[0]["payload"]
    assert payload["from"] == "Shop <shop@example.dk>"
    assert payload["to"] == ["mette@example.dk"]
    assert payload["text"] == "Hej Mette"
    assert payload["attachments"] == [
        {
            "filename": "faktura-abc.pdf",
            "content": list(b"%PDF-1.4"),
            "content_type": "application/pdf",
        }
    ]


def test_resend_errors_become_email_send_errors(
    resend_env: list[dict], monkeypatch: pytest.MonkeyPatch
) -> None:
    sender = ResendEmailSender.from_env()

    def _reject(payload: dict) -> dict:
        raise RuntimeError("domain not verified")

    monkeypatch.setattr(resend.Emails, "send", _reject)
    with pytest.raises(EmailSendError, match="domain not verified"):
        sender.send(MESSAGE)

    monkeypatch.setattr(resend.Emails, "send", lambda payload: {})
    with pytest.raises(EmailSendError, match="Unexpected Resend response"):
        sender.send(MESSAGE)
