import logging

import pytest

from storefront.core import mail
from storefront.core.mail import ConsoleBackend, EmailMessage, MemoryBackend, SmtpBackend, get_backend, send_mail
from storefront.core.settings import settings


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def ehlo(self):
        self.calls.append("ehlo")

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username, password))

    def send_message(self, message):
        self.sent.append(message)

    def quit(self):
        self.calls.append("quit")


async def test_send_mail_uses_configured_backend(outbox):
    sent = await send_mail("Sujet", "Corps", ["a@example.com", ""])

    assert sent == 1
    assert len(outbox) == 1
    assert outbox[0].to == ["a@example.com"]
    assert outbox[0].from_email == settings.MAIL_FROM


async def test_send_mail_without_recipients_sends_nothing(outbox):
    assert await send_mail("Sujet", "Corps", []) == 0
    assert outbox == []


def test_get_backend():
    assert isinstance(get_backend("memory"), MemoryBackend)
    assert isinstance(get_backend(" Console "), ConsoleBackend)
    with pytest.raises(ValueError):
        get_backend("pigeon")


def test_as_mime():
    mime = EmailMessage(subject="Hello", body="Corps", to=["a@x.io", "b@x.io"], from_email="shop@x.io").as_mime()
    assert mime["To"] == "a@x.io, b@x.io"
    assert mime["From"] == "shop@x.io"
    assert mime.get_content().strip() == "Corps"


async def test_console_backend_logs(caplog):
    caplog.set_level(logging.INFO, logger="storefront.mail")
    await ConsoleBackend().send(EmailMessage(subject="Bienvenue", body="...", to=["a@x.io"]))

    record = next(r for r in caplog.records if r.name == "storefront.mail")
    assert record.event == "mail_sent"
    assert record.recipients == ["a@x.io"]


def test_smtp_backend_rejects_unknown_security():
    with pytest.raises(ValueError):
        SmtpBackend(security="tls13")


async def test_smtp_backend_starttls_and_login(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(mail.smtplib, "SMTP", FakeSMTP)

    backend = SmtpBackend(host="smtp.test", port=2525, username="user", password="pw", security="starttls")
    await backend.send(EmailMessage(subject="S", body="B", to=["a@x.io"], from_email="shop@x.io"))

    server = FakeSMTP.instances[-1]
    assert (server.host, server.port) == ("smtp.test", 2525)
    assert server.calls == ["ehlo", "starttls", "ehlo", ("login", "user", "pw"), "quit"]
    assert server.sent[0]["Subject"] == "S"


async def test_smtp_backend_plain_without_credentials(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(mail.smtplib, "SMTP", FakeSMTP)

    await SmtpBackend(host="smtp.test", username="", password="", security="none").send(
        EmailMessage(subject="S", body="B", to=["a@x.io"])
    )

    assert FakeSMTP.instances[-1].calls == ["ehlo", "quit"]
