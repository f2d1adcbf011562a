from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage as MimeMessage
from typing import List, Optional, Sequence

from storefront.core.settings import settings

"""
Core Mail.

Rôle (fonctionnel) :
- Point d’envoi unique des notifications (bienvenue, départ, retour en stock…).
- Les agents n’appellent jamais smtplib directement : ils passent par send_mail(),
  ce qui permet de changer de backend (ou de différer l’envoi) sans toucher au métier.

Backends (settings.MAIL_BACKEND) :
- console : log du message (dev).
- memory  : ajout dans `outbox` (tests).
- smtp    : envoi réel via smtplib (SSL / STARTTLS / clair), exécuté dans un thread.

Notes :
- Les erreurs d’envoi remontent à l’appelant : c’est l’agent (ou la tâche de fond)
  qui décide quoi en faire.
"""

logger = logging.getLogger("storefront.mail")

# Boîte d’envoi du backend "memory"
outbox: List["EmailMessage"] = []


@dataclass
class EmailMessage:
    """Message à envoyer (texte brut)."""
    subject: str
    body: str
    to: List[str] = field(default_factory=list)
    from_email: str = ""

    def as_mime(self) -> MimeMessage:
        msg = MimeMessage()
        msg["Subject"] = self.subject
        msg["From"] = self.from_email
        msg["To"] = ", ".join(self.to)
        msg.set_content(self.body)
        return msg


class ConsoleBackend:
    name = "console"

    async def send(self, message: EmailMessage) -> None:
        logger.info(
            "mail: %s",
            message.subject,
            extra={"event": "mail_sent", "recipients": message.to, "backend": self.name},
        )


class MemoryBackend:
    name = "memory"

    async def send(self, message: EmailMessage) -> None:
        outbox.append(message)


class SmtpBackend:
    """Envoi SMTP (settings.SMTP_*). Bloquant : exécuté via asyncio.to_thread."""

    name = "smtp"

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        security: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self.host = host or settings.SMTP_HOST
        self.port = int(port or settings.SMTP_PORT)
        self.username = username if username is not None else settings.SMTP_USERNAME
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.security = (security or settings.SMTP_SECURITY or "none").lower()
        self.timeout = int(timeout or settings.SMTP_TIMEOUT)

        if self.security not in ("starttls", "ssl", "none"):
            raise ValueError(f"SMTP_SECURITY invalide: {self.security}")

    def _connect(self) -> smtplib.SMTP:
        if self.security == "ssl":
            context = ssl.create_default_context()
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)

        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.security == "starttls":
            server.ehlo()
            server.starttls(context=ssl.create_default_context())
        return server

    def _send_sync(self, message: EmailMessage) -> None:
        server = self._connect()
        try:
            server.ehlo()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(message.as_mime())
        finally:
            try:
                server.quit()
            except smtplib.SMTPException:
                logger.warning("smtp quit failed", extra={"backend": self.name})

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._send_sync, message)
        logger.info(
            "mail: %s",
            message.subject,
            extra={"event": "mail_sent", "recipients": message.to, "backend": self.name},
        )


_BACKENDS = {
    "console": ConsoleBackend,
    "memory": MemoryBackend,
    "smtp": SmtpBackend,
}


def get_backend(name: str | None = None):
    """Instancie le backend demandé (ou celui de settings.MAIL_BACKEND)."""
    key = (name or settings.MAIL_BACKEND or "console").strip().lower()
    try:
        return _BACKENDS[key]()
    except KeyError:
        raise ValueError(f"MAIL_BACKEND inconnu: {key}") from None


async def send_mail(
    subject: str,
    body: str,
    to: Sequence[str],
    from_email: Optional[str] = None,
) -> int:
    """
    Envoie un message texte. Retourne le nombre de messages envoyés (0 ou 1).

    Une liste de destinataires vide n’envoie rien.
    """
    recipients = [addr for addr in to if addr]
    if not recipients:
        return 0

    message = EmailMessage(
        subject=subject,
        body=body,
        to=recipients,
        from_email=from_email or settings.MAIL_FROM,
    )
    await get_backend().send(message)
    return 1
