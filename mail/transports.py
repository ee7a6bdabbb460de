"""Concrete email transports."""

from __future__ import annotations

import logging
import smtplib
import threading
from email.message import EmailMessage

from services.verification import OutboundEmail

from .abstract_transport import AbstractTransport

logger = logging.getLogger(__name__)


class SmtpTransport(AbstractTransport):
    """Deliver mail through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 5.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build(self, message: OutboundEmail) -> EmailMessage:
        email = EmailMessage()
        email["From"] = self.sender
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.body)
        return email

    def send(self, message: OutboundEmail) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(self._build(message))


class ConsoleTransport(AbstractTransport):
    """Write messages to the log instead of sending them. Development only."""

    def send(self, message: OutboundEmail) -> None:
        logger.info(
            "Email to %s | %s\n%s", message.to, message.subject, message.body
        )


class MemoryTransport(AbstractTransport):
    """Keep sent messages in an in-process outbox."""

    def __init__(self):
        self.outbox: list[OutboundEmail] = []
        self._lock = threading.Lock()

    def send(self, message: OutboundEmail) -> None:
        with self._lock:
            self.outbox.append(message)

    def last_to(self, address: str) -> OutboundEmail | None:
        with self._lock:
            for message in reversed(self.outbox):
                if message.to == address:
                    return message
        return None
