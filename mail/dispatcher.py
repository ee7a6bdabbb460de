"""Best-effort email dispatch with a bounded wait."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Mapping

from services.verification import OutboundEmail

from .abstract_transport import AbstractTransport
from .transports import ConsoleTransport, MemoryTransport, SmtpTransport

logger = logging.getLogger(__name__)

MAIL_TRANSPORTS = ("smtp", "console", "memory")


@dataclass(frozen=True)
class DispatchResult:
    ok: bool
    error: str | None = None


class Mailer:
    """Send messages on a small worker pool and wait at most ``timeout`` seconds.

    Failures and timeouts are logged and reported in the result; ``dispatch``
    never raises, so callers on the request path are not failed by delivery.
    """

    def __init__(self, transport: AbstractTransport, timeout: float = 5.0, max_workers: int = 2):
        self.transport = transport
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="mailer"
        )

    def dispatch(self, message: OutboundEmail) -> DispatchResult:
        future = self._executor.submit(self.transport.send, message)
        try:
            future.result(timeout=self.timeout)
        except FutureTimeout:
            logger.warning(
                "Email to %s did not complete within %.1fs", message.to, self.timeout
            )
            return DispatchResult(ok=False, error="timeout")
        except Exception as exc:
            logger.warning("Email to %s failed: %s", message.to, exc)
            return DispatchResult(ok=False, error=str(exc))

        logger.info("Email '%s' sent to %s", message.subject, message.to)
        return DispatchResult(ok=True)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)


def build_transport(config: Mapping) -> AbstractTransport:
    """Create the transport named by ``MAIL_TRANSPORT``."""

    kind = (config.get("MAIL_TRANSPORT") or "console").strip().lower()
    if kind not in MAIL_TRANSPORTS:
        raise ValueError(
            "MAIL_TRANSPORT must be one of: {}.".format(", ".join(MAIL_TRANSPORTS))
        )
    if kind == "memory":
        return MemoryTransport()
    if kind == "console":
        return ConsoleTransport()
    return SmtpTransport(
        config.get("MAIL_SERVER", "localhost"),
        int(config.get("MAIL_PORT", 587)),
        sender=config.get("MAIL_SENDER"),
        username=config.get("MAIL_USERNAME"),
        password=config.get("MAIL_PASSWORD"),
        use_tls=bool(config.get("MAIL_USE_TLS", True)),
        timeout=float(config.get("MAIL_TIMEOUT", 5)),
    )
