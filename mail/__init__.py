"""Outbound email transports."""

from .abstract_transport import AbstractTransport
from .dispatcher import DispatchResult, Mailer, build_transport
from .transports import ConsoleTransport, MemoryTransport, SmtpTransport

__all__ = [
    "AbstractTransport",
    "ConsoleTransport",
    "DispatchResult",
    "Mailer",
    "MemoryTransport",
    "SmtpTransport",
    "build_transport",
]
