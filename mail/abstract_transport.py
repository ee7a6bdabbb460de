"""Email transport abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod

from services.verification import OutboundEmail


class AbstractTransport(ABC):
    """Interface for email delivery backends."""

    @abstractmethod
    def send(self, message: OutboundEmail) -> None:
        """Deliver a message or raise on failure."""
