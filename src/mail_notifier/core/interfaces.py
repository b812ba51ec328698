"""Protocol interfaces for decoupling components."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .models import EmailMetadata, ErrorKind, SearchCriteria


class MailboxError(RuntimeError):
    """Raised by session clients; ``kind`` tells the caller how to recover."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.OTHER) -> None:
        super().__init__(message)
        self.kind = kind


class DeliveryError(RuntimeError):
    """Raised when a notification could not be delivered."""


class SessionClient(Protocol):
    """Abstraction over one authenticated mailbox session."""

    def connect(self) -> None:
        """Open, authenticate and select the mailbox."""
        raise NotImplementedError

    def list_matching(self, criteria: SearchCriteria) -> Sequence[int]:
        """Return identifiers of messages matching ``criteria``."""
        raise NotImplementedError

    def fetch_metadata(self, uid: int) -> EmailMetadata | None:
        """Return envelope fields for ``uid`` or ``None`` if it vanished."""
        raise NotImplementedError

    def keepalive(self) -> None:
        """Round trip to the server to detect a dead session early."""
        raise NotImplementedError

    def reconnect(self) -> None:
        """Discard the current session and establish a fresh one."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any network resources."""
        raise NotImplementedError


class Notifier(Protocol):
    """Abstraction over the outbound messaging endpoint."""

    def send_direct_message(self, recipient_id: int, text: str) -> None:
        """Deliver ``text`` to ``recipient_id`` or raise :class:`DeliveryError`."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any network resources."""
        raise NotImplementedError


__all__ = ["DeliveryError", "MailboxError", "Notifier", "SessionClient"]
