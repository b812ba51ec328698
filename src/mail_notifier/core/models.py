"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNKNOWN_SENDER = "Unknown Sender"
UNKNOWN_NAME = "Unknown"
NO_SUBJECT = "No Subject"
UNKNOWN_DATE = "Unknown Date"


class SearchCriteria(str, Enum):
    """IMAP search keys understood by the session client."""

    ALL = "ALL"
    UNSEEN = "UNSEEN"


class ErrorKind(str, Enum):
    """Structured classification of mailbox failures."""

    CONNECTION = "connection"
    PROTOCOL = "protocol"
    OTHER = "other"


class LoopState(str, Enum):
    """States of the poll loop controller."""

    BOOTSTRAPPING = "bootstrapping"
    POLLING = "polling"
    RECOVERING = "recovering"
    TERMINATED = "terminated"


@dataclass(frozen=True, slots=True)
class EmailMetadata:
    """Envelope fields of a single message.

    ``sender_name`` and ``sender_address`` are ``None`` when the header is
    missing or could not be decoded; ``subject`` and ``date`` already hold
    their placeholder text in that case.
    """

    uid: int
    sender_name: str | None
    sender_address: str | None
    subject: str = NO_SUBJECT
    date: str = UNKNOWN_DATE

    @property
    def sender(self) -> str:
        """Return the sender as ``Name <address>`` or a placeholder."""
        if not self.sender_address:
            return UNKNOWN_SENDER
        return f"{self.sender_name or UNKNOWN_NAME} <{self.sender_address}>"


@dataclass(slots=True)
class CycleReport:
    """Outcome summary for one poll cycle."""

    listed: int = 0
    new: int = 0
    notified: int = 0
    failed: int = 0


__all__ = [
    "CycleReport",
    "EmailMetadata",
    "ErrorKind",
    "LoopState",
    "NO_SUBJECT",
    "SearchCriteria",
    "UNKNOWN_DATE",
    "UNKNOWN_NAME",
    "UNKNOWN_SENDER",
]
