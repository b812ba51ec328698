"""IMAP transport adapter providing mailbox access."""

from __future__ import annotations

import imaplib
import logging
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses
from types import TracebackType

from ..core.config import GMAIL_IMAP_HOST, GMAIL_IMAP_PORT, ImapSettings
from ..core.interfaces import MailboxError
from ..core.models import (
    NO_SUBJECT,
    UNKNOWN_DATE,
    EmailMetadata,
    ErrorKind,
    SearchCriteria,
)

LOGGER = logging.getLogger(__name__)

# PEEK leaves the \Seen flag untouched so the user still sees the mail as new.
HEADER_FETCH = "(BODY.PEEK[HEADER.FIELDS (FROM SUBJECT DATE)])"


class ImapError(MailboxError):
    """Wrap low level IMAP errors with additional context."""


class ImapClient:
    """Thin wrapper around ``imaplib`` owning a single mailbox session."""

    def __init__(
        self,
        settings: ImapSettings,
        *,
        host: str = GMAIL_IMAP_HOST,
        port: int = GMAIL_IMAP_PORT,
    ) -> None:
        """Initialise the client; no network traffic happens until ``connect``."""
        self._settings = settings
        self._host = host
        self._port = port
        self._connection: imaplib.IMAP4_SSL | None = None
        self._parser = BytesParser(policy=policy.default)

    @property
    def mailbox(self) -> str:
        """Name of the selected mailbox."""
        return self._settings.mailbox

    @property
    def connected(self) -> bool:
        """Whether a session handle is currently held."""
        return self._connection is not None

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> ImapClient:
        """Connect on entering a context manager scope."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure resources are released on context exit."""
        self.close()

    # Public API ---------------------------------------------------------------
    def connect(self) -> None:
        """Establish the TLS session, authenticate and select the mailbox.

        Raises:
            ImapError: with ``ErrorKind.CONNECTION`` on any network, TLS,
                authentication or mailbox selection failure. No partially
                initialised session is kept.
        """
        if self._connection is not None:
            return

        username = self._settings.username
        password = self._settings.app_password
        if not username or not password:
            raise ImapError("IMAP credentials are not configured", ErrorKind.CONNECTION)

        connection: imaplib.IMAP4_SSL | None = None
        try:
            LOGGER.debug(
                "Connecting to IMAP host %s:%s via SSL", self._host, self._port
            )
            connection = imaplib.IMAP4_SSL(
                self._host, self._port, timeout=self._settings.timeout_seconds
            )
            LOGGER.debug("Authenticating as %s", username)
            connection.login(username, password)
            status, _ = connection.select(self.mailbox)
        except (imaplib.IMAP4.error, OSError) as exc:
            _logout_quietly(connection)
            raise ImapError(
                f"Failed to connect to IMAP server {self._host}:{self._port}: {exc}",
                ErrorKind.CONNECTION,
            ) from exc

        if status != "OK":
            _logout_quietly(connection)
            raise ImapError(
                f"Unable to select mailbox '{self.mailbox}'", ErrorKind.CONNECTION
            )
        self._connection = connection
        LOGGER.info(
            "Connected to %s as %s, mailbox %s", self._host, username, self.mailbox
        )

    def list_matching(self, criteria: SearchCriteria) -> list[int]:
        """Return the UIDs of messages matching ``criteria``."""
        connection = self._require_connection()
        LOGGER.debug("Searching for %s messages", criteria.value)
        try:
            status, data = connection.uid("SEARCH", None, criteria.value)  # type: ignore[arg-type]
        except (imaplib.IMAP4.error, OSError) as exc:
            raise _wrap_error(exc, f"UID SEARCH {criteria.value}") from exc
        if status != "OK":
            raise ImapError(
                f"UID SEARCH {criteria.value} returned {status}", ErrorKind.PROTOCOL
            )

        raw_ids = data[0].split() if data and data[0] else []
        return [int(raw) for raw in raw_ids]

    def fetch_metadata(self, uid: int) -> EmailMetadata | None:
        """Fetch the From/Subject/Date headers of ``uid``.

        Returns ``None`` when the server has no such message any more.
        """
        connection = self._require_connection()
        uid_str = str(uid)
        LOGGER.debug("Fetching headers for UID %s", uid_str)
        try:
            status, fetch_data = connection.uid("FETCH", uid_str, HEADER_FETCH)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise _wrap_error(exc, f"UID FETCH {uid_str}") from exc
        if status != "OK":
            raise ImapError(f"Failed to fetch message UID {uid_str}", ErrorKind.PROTOCOL)

        payload = _extract_payload(fetch_data)
        if payload is None:
            LOGGER.warning("No header payload returned for UID %s", uid_str)
            return None
        message = self._parser.parsebytes(payload, headersonly=True)
        return parse_metadata(uid, message)

    def keepalive(self) -> None:
        """Issue ``NOOP`` so a dead session surfaces before the real query."""
        connection = self._require_connection()
        try:
            status, _ = connection.noop()
        except (imaplib.IMAP4.error, OSError) as exc:
            raise _wrap_error(exc, "NOOP") from exc
        if status != "OK":
            raise ImapError(f"NOOP returned {status}", ErrorKind.PROTOCOL)

    def reconnect(self) -> None:
        """Drop the current session and run the full connect sequence again."""
        LOGGER.info("Reconnecting to IMAP server %s:%s", self._host, self._port)
        connection, self._connection = self._connection, None
        _logout_quietly(connection)
        self.connect()
        LOGGER.info("Successfully reconnected to IMAP server")

    def close(self) -> None:
        """Terminate the IMAP session cleanly."""
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        try:
            LOGGER.debug("Closing IMAP connection")
            connection.close()
        except (imaplib.IMAP4.error, OSError):  # pragma: no cover - depends on server state
            LOGGER.debug("IMAP close raised; continuing with logout")
        finally:
            _logout_quietly(connection)

    # Internal helpers ---------------------------------------------------------
    def _require_connection(self) -> imaplib.IMAP4_SSL:
        if self._connection is None:
            raise ImapError(
                "IMAP connection has not been established", ErrorKind.CONNECTION
            )
        return self._connection


def parse_metadata(uid: int, message: EmailMessage) -> EmailMetadata:
    """Build :class:`EmailMetadata` from parsed headers, using placeholders."""
    name, address = _first_address(_header_value(message, "From"))
    return EmailMetadata(
        uid=uid,
        sender_name=name,
        sender_address=address,
        subject=_header_text(message, "Subject") or NO_SUBJECT,
        date=_raw_header_text(message, "Date") or UNKNOWN_DATE,
    )


def _header_value(message: EmailMessage, name: str) -> str | None:
    try:
        value = message.get(name)
    except (ValueError, IndexError):
        LOGGER.debug("Malformed %s header ignored", name)
        return None
    if value is None:
        return None
    return str(value)


def _header_text(message: EmailMessage, name: str) -> str | None:
    value = _header_value(message, name)
    if value is None:
        return None
    return _clean_text(value)


def _raw_header_text(message: EmailMessage, name: str) -> str | None:
    """Return the header exactly as sent; the date is shown verbatim."""
    for key, value in message.raw_items():
        if key.lower() == name.lower():
            return _clean_text(str(value))
    return None


def _clean_text(value: str) -> str | None:
    """Collapse folding whitespace; reject text that is not valid UTF-8."""
    text = " ".join(value.split())
    if not text:
        return None
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        # Raw 8-bit header bytes arrive as surrogate escapes.
        try:
            text = text.encode("ascii", "surrogateescape").decode("utf-8")
        except UnicodeError:
            return None
    if "\ufffd" in text:
        return None
    return text


def _first_address(header_value: str | None) -> tuple[str | None, str | None]:
    """Return the first sender; an undecodable name or address degrades alone."""
    if header_value is None:
        return None, None
    for display_name, email_address in getaddresses([" ".join(header_value.split())]):
        address = _clean_text(email_address) if email_address else None
        if address:
            name = _clean_text(display_name) if display_name else None
            return name, address
    return None, None


def _extract_payload(fetch_data: list[tuple[bytes, bytes] | bytes | None]) -> bytes | None:
    """Extract the literal payload from ``imaplib`` response chunks."""
    for entry in fetch_data or []:
        if isinstance(entry, tuple) and len(entry) == 2:
            return entry[1]
    return None


def _wrap_error(exc: Exception, action: str) -> ImapError:
    """Classify a low level failure; aborts and socket errors mean a dead session."""
    if isinstance(exc, (imaplib.IMAP4.abort, OSError)):
        kind = ErrorKind.CONNECTION
    else:
        kind = ErrorKind.PROTOCOL
    return ImapError(f"{action} failed: {exc}", kind)


def _logout_quietly(connection: imaplib.IMAP4_SSL | None) -> None:
    if connection is None:
        return
    try:
        connection.logout()
    except (imaplib.IMAP4.error, OSError):  # pragma: no cover - depends on server state
        LOGGER.debug("IMAP logout raised; discarding connection anyway")


__all__ = [
    "HEADER_FETCH",
    "ImapClient",
    "ImapError",
    "parse_metadata",
]
