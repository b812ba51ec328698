"""Poll loop orchestrating mailbox checks, dedup, notification and reconnects."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..core.interfaces import MailboxError, Notifier, SessionClient
from ..core.models import CycleReport, ErrorKind, LoopState, SearchCriteria
from .formatter import format_notification
from .seen import SeenSet

LOGGER = logging.getLogger(__name__)

CONNECTION_KEYWORDS = ("connection", "timeout")


def classify_error(exc: BaseException) -> ErrorKind:
    """Decide whether ``exc`` means the mailbox session is gone.

    Session clients tag their errors with an :class:`ErrorKind`; socket level
    errors are connection failures. Anything else falls back to looking for
    ``connection``/``timeout`` in the error text.
    """
    if isinstance(exc, MailboxError) and exc.kind is not ErrorKind.OTHER:
        return exc.kind
    if isinstance(exc, OSError):
        return ErrorKind.CONNECTION
    description = str(exc).lower()
    if any(keyword in description for keyword in CONNECTION_KEYWORDS):
        return ErrorKind.CONNECTION
    return ErrorKind.OTHER


class PollLoopController:
    """Drive the bootstrap / poll / recover cycle for one mailbox.

    The controller is the sole owner of the :class:`SeenSet` and the only
    caller of the session client, so no locking is involved. Every UID is
    marked seen *before* its notification is attempted: a failed delivery is
    logged and never retried, which keeps delivery at-most-once.
    """

    def __init__(
        self,
        session: SessionClient,
        notifier: Notifier,
        recipient_id: int,
        *,
        interval_seconds: float = 30.0,
        cooldown_seconds: float = 60.0,
        seen: SeenSet | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        # pylint: disable=too-many-arguments
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._session = session
        self._notifier = notifier
        self._recipient_id = recipient_id
        self._interval = interval_seconds
        self._cooldown = cooldown_seconds
        self._sleep = sleep
        self._clock = clock
        self.seen = seen if seen is not None else SeenSet()
        self.state = LoopState.BOOTSTRAPPING

    def bootstrap(self) -> int:
        """Connect and treat every message already in the mailbox as notified.

        Errors propagate: a notifier that cannot reach its mailbox at startup
        must not pretend to be running.
        """
        self.state = LoopState.BOOTSTRAPPING
        self._session.connect()
        existing = self._session.list_matching(SearchCriteria.ALL)
        self.seen.mark_all(existing)
        LOGGER.info("Initialized with %s existing messages", len(self.seen))
        self.state = LoopState.POLLING
        return len(existing)

    def run_cycle(self) -> CycleReport:
        """Run one poll body; keepalive and search errors propagate."""
        self._session.keepalive()
        uids = self._session.list_matching(SearchCriteria.UNSEEN)
        report = CycleReport(listed=len(uids))

        for uid in uids:
            if self.seen.contains(uid):
                continue
            self.seen.mark(uid)
            report.new += 1
            try:
                delivered = self._process_new_email(uid)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                report.failed += 1
                LOGGER.error("Failed to process email %s: %s", uid, exc)
                continue
            if delivered:
                report.notified += 1

        if report.new:
            LOGGER.info(
                "Cycle finished: unseen=%s, new=%s, notified=%s, failed=%s",
                report.listed,
                report.new,
                report.notified,
                report.failed,
            )
        else:
            LOGGER.debug("Cycle finished: no new messages (unseen=%s)", report.listed)
        return report

    def handle_cycle_error(self, exc: Exception) -> ErrorKind:
        """Log a cycle-level failure and reconnect if it looks like one."""
        LOGGER.error("Error checking emails: %s", exc)
        kind = classify_error(exc)
        if kind is ErrorKind.CONNECTION:
            LOGGER.warning("Connection issue detected, attempting to reconnect...")
            self.recover()
        return kind

    def recover(self) -> bool:
        """Reconnect once; on failure pause for the cooldown and carry on."""
        self.state = LoopState.RECOVERING
        try:
            self._session.reconnect()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("Failed to reconnect: %s", exc)
            LOGGER.info("Retrying after %.0f second cooldown", self._cooldown)
            self._sleep(self._cooldown)
            self._resume_polling()
            return False
        self._resume_polling()
        return True

    def poll_once(self) -> CycleReport | None:
        """Run one tick, routing cycle-level errors to recovery."""
        try:
            return self.run_cycle()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self.handle_cycle_error(exc)
            return None

    def run_forever(self) -> None:
        """Poll on a fixed schedule until :meth:`stop` is called.

        The first tick fires immediately. A tick that comes due while a cycle
        (or a reconnect cooldown) is still running fires once as soon as it
        finishes; missed ticks are not replayed.
        """
        if self.state is LoopState.BOOTSTRAPPING:
            raise RuntimeError("bootstrap() must complete before polling starts")
        LOGGER.info(
            "Mail notifier started. Checking for new emails every %.0f seconds...",
            self._interval,
        )
        next_tick = self._clock()
        while self.state is not LoopState.TERMINATED:
            delay = next_tick - self._clock()
            if delay > 0:
                self._sleep(delay)
            if self.state is LoopState.TERMINATED:
                break
            self.poll_once()
            next_tick = max(next_tick + self._interval, self._clock())
        LOGGER.info("Mail notifier stopped")

    def stop(self) -> None:
        """Ask :meth:`run_forever` to exit at the next tick boundary."""
        self.state = LoopState.TERMINATED

    def _process_new_email(self, uid: int) -> bool:
        metadata = self._session.fetch_metadata(uid)
        if metadata is None:
            LOGGER.warning("Email %s vanished before its headers were fetched", uid)
            return False
        LOGGER.info(
            "New email from: %s - Subject: %s", metadata.sender, metadata.subject
        )
        self._notifier.send_direct_message(
            self._recipient_id, format_notification(metadata)
        )
        return True

    def _resume_polling(self) -> None:
        if self.state is LoopState.RECOVERING:
            self.state = LoopState.POLLING


__all__ = ["CONNECTION_KEYWORDS", "PollLoopController", "classify_error"]
