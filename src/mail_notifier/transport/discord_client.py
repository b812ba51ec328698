"""Discord REST client used to deliver direct-message notifications."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.config import DiscordSettings
from ..core.interfaces import DeliveryError

LOGGER = logging.getLogger(__name__)

# Discord rejects message content longer than this.
MESSAGE_LIMIT = 2000
USER_AGENT = "DiscordBot (mail-notifier, 0.1.0)"


class DiscordClient:
    """Thin synchronous client for Discord direct messages.

    Each call is independent: there is no batching and no retry. DM channel
    ids are cached per recipient so only the first message to a user pays
    for the channel lookup.
    """

    def __init__(
        self, settings: DiscordSettings, *, client: httpx.Client | None = None
    ) -> None:
        """Initialise the client; pass ``client`` to supply a custom transport."""
        if not settings.token:
            raise ValueError("Discord token is not configured")
        self._settings = settings
        self._owns_client = client is None
        self._http = client or httpx.Client(timeout=settings.timeout_seconds)
        self._channels: dict[int, str] = {}

    def __enter__(self) -> DiscordClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def send_direct_message(self, recipient_id: int, text: str) -> None:
        """Open (or reuse) the DM channel with ``recipient_id`` and post ``text``.

        Raises:
            DeliveryError: If the channel cannot be opened or the post fails.
        """
        channel_id = self._dm_channel(recipient_id)
        try:
            self._post(
                f"/channels/{channel_id}/messages",
                {"content": _truncate(text)},
                action=f"Sending DM to user {recipient_id}",
            )
        except DeliveryError:
            # A stale channel id must not poison later sends.
            self._channels.pop(recipient_id, None)
            raise
        LOGGER.info("Discord DM sent successfully")

    def close(self) -> None:
        """Release the underlying HTTP connection pool if it is ours."""
        if self._owns_client:
            self._http.close()

    def _dm_channel(self, recipient_id: int) -> str:
        cached = self._channels.get(recipient_id)
        if cached is not None:
            return cached

        data = self._post(
            "/users/@me/channels",
            {"recipient_id": str(recipient_id)},
            action=f"Creating DM channel for user {recipient_id}",
        )
        channel_id = data.get("id") if isinstance(data, dict) else None
        if not isinstance(channel_id, str) or not channel_id:
            raise DeliveryError(
                f"Discord returned no channel id for user {recipient_id}"
            )
        LOGGER.debug("Opened DM channel %s for user %s", channel_id, recipient_id)
        self._channels[recipient_id] = channel_id
        return channel_id

    def _post(self, path: str, payload: dict[str, Any], *, action: str) -> Any:
        url = self._settings.api_base.rstrip("/") + path
        headers = {
            "Authorization": f"Bot {self._settings.token}",
            "User-Agent": USER_AGENT,
        }
        try:
            response = self._http.post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise DeliveryError(
                f"{action} failed with HTTP {status}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"{action} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DeliveryError(f"{action} returned invalid JSON") from exc


def _truncate(text: str) -> str:
    if len(text) <= MESSAGE_LIMIT:
        return text
    return text[: MESSAGE_LIMIT - 3] + "..."


__all__ = ["DiscordClient", "MESSAGE_LIMIT"]
