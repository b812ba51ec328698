"""Transport adapters for the mailbox and the notification endpoint."""

from .discord_client import DiscordClient
from .imap_client import ImapClient, ImapError

__all__ = ["DiscordClient", "ImapClient", "ImapError"]
