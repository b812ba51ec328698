"""Core utilities for configuration, logging, and shared models."""

from .config import (
    AppSettings,
    ConfigurationError,
    DiscordSettings,
    ImapSettings,
    PollSettings,
    load_app_settings,
)
from .interfaces import DeliveryError, MailboxError
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "DeliveryError",
    "DiscordSettings",
    "ImapSettings",
    "MailboxError",
    "PollSettings",
    "configure_logging",
    "load_app_settings",
]
