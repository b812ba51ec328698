"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field

GMAIL_IMAP_HOST = "imap.gmail.com"
GMAIL_IMAP_PORT = 993


class ConfigurationError(ValueError):
    """Raised when required configuration values are absent."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            "Missing required environment variable(s): " + ", ".join(missing)
        )


class ImapSettings(BaseModel):
    """Settings controlling IMAP connectivity.

    Host and port are fixed to Gmail (see ``GMAIL_IMAP_HOST``) and are
    intentionally not part of the model.
    """

    username: str | None = Field(default=None, description="Gmail address")
    app_password: str | None = Field(default=None, description="Gmail app password")
    mailbox: str = Field(default="INBOX", description="Mailbox to monitor")
    timeout_seconds: float | None = Field(
        default=60.0, gt=0, description="Socket timeout for IMAP commands"
    )


class DiscordSettings(BaseModel):
    """Credentials and identity for the Discord notification endpoint."""

    token: str | None = Field(default=None, description="Discord bot token")
    user_id: int | None = Field(
        default=None, description="Discord user receiving direct messages"
    )
    api_base: str = Field(
        default="https://discord.com/api/v10", description="Discord REST API root"
    )
    timeout_seconds: float = Field(
        default=10.0, gt=0, description="Request timeout for Discord calls"
    )


class PollSettings(BaseModel):
    """Settings controlling the poll cadence and reconnect cooldown."""

    interval_seconds: float = Field(
        default=30.0, gt=0, description="Seconds between poll cycles"
    )
    cooldown_seconds: float = Field(
        default=60.0, ge=0, description="Pause after a failed reconnect"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle JSON structured logging"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    imap: ImapSettings = Field(default_factory=ImapSettings)
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    poll: PollSettings = Field(default_factory=PollSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def missing_required(self) -> list[str]:
        """Return the environment variable names whose values are absent."""
        values = {
            "DISCORD_TOKEN": self.discord.token,
            "DISCORD_USER_ID": self.discord.user_id,
            "GMAIL_EMAIL": self.imap.username,
            "GMAIL_APP_PASSWORD": self.imap.app_password,
        }
        return [name for name in REQUIRED_ENV_VARS if values[name] in (None, "")]

    def require_complete(self) -> int:
        """Return the Discord recipient id once all required values exist.

        Raises :class:`ConfigurationError` naming every absent variable.
        """
        missing = self.missing_required()
        if missing or self.discord.user_id is None:
            raise ConfigurationError(missing or ["DISCORD_USER_ID"])
        return self.discord.user_id


ENV_PREFIX = "MAIL_NOTIFIER_"

# Unprefixed variable names kept for compatibility with existing deployments.
ENV_ALIASES: dict[str, list[str]] = {
    "DISCORD_TOKEN": ["discord", "token"],
    "DISCORD_USER_ID": ["discord", "user_id"],
    "GMAIL_EMAIL": ["imap", "username"],
    "GMAIL_APP_PASSWORD": ["imap", "app_password"],
}

REQUIRED_ENV_VARS = tuple(ENV_ALIASES)

# Free-form text settings; "true" or "false" stays a string here.
TEXT_SETTING_PATHS = frozenset(
    {
        ("discord", "token"),
        ("imap", "username"),
        ("imap", "app_password"),
        ("imap", "mailbox"),
    }
)


def _is_recognised(key: str | None) -> bool:
    return bool(key) and (key.startswith(ENV_PREFIX) or key in ENV_ALIASES)


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    if raw_key in ENV_ALIASES:
        return list(ENV_ALIASES[raw_key])
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if _is_recognised(key)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value for key, value in os.environ.items() if _is_recognised(key)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value: Any = value
        if value is None or (isinstance(value, str) and value.strip() == ""):
            normalized_value = None
        elif isinstance(value, str):
            normalized_value = value.strip()
            lowercase_value = normalized_value.lower()
            if tuple(path) not in TEXT_SETTING_PATHS:
                if lowercase_value == "true":
                    normalized_value = True
                elif lowercase_value == "false":
                    normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    *,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "ConfigurationError",
    "DiscordSettings",
    "ENV_ALIASES",
    "ENV_PREFIX",
    "GMAIL_IMAP_HOST",
    "GMAIL_IMAP_PORT",
    "ImapSettings",
    "LoggingSettings",
    "PollSettings",
    "REQUIRED_ENV_VARS",
    "TEXT_SETTING_PATHS",
    "load_app_settings",
]
