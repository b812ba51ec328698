"""Command-line entry point for the mail notifier."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from mail_notifier.core import (
    AppSettings,
    ConfigurationError,
    MailboxError,
    configure_logging,
    load_app_settings,
)
from mail_notifier.core.config import GMAIL_IMAP_HOST, GMAIL_IMAP_PORT
from mail_notifier.polling import PollLoopController
from mail_notifier.transport import DiscordClient, ImapClient

LOGGER = logging.getLogger(__name__)

REQUIRED_VARIABLES_HELP = """
Required environment variables:
DISCORD_TOKEN=your_discord_bot_token
DISCORD_USER_ID=your_discord_user_id
GMAIL_EMAIL=your_gmail_address
GMAIL_APP_PASSWORD=your_gmail_app_password

Note: Use Gmail App Password, not your regular password!"""


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Forward new Gmail messages as Discord direct messages"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Path to a .env file with configuration (default: ./.env).",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "info"],
        help="Operation to execute (default: run).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit status."""
    if args.command == "info":
        _print_info(settings)
        return 0
    return _run_notifier(settings)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_app_settings(env_file=args.env_file)
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}", file=sys.stderr)
        return 1
    configure_logging(settings.logging)
    return execute(args, settings)


def _run_notifier(settings: AppSettings) -> int:
    """Validate configuration, bootstrap, and poll until interrupted."""
    try:
        recipient_id = settings.require_complete()
    except ConfigurationError as exc:
        for name in exc.missing:
            LOGGER.error("Missing required environment variable: %s", name)
        print(REQUIRED_VARIABLES_HELP, file=sys.stderr)
        return 1

    LOGGER.info("Starting Gmail to Discord notifier...")

    session = ImapClient(settings.imap)
    notifier = DiscordClient(settings.discord)
    controller = PollLoopController(
        session,
        notifier,
        recipient_id,
        interval_seconds=settings.poll.interval_seconds,
        cooldown_seconds=settings.poll.cooldown_seconds,
    )
    try:
        try:
            controller.bootstrap()
        except MailboxError as exc:
            LOGGER.error("Failed to initialize mail notifier: %s", exc)
            return 1
        controller.run_forever()
    except KeyboardInterrupt:
        LOGGER.info("Shutting down gracefully...")
        controller.stop()
    finally:
        session.close()
        notifier.close()
    return 0


def _print_info(settings: AppSettings) -> None:
    """Show the effective, non-secret configuration."""

    def _presence(value: object) -> str:
        return "set" if value else "missing"

    print(f"IMAP server: {GMAIL_IMAP_HOST}:{GMAIL_IMAP_PORT}")
    print(f"Mailbox: {settings.imap.mailbox}")
    print(f"Gmail account: {settings.imap.username or 'missing'}")
    print(f"Gmail app password: {_presence(settings.imap.app_password)}")
    print(f"Discord token: {_presence(settings.discord.token)}")
    print(f"Discord recipient: {settings.discord.user_id or 'missing'}")
    print(f"Poll interval: {settings.poll.interval_seconds:g}s")
    print(f"Reconnect cooldown: {settings.poll.cooldown_seconds:g}s")
    missing = settings.missing_required()
    if missing:
        print("Missing: " + ", ".join(missing))


if __name__ == "__main__":
    sys.exit(main())
