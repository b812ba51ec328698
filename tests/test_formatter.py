"""Tests for notification rendering."""

from __future__ import annotations

from mail_notifier.core.models import EmailMetadata
from mail_notifier.polling import format_notification


def test_format_notification_reproduces_template() -> None:
    metadata = EmailMetadata(
        uid=5, sender_name="Alice", sender_address="a@b.com", subject="Hi", date="Mon"
    )

    assert format_notification(metadata) == (
        "📧 **New Email Received!**\n"
        "\n"
        "**From:** Alice <a@b.com>\n"
        "**Subject:** Hi\n"
        "**Date:** Mon\n"
        "**UID:** 5"
    )


def test_format_notification_with_placeholders() -> None:
    metadata = EmailMetadata(uid=9, sender_name=None, sender_address=None)

    text = format_notification(metadata)

    assert "**From:** Unknown Sender\n" in text
    assert "**Subject:** No Subject\n" in text
    assert "**Date:** Unknown Date\n" in text


def test_braces_in_subject_are_kept_verbatim() -> None:
    metadata = EmailMetadata(
        uid=1, sender_name="Bot", sender_address="bot@x.io", subject="{uid} {0}"
    )

    assert "**Subject:** {uid} {0}\n" in format_notification(metadata)

