"""Rendering of notification text for newly arrived mail."""

from __future__ import annotations

from textwrap import dedent

from ..core.models import EmailMetadata

NOTIFICATION_TEMPLATE = dedent(
    """\
    📧 **New Email Received!**

    **From:** {sender}
    **Subject:** {subject}
    **Date:** {date}
    **UID:** {uid}"""
)


def format_notification(metadata: EmailMetadata) -> str:
    """Return the direct-message text announcing ``metadata``."""
    return NOTIFICATION_TEMPLATE.format(
        sender=metadata.sender,
        subject=metadata.subject,
        date=metadata.date,
        uid=metadata.uid,
    )


__all__ = ["NOTIFICATION_TEMPLATE", "format_notification"]
