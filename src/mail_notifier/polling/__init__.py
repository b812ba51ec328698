"""Polling pipeline components."""

from .controller import PollLoopController, classify_error
from .formatter import format_notification
from .seen import SeenSet

__all__ = [
    "PollLoopController",
    "SeenSet",
    "classify_error",
    "format_notification",
]
