"""Gmail to Discord new-mail notifier."""

__version__ = "0.1.0"
