"""Notification adapters - hand visitor submissions to a delivery provider."""

from app.adapters.notifications.base import AbstractNotifier
from app.adapters.notifications.logging_notifier import LoggingNotifier

__all__ = [
    "AbstractNotifier",
    "LoggingNotifier",
]
