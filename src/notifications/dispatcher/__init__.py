"""Notification dispatcher factory.

Provides get_dispatcher() / set_dispatcher() to swap implementations. The
default sends emails through the configured email channel.
"""

from notifications.channel import EMAIL, get_channel
from notifications.dispatcher.email import EmailNotificationDispatcher
from notifications.dispatcher.port import NotificationDispatcher

_current_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Return the current dispatcher. Defaults to email over the fake channel."""
    global _current_dispatcher
    if _current_dispatcher is None:
        _current_dispatcher = EmailNotificationDispatcher(get_channel(EMAIL))
    return _current_dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher) -> None:
    """Override the active dispatcher (useful for tests)."""
    global _current_dispatcher
    _current_dispatcher = dispatcher


def reset_dispatcher() -> None:
    """Reset to default dispatcher."""
    global _current_dispatcher
    _current_dispatcher = None
