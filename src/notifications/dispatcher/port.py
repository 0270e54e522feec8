"""Notification dispatcher port.

The ordering core calls the dispatcher exactly once per order, after the
payment_successful -> complete transition has been committed. Delivery
problems are the dispatcher's concern: they are reported, never raised back
into the order lifecycle.
"""

from abc import ABC, abstractmethod


class NotificationDispatcher(ABC):
    """Abstract interface for order notifications."""

    @abstractmethod
    def notify_order_complete(self, owner_id: str, order: dict) -> bool:
        """Tell ``owner_id`` that ``order`` (a snapshot dict) is complete.

        Returns:
            True when the message was accepted for delivery.
        """
        ...
