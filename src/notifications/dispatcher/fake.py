"""Fake notification dispatcher: records invocations for tests."""

import threading

from notifications.dispatcher.port import NotificationDispatcher


class FakeNotificationDispatcher(NotificationDispatcher):
    def __init__(self) -> None:
        self.notifications: list[dict] = []
        self._lock = threading.Lock()

    def notify_order_complete(self, owner_id: str, order: dict) -> bool:
        with self._lock:
            self.notifications.append({"owner_id": owner_id, "order": dict(order)})
        return True

    def count_for(self, order_id: str) -> int:
        return sum(1 for n in self.notifications if str(n["order"].get("id")) == str(order_id))

    def reset(self) -> None:
        with self._lock:
            self.notifications.clear()
