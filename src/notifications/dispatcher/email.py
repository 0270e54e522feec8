"""Email notification dispatcher."""

from collections.abc import Callable

import structlog

from notifications.channel.email_port import EmailPort
from notifications.dispatcher.port import NotificationDispatcher
from notifications.templates import ORDER_COMPLETE, get_template

logger = structlog.get_logger(__name__)

RecipientResolver = Callable[[str], str | None]


def owner_id_as_address(owner_id: str) -> str | None:
    """Default resolver: use the owner id when it already is an email address."""
    return owner_id if "@" in owner_id else None


class EmailNotificationDispatcher(NotificationDispatcher):
    """Render the completion template and hand it to an email adapter."""

    def __init__(
        self,
        email_adapter: EmailPort,
        recipient_resolver: RecipientResolver = owner_id_as_address,
    ) -> None:
        self.email_adapter = email_adapter
        self.recipient_resolver = recipient_resolver

    def notify_order_complete(self, owner_id: str, order: dict) -> bool:
        order_id = str(order.get("id"))
        recipient = self.recipient_resolver(owner_id)
        if not recipient:
            logger.warning(
                "No email address for order owner",
                order_id=order_id,
                owner_id=owner_id,
            )
            return False

        content = get_template(ORDER_COMPLETE).render(order)
        try:
            result = self.email_adapter.send(
                to=recipient,
                subject=content["subject"],
                body=content["body"],
                tags={"order_id": order_id},
            )
        except Exception as exc:
            logger.error(
                "Order completion email raised",
                order_id=order_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return False

        if result.get("status") != "sent":
            logger.warning(
                "Order completion email not delivered",
                order_id=order_id,
                error=result.get("error"),
            )
            return False

        logger.info(
            "Order completion email sent",
            order_id=order_id,
            message_id=result.get("message_id"),
        )
        return True
