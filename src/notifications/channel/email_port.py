"""Email channel port: abstract interface for email delivery."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Abstract interface for email delivery adapters."""

    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        body: str,
        tags: dict[str, str] | None = None,
    ) -> dict:
        """Send an email message.

        Args:
            to: Recipient address.
            subject: Subject line.
            body: Plain-text body.
            tags: Provider tags used to correlate the message (e.g. order id).

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
