"""Payment gateway port (abstract interface).

Defines the contract the ordering core requires from a payment processor.
Adapters (FakeGateway for dev/test, StripeGateway for production) implement
it so that order orchestration never talks to a vendor SDK directly.

Payment success or failure is NOT reported here: the gateway only issues the
intent. The outcome arrives later through the signed webhook callback.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class GatewayError(Exception):
    """Base class for every error raised by a gateway adapter."""


class TransientGatewayError(GatewayError):
    """Network or availability failure. Safe to retry with the same idempotency key."""


class PaymentRejectedError(GatewayError):
    """The gateway refused the request terms (amount, currency, ...). Never retried."""


class GatewayConfigurationError(GatewayError):
    """No usable gateway could be built from the given settings."""


@dataclass(frozen=True)
class PaymentIntent:
    """Handle for an in-progress payment authorization."""

    intent_id: str
    client_secret: str
    amount: int
    currency: str
    status: str = "requires_payment_method"
    metadata: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        amount: int,
        currency: str,
        idempotency_key: str,
        metadata: dict[str, str],
        description: str | None = None,
    ) -> PaymentIntent:
        """Create (or return the existing) payment intent for ``idempotency_key``.

        Args:
            amount: Amount in minor currency units (cents).
            currency: ISO currency code, lowercase.
            idempotency_key: Repeating a call with the same key returns the same intent.
            metadata: Free-form string metadata echoed back in callbacks.
            description: Human readable description shown in the gateway dashboard.

        Raises:
            TransientGatewayError: The call may be retried.
            PaymentRejectedError: The request terms were refused.
        """
        ...

    @abstractmethod
    def verify_webhook_signature(
        self,
        payload: str,
        signature: str,
    ) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
