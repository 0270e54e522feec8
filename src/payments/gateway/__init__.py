"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- StripeGateway for production

Whatever is installed is wrapped in a RetryingGateway, so callers always get
bounded retries on transient failures.
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import GatewayConfigurationError, PaymentGateway
from payments.gateway.retrying import RetryingGateway
from payments.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None


def build_gateway(
    stripe_secret_key: str | None = None,
    stripe_webhook_secret: str = "",
    max_attempts: int = 3,
    initial_backoff: float = 0.5,
    max_backoff: float = 5.0,
    allow_fake: bool = True,
) -> PaymentGateway:
    """Build the retrying gateway: Stripe when a secret key is given, fake otherwise.

    With ``allow_fake=False`` (production) missing Stripe secrets raise
    GatewayConfigurationError instead of installing the fake gateway.
    """
    if stripe_secret_key:
        if not stripe_webhook_secret and not allow_fake:
            raise GatewayConfigurationError("A Stripe webhook signing secret is required")
        inner: PaymentGateway = StripeGateway(stripe_secret_key, stripe_webhook_secret)
    elif not allow_fake:
        raise GatewayConfigurationError("A Stripe secret key is required; the fake gateway is disabled")
    else:
        inner = FakeGateway()
    return RetryingGateway(
        inner,
        max_attempts=max_attempts,
        initial_backoff=initial_backoff,
        max_backoff=max_backoff,
    )


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to a retrying FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
