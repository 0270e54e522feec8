"""Stripe payment gateway adapter.

Issues PaymentIntents through the stripe-python SDK and verifies webhook
signatures with the account's signing secret. Stripe errors are folded into
the port's two categories: transient (connection, rate limiting, 5xx) and
rejected (card or request errors, which retrying cannot fix).
"""

import stripe
import structlog

from payments.gateway.port import (
    GatewayError,
    PaymentGateway,
    PaymentIntent,
    PaymentRejectedError,
    TransientGatewayError,
)

logger = structlog.get_logger(__name__)

_TRANSIENT_ERRORS = (
    stripe.APIConnectionError,
    stripe.RateLimitError,
    stripe.APIError,
)

_REJECTED_ERRORS = (
    stripe.CardError,
    stripe.InvalidRequestError,
)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_intent(
        self,
        amount: int,
        currency: str,
        idempotency_key: str,
        metadata: dict[str, str],
        description: str | None = None,
    ) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency,
                description=description,
                metadata=metadata,
                idempotency_key=idempotency_key,
            )
        except _TRANSIENT_ERRORS as exc:
            logger.warning(
                "Stripe intent creation failed transiently",
                idempotency_key=idempotency_key,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise TransientGatewayError(str(exc)) from exc
        except _REJECTED_ERRORS as exc:
            logger.warning(
                "Stripe rejected intent creation",
                idempotency_key=idempotency_key,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise PaymentRejectedError(exc.user_message or str(exc)) from exc
        except stripe.StripeError as exc:
            raise GatewayError(str(exc)) from exc

        # SDK objects are not dicts; read attributes and convert metadata explicitly
        metadata = getattr(intent, "metadata", None)
        return PaymentIntent(
            intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status,
            metadata=metadata.to_dict() if metadata is not None else {},
        )

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError:
            return False
        except ValueError:
            return False
        return True


def outcome_from_event(event: dict) -> dict | None:
    """Extract ``{intent_id, outcome, failure_reason}`` from a Stripe event.

    Returns None for event types that do not settle a payment attempt.
    """
    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}
    if event_type == "payment_intent.succeeded":
        return {"intent_id": intent.get("id"), "outcome": "succeeded", "failure_reason": None}
    if event_type == "payment_intent.payment_failed":
        error = intent.get("last_payment_error") or {}
        return {
            "intent_id": intent.get("id"),
            "outcome": "failed",
            "failure_reason": error.get("message") or "Payment failed",
        }
    return None
