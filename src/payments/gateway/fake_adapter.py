"""Configurable fake payment gateway for development and testing.

This adapter simulates a real payment gateway without any external calls.
It honours idempotency keys the way Stripe does (same key, same intent) and
can be told to fail transiently or reject outright, which makes it useful for
automated tests and for development without real gateway credentials.
"""

import threading
from uuid import uuid4

from payments.gateway.port import (
    PaymentGateway,
    PaymentIntent,
    PaymentRejectedError,
    TransientGatewayError,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Amount must be at least 50 cents"
        self.transient_failures_remaining: int = 0
        self.reject_next_reason: str | None = None
        self.calls: list[dict] = []
        self.intents: dict[str, PaymentIntent] = {}
        self._lock = threading.Lock()

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Amount must be at least 50 cents",
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def fail_transiently(self, times: int = 1) -> None:
        """Make the next ``times`` calls raise TransientGatewayError."""
        self.transient_failures_remaining = times

    def reject_next(self, reason: str) -> None:
        """Reject the next new intent with ``reason``, then behave normally."""
        self.reject_next_reason = reason

    def create_intent(
        self,
        amount: int,
        currency: str,
        idempotency_key: str,
        metadata: dict[str, str],
        description: str | None = None,
    ) -> PaymentIntent:
        with self._lock:
            self.calls.append(
                {
                    "method": "create_intent",
                    "amount": amount,
                    "currency": currency,
                    "idempotency_key": idempotency_key,
                    "metadata": dict(metadata),
                    "description": description,
                }
            )

            if self.transient_failures_remaining > 0:
                self.transient_failures_remaining -= 1
                raise TransientGatewayError("Gateway timed out")

            existing = self.intents.get(idempotency_key)
            if existing is not None:
                return existing

            if self.reject_next_reason is not None:
                reason, self.reject_next_reason = self.reject_next_reason, None
                raise PaymentRejectedError(reason)

            if not self.should_succeed:
                raise PaymentRejectedError(self.failure_reason)

            intent_id = f"pi_fake_{uuid4().hex[:16]}"
            intent = PaymentIntent(
                intent_id=intent_id,
                client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}",
                amount=amount,
                currency=currency,
                metadata=dict(metadata),
            )
            self.intents[idempotency_key] = intent
            return intent

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"

    def reset(self) -> None:
        """Clear recorded calls and intents (useful between tests)."""
        with self._lock:
            self.calls.clear()
            self.intents.clear()
        self.should_succeed = True
        self.transient_failures_remaining = 0
        self.reject_next_reason = None
