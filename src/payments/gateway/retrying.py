"""Retrying gateway decorator.

Wraps any PaymentGateway and retries transient failures with bounded
exponential backoff. Every attempt reuses the caller's idempotency key, so a
retry after an ambiguous failure (request reached the gateway, response was
lost) returns the intent the first attempt created instead of a second one.
"""

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from payments.gateway.port import PaymentGateway, PaymentIntent, TransientGatewayError

logger = structlog.get_logger(__name__)


class RetryingGateway(PaymentGateway):
    """Gateway decorator adding bounded retries on TransientGatewayError."""

    def __init__(
        self,
        inner: PaymentGateway,
        max_attempts: int = 3,
        initial_backoff: float = 0.5,
        max_backoff: float = 5.0,
    ) -> None:
        self.inner = inner
        self.max_attempts = max_attempts
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff

    def _retrying(self) -> Retrying:
        return Retrying(
            retry=retry_if_exception_type(TransientGatewayError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.initial_backoff, max=self.max_backoff),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retrying payment gateway call",
            attempt=retry_state.attempt_number,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
            error=str(exc),
        )

    def create_intent(
        self,
        amount: int,
        currency: str,
        idempotency_key: str,
        metadata: dict[str, str],
        description: str | None = None,
    ) -> PaymentIntent:
        for attempt in self._retrying():
            with attempt:
                return self.inner.create_intent(
                    amount=amount,
                    currency=currency,
                    idempotency_key=idempotency_key,
                    metadata=metadata,
                    description=description,
                )

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        return self.inner.verify_webhook_signature(payload, signature)
