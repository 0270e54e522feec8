"""Tests for bounded retries around a gateway."""

import pytest
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentRejectedError, TransientGatewayError
from payments.gateway.retrying import RetryingGateway


@pytest.fixture()
def inner():
    return FakeGateway()


@pytest.fixture()
def gateway(inner):
    return RetryingGateway(inner, max_attempts=3, initial_backoff=0, max_backoff=0)


def _create(gateway):
    return gateway.create_intent(
        amount=500,
        currency="usd",
        idempotency_key="order-7",
        metadata={"order_id": "order-7"},
    )


class TestRetryingGateway:
    def test_passes_through_success(self, gateway, inner):
        intent = _create(gateway)
        assert intent.intent_id in {i.intent_id for i in inner.intents.values()}
        assert len(inner.calls) == 1

    def test_recovers_from_transient_failures(self, gateway, inner):
        inner.fail_transiently(times=2)

        intent = _create(gateway)

        assert intent.intent_id
        assert len(inner.calls) == 3
        assert {call["idempotency_key"] for call in inner.calls} == {"order-7"}

    def test_gives_up_after_max_attempts(self, gateway, inner):
        inner.fail_transiently(times=3)

        with pytest.raises(TransientGatewayError):
            _create(gateway)
        assert len(inner.calls) == 3

    def test_rejection_is_not_retried(self, gateway, inner):
        inner.reject_next("Amount too small")

        with pytest.raises(PaymentRejectedError):
            _create(gateway)
        assert len(inner.calls) == 1

    def test_delegates_signature_verification(self, gateway):
        assert gateway.verify_webhook_signature("{}", "test-signature") is True
        assert gateway.verify_webhook_signature("{}", "nope") is False
