"""Tests for the in-memory email adapter and the channel registry."""

import pytest
from notifications.channel import EMAIL, get_channel, reset_channels, set_channel
from notifications.channel.fake_email import FakeEmailAdapter


class TestFakeEmailAdapter:
    def test_records_sent_email(self):
        adapter = FakeEmailAdapter()
        result = adapter.send("a@example.com", "Hi", "Body", tags={"order_id": "o-1"})

        assert result["status"] == "sent"
        assert result["message_id"].startswith("email-")
        assert adapter.sent_emails[0]["to"] == "a@example.com"
        assert adapter.sent_emails[0]["tags"] == {"order_id": "o-1"}

    def test_configured_failure(self):
        adapter = FakeEmailAdapter()
        adapter.configure(should_succeed=False, failure_reason="Bounced")

        result = adapter.send("a@example.com", "Hi", "Body")

        assert result == {"message_id": None, "status": "failed", "error": "Bounced"}
        assert adapter.sent_emails == []

    def test_reset(self):
        adapter = FakeEmailAdapter()
        adapter.send("a@example.com", "Hi", "Body")
        adapter.configure(should_succeed=False)

        adapter.reset()

        assert adapter.sent_emails == []
        assert adapter.should_succeed is True


class TestChannelRegistry:
    def test_default_email_channel_is_singleton(self):
        assert isinstance(get_channel(EMAIL), FakeEmailAdapter)
        assert get_channel(EMAIL) is get_channel(EMAIL)

    def test_set_channel(self):
        adapter = FakeEmailAdapter()
        set_channel(EMAIL, adapter)
        assert get_channel(EMAIL) is adapter

    def test_reset_channels(self):
        first = get_channel(EMAIL)
        reset_channels()
        assert get_channel(EMAIL) is not first

    def test_unknown_channel(self):
        with pytest.raises(ValueError):
            get_channel("Pigeon")
