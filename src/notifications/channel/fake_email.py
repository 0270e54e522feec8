"""Fake email adapter: records sent emails for testing."""

from uuid import uuid4

from notifications.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Email adapter that keeps messages in memory for test assertions."""

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Mailbox unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Mailbox unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        tags: dict[str, str] | None = None,
    ) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append(
            {
                "message_id": message_id,
                "to": to,
                "subject": subject,
                "body": body,
                "tags": dict(tags or {}),
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.sent_emails.clear()
        self.should_succeed = True
        self.failure_reason = "Mailbox unavailable"
