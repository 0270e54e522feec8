"""Typed errors raised by the Ordering service.

Each error carries the HTTP status the API layer answers with.
"""


class OrderingError(Exception):
    status_code = 500

    def __init__(self, message: str, **context) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class InvalidInput(OrderingError):
    status_code = 400


class Forbidden(OrderingError):
    status_code = 403


class NotFound(OrderingError):
    status_code = 404


class Conflict(OrderingError):
    status_code = 409


class InvalidTransition(Conflict):
    """The order is not in a status that allows the requested transition."""


class PaymentRejected(OrderingError):
    status_code = 402


class TransientError(OrderingError):
    """A collaborator stayed unreachable after retries; nothing was committed."""

    status_code = 503
