"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes. They
are written to the event store when the unit of work that raised them
commits.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new order was accepted in pending status."""

    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {item_ref, quantity}
    subtotal = Float(required=True)
    tax_rate = Float(required=True)
    total = Float(required=True)
    currency = String(max_length=3, required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentIntentAttached:
    """The gateway issued a payment intent for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    intent_id = String(required=True)


@ordering.event(part_of="Order")
class PaymentSucceeded:
    __version__ = 1

    order_id = Identifier(required=True)
    intent_id = String(required=True)
    total = Float(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    intent_id = String(required=True)
    reason = String(max_length=500)


@ordering.event(part_of="Order")
class PaymentRetried:
    """The owner asked to pay again after a failed attempt."""

    __version__ = 1

    order_id = Identifier(required=True)
    attempt = Integer(required=True)


@ordering.event(part_of="Order")
class OrderExpired:
    """A pending order was cancelled by the expiry sweeper."""

    __version__ = 1

    order_id = Identifier(required=True)
    placed_at = DateTime(required=True)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCompleted:
    """Fulfillment confirmed a paid order."""

    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    completed_at = DateTime(required=True)
