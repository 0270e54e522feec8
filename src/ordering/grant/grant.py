"""PurchaseGrant aggregate: the durable record that a user owns an album.

Grants are created in the same unit of work as the order that bought the
album and are never removed by the ordering service, even when the order is
expired or deleted. ``grant_key`` (``owner:item``) is unique, so one owner
holds at most one grant per album however many orders include it.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String

from ordering.domain import ordering


def grant_key_for(owner_id, item_ref) -> str:
    return f"{owner_id}:{item_ref}"


@ordering.aggregate
class PurchaseGrant:
    grant_key = String(max_length=255, required=True, unique=True)
    owner_id = Identifier(required=True)
    item_ref = Identifier(required=True)
    order_id = Identifier(required=True)  # The order that first bought the album
    created_at = DateTime()

    @classmethod
    def issue(cls, owner_id, item_ref, order_id):
        return cls(
            grant_key=grant_key_for(owner_id, item_ref),
            owner_id=str(owner_id),
            item_ref=str(item_ref),
            order_id=str(order_id),
            created_at=datetime.now(UTC),
        )
