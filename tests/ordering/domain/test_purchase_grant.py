"""Tests for the PurchaseGrant aggregate."""

from ordering.grant.grant import PurchaseGrant, grant_key_for


class TestPurchaseGrant:
    def test_issue_sets_key_and_fields(self):
        grant = PurchaseGrant.issue("user-001", "album-A", "order-001")
        assert grant.grant_key == "user-001:album-A"
        assert grant.owner_id == "user-001"
        assert grant.item_ref == "album-A"
        assert grant.order_id == "order-001"
        assert grant.created_at is not None

    def test_grant_key_is_per_owner_and_item(self):
        assert grant_key_for("u1", "a") != grant_key_for("u2", "a")
        assert grant_key_for("u1", "a") != grant_key_for("u1", "b")
