"""Tests for the order completion template and the template registry."""

import pytest
from notifications.templates import ORDER_COMPLETE, get_template
from notifications.templates.order_complete import OrderCompleteTemplate

ORDER = {
    "id": "order-42",
    "owner_id": "buyer@example.com",
    "items": [{"item_ref": "album-A", "quantity": 1}, {"item_ref": "album-B", "quantity": 2}],
    "total": 33.0,
    "currency": "usd",
}


class TestOrderCompleteTemplate:
    def test_subject_names_the_order(self):
        assert OrderCompleteTemplate.render(ORDER)["subject"] == "Order #order-42 is complete"

    def test_body_lists_items_and_total(self):
        body = OrderCompleteTemplate.render(ORDER)["body"]
        assert "album-A x 1" in body
        assert "album-B x 2" in body
        assert "USD 33.00" in body
        assert "buyer@example.com" in body

    def test_renders_with_missing_fields(self):
        content = OrderCompleteTemplate.render({})
        assert content["subject"] == "Order #N/A is complete"
        assert "USD 0.00" in content["body"]


class TestTemplateRegistry:
    def test_lookup(self):
        assert get_template(ORDER_COMPLETE) is OrderCompleteTemplate

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            get_template("Welcome")
