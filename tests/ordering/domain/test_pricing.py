"""Tests for the pricing rule: tax invariant and minor-unit conversion."""

from decimal import Decimal

import pytest
from ordering.exceptions import InvalidInput
from ordering.order.pricing import amount_in_minor_units, expected_total, validate_totals


class TestExpectedTotal:
    def test_adds_tax(self):
        assert expected_total(10, 0.1) == Decimal("11.00")

    def test_rounds_half_up_to_cent(self):
        # 0.15 + 0.0075 = 0.1575 -> 0.16
        assert expected_total(0.15, 0.05) == Decimal("0.16")

    def test_zero_tax(self):
        assert expected_total(9.99, 0) == Decimal("9.99")


class TestMinorUnits:
    def test_whole_amount(self):
        assert amount_in_minor_units(11) == 1100

    def test_float_noise_does_not_truncate(self):
        # 19.99 * 100 is 1998.9999999999998 as a float
        assert amount_in_minor_units(19.99) == 1999

    def test_half_cent_rounds_up(self):
        assert amount_in_minor_units(Decimal("0.005")) == 1


class TestValidateTotals:
    def test_matching_total_passes(self):
        validate_totals(10, 0.1, 11)

    def test_within_one_cent_passes(self):
        validate_totals(10, 0.1, 11.01)

    def test_beyond_tolerance_rejected(self):
        with pytest.raises(InvalidInput):
            validate_totals(10, 0.1, 11.02)

    def test_custom_tolerance(self):
        validate_totals(10, 0.1, 11.05, tolerance_minor_units=5)
        with pytest.raises(InvalidInput):
            validate_totals(10, 0.1, 11.01, tolerance_minor_units=0)

    @pytest.mark.parametrize("tax_rate", [-0.1, 1.01])
    def test_tax_rate_out_of_range(self, tax_rate):
        with pytest.raises(InvalidInput) as exc:
            validate_totals(10, tax_rate, 10)
        assert "tax_rate" in exc.value.context["errors"]

    def test_not_a_number(self):
        with pytest.raises(InvalidInput):
            validate_totals("ten", 0.1, 11)
