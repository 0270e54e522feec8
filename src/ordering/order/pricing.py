"""Pricing rule for orders.

Totals are checked in Decimal and rounded half-up to minor units (cents), so
float noise in client input never decides whether an order is accepted.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ordering.exceptions import InvalidInput

CENT = Decimal("0.01")
DEFAULT_TOLERANCE_MINOR_UNITS = 1


def to_decimal(value) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInput(f"Not a number: {value!r}") from exc


def expected_total(subtotal, tax_rate) -> Decimal:
    """subtotal + subtotal * tax_rate, rounded half-up to the cent."""
    subtotal = to_decimal(subtotal)
    return (subtotal + subtotal * to_decimal(tax_rate)).quantize(CENT, rounding=ROUND_HALF_UP)


def amount_in_minor_units(total) -> int:
    """Convert a major-unit total (11.00) to integer minor units (1100)."""
    return int((to_decimal(total) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def validate_totals(
    subtotal,
    tax_rate,
    total,
    tolerance_minor_units: int = DEFAULT_TOLERANCE_MINOR_UNITS,
) -> None:
    """Raise InvalidInput unless total == subtotal * (1 + tax_rate) within tolerance."""
    errors = {}
    if to_decimal(subtotal) < 0:
        errors["subtotal"] = ["Subtotal cannot be negative"]
    if to_decimal(total) < 0:
        errors["total"] = ["Total cannot be negative"]
    rate = to_decimal(tax_rate)
    if rate < 0 or rate > 1:
        errors["tax_rate"] = ["Tax rate must be between 0 and 1"]
    if errors:
        raise InvalidInput("Invalid order amounts", errors=errors)

    expected = amount_in_minor_units(expected_total(subtotal, tax_rate))
    actual = amount_in_minor_units(total)
    if abs(actual - expected) > tolerance_minor_units:
        raise InvalidInput(
            "Total does not match subtotal and tax rate",
            errors={"total": [f"Expected {Decimal(expected) / 100:.2f}, got {to_decimal(total):.2f}"]},
        )
