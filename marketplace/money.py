"""
Price arithmetic for line items.

Prices live as Decimal inside the cart and turn into JSON numbers only when
a snapshot or summary is written.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[str, int, float, Decimal]

CENT = Decimal("0.01")


def as_price(value: Number) -> Decimal:
    """
    Price as Decimal.

    Floats go through ``repr`` so 19.9 stays 19.9. Values Decimal cannot
    parse raise, since a product without a usable price is a caller bug.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def to_cents(value: Number) -> Decimal:
    """Round half-up to whole cents."""
    return as_price(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(price: Number, quantity: int) -> Decimal:
    """Price of ``quantity`` units, in cents."""
    return to_cents(as_price(price) * quantity)


def to_number(value: Number) -> Union[int, float]:
    """
    Decimal as a JSON number.

    Whole amounts come back as int so a price of 10 is written as ``10``
    rather than ``10.0``.
    """
    price = as_price(value)
    if price == price.to_integral_value():
        return int(price)
    return float(price)
