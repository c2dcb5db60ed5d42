"""
Decimal helpers shared by pricing, totals and allocation.

RULES:
- Money is rounded half-up to 2 places at every step (round2)
- Anything that is not a finite number coerces to Decimal("0") (to_decimal)
- Input with more than MAX_INPUT_DIGITS integer digits is junk as well
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")

# Keeps products of inputs far inside the decimal exponent range
MAX_INPUT_DIGITS = 100


def _within_range(number: Decimal) -> Decimal:
    if not number.is_finite():
        return ZERO
    if number and number.adjusted() >= MAX_INPUT_DIGITS:
        return ZERO
    return number


def to_decimal(value: Any) -> Decimal:
    """
    Coerce user input to Decimal.

    None, "", booleans, non-numeric strings, NaN and infinities all become 0
    so a half-typed row never breaks live recalculation.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return _within_range(Decimal(value))
    if isinstance(value, float):
        value = repr(value)
    text = str(value).strip()
    if not text:
        return ZERO
    try:
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return ZERO
    return _within_range(result)


def optional_decimal(value: Any) -> Optional[Decimal]:
    """Like to_decimal but keeps None (missing) distinct from 0."""
    if value is None:
        return None
    return to_decimal(value)


def _quantize(value: Any, places: Decimal) -> Decimal:
    number = to_decimal(value)
    with localcontext() as ctx:
        # Every integer digit plus the decimal places must fit
        ctx.prec = max(ctx.prec, number.adjusted() + 8)
        return number.quantize(places, rounding=ROUND_HALF_UP)


def round2(value: Any) -> Decimal:
    """Round half-up to 2 decimal places."""
    return _quantize(value, TWO_PLACES)


def round4(value: Any) -> Decimal:
    return _quantize(value, FOUR_PLACES)
