"""
Money helpers.

All monetary values are handled as Decimal with two places; floats are
only produced at the JSON boundary.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .exceptions import InvalidAmountError

CENTS = Decimal('0.01')


def to_amount(value, field: str = 'amount') -> Decimal:
    """
    Parse a non-negative monetary amount.

    Accepts int, str or Decimal. Floats are converted through str() so
    0.1 stays 0.10 rather than its binary expansion.

    Raises:
        InvalidAmountError: value is missing, not numeric or negative
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(field, value)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(field, value)
    if not amount.is_finite() or amount < 0:
        raise InvalidAmountError(field, value)
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def round_half_up(value: Decimal) -> Decimal:
    """Round to the centavo, ties away from zero."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, percentage) -> Decimal:
    """amount * percentage / 100, rounded half-up to the centavo."""
    return round_half_up(Decimal(amount) * Decimal(str(percentage)) / Decimal(100))
