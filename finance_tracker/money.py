"""
Fixed-point helpers for monetary values.

Amounts are stored as NUMERIC(12, 2). Aggregates coming back
from the database may be floats (SQLite) or Decimals with a
different exponent, so everything passes through to_money().
"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Normalize an int, float, str or Decimal to 2 decimal places."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
