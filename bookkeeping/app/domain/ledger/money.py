"""
Money helpers.

All balances are Decimals quantized to cents with half-up rounding.
"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def D(value) -> Decimal:
    """Convert to Decimal and quantize to cents."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        val = value
    else:
        val = Decimal(str(value))
    return val.quantize(CENT, rounding=ROUND_HALF_UP)
