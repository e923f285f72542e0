"""Currency helpers used across the tax domain.

Amounts travel as floats and are rounded to cents only at subtotal and total
boundaries. Rounding goes through Decimal so that half-cent values round up
the way a person doing the math by hand would, rather than to even.
"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
# Binary float noise is squeezed out at this precision before the cent rounding.
_NOISE = Decimal("0.000000001")


def _to_decimal(value: float) -> Decimal:
    return Decimal(repr(float(value))).quantize(_NOISE, rounding=ROUND_HALF_UP)


def round_currency(value: float) -> float:
    """Round to whole cents, half away from zero.

    Example: 8336.435 -> 8336.44 (not 8336.43)
    """
    return float(_to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, half away from zero (2.5 -> 3)."""
    return int(_to_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp value into [minimum, maximum]."""
    return min(maximum, max(minimum, value))
