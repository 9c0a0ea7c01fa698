"""Exact cent arithmetic for stored float amounts.

Records keep amounts as floats. Sums and comparisons go through ``Decimal``
quantized to cents, so 0.1 + 0.2 compares equal to a 0.3 limit.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

_CENT = Decimal("0.01")


def cents(value) -> Decimal:
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def total(values: Iterable) -> Decimal:
    return sum((cents(v) for v in values), Decimal("0.00"))