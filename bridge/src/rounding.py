"""
Decimal rounding that matches the vendor app's fixed-point output.

Python's ``round()`` sends exact binary ties to the even neighbour
(``round(0.125, 2) == 0.12``).  The vendor app formats values with
half-away-from-zero rounding over the exact binary value, so ties such as
0.125 or 52.0625 go up while 1.005 (stored as 1.00499...) still goes down.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, decimals: int) -> float:
    """Round *value* to *decimals* places, ties away from zero.

    Args:
        value: A finite number.
        decimals: Decimal places to keep (``>= 0``).

    Returns:
        The rounded value as a float.
    """
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
