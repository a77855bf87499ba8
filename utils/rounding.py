"""
Deterministic rounding for displayed statistics.

Python's round() uses banker's rounding; report figures use half-up so an
average of 2.345 always shows as 2.35.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union


def round_half_up(value: float, decimals: int = 0) -> Union[int, float]:
    """
    Round a number using "round half up" strategy.

    Args:
        value: Number to round
        decimals: Number of decimal places (0 returns an int)

    Returns:
        Rounded value

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(2.345, 2)
        2.35
    """
    exponent = Decimal(1).scaleb(-decimals)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    if decimals == 0:
        return int(rounded)
    return float(rounded)
