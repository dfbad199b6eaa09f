"""Small numeric helpers shared by the calculators."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2).

    Python's built-in ``round`` uses banker's rounding, which would move
    scores and rents sitting exactly on a half.
    """
    # floor(value + 0.5) is inexact just below a half
    whole = math.floor(value)
    return int(whole) + 1 if value - whole >= 0.5 else int(whole)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp *value* into ``[low, high]``."""
    return min(high, max(low, value))
