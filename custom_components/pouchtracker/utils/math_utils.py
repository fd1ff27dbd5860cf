# File: utils/math_utils.py
"""Math and calculation utilities for Pouch Tracker.

Pure Python math functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.

Functions:
    - round_amount: Consistent rounding for money and nicotine amounts
    - round_half_up: Integer rounding for displayed percentages
    - portion_cost: Price of a single portion
    - safe_average: Mean that tolerates empty input
    - calculate_percentage: Progress percentage calculations
"""

from __future__ import annotations

from collections.abc import Sequence
import math

# Default float precision for displayed amounts
DATA_FLOAT_PRECISION = 2


def round_amount(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a money or nicotine amount to the configured precision.

    Examples:
        round_amount(10.456) → 10.46
        round_amount(10.0) → 10.0
    """
    return round(value, precision)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Examples:
        round_half_up(2.5) → 3
        round_half_up(79.4) → 79
    """
    return math.floor(value + 0.5)


def portion_cost(cost_per_can: float, portions_per_can: int) -> float:
    """Return the price of a single portion.

    Returns 0.0 when the can size is not positive.

    Examples:
        portion_cost(50, 20) → 2.5
        portion_cost(50, 0) → 0.0
    """
    if portions_per_can <= 0:
        return 0.0
    return cost_per_can / portions_per_can


def safe_average(values: Sequence[float]) -> float:
    """Return the arithmetic mean of `values`, or 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def calculate_percentage(part: float, whole: float) -> float:
    """Calculate `part` as a percentage of `whole`.

    Examples:
        calculate_percentage(5, 10) → 50.0
        calculate_percentage(5, 0) → 0.0
    """
    if whole == 0:
        return 0.0
    return (part / whole) * 100
