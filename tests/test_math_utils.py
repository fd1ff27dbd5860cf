"""Tests for utils/math_utils.py."""

import pytest

from custom_components.pouchtracker.utils.math_utils import (
    calculate_percentage,
    portion_cost,
    round_amount,
    round_half_up,
    safe_average,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2.5, 3), (79.4, 79), (79.5, 80), (0.0, 0), (12.4999, 12)],
)
def test_round_half_up(value: float, expected: int) -> None:
    """Halves round up, everything else to the nearest integer."""
    assert round_half_up(value) == expected


def test_portion_cost() -> None:
    """Cost is split evenly over the can; empty cans cost nothing."""
    assert portion_cost(50, 20) == 2.5
    assert portion_cost(50, 0) == 0.0


def test_safe_average() -> None:
    """Empty input averages to zero."""
    assert safe_average([2, 4, 9]) == 5
    assert safe_average([]) == 0.0


def test_calculate_percentage() -> None:
    """Percentages of zero are zero."""
    assert calculate_percentage(5, 10) == 50.0
    assert calculate_percentage(5, 0) == 0.0


def test_round_amount() -> None:
    """Amounts round to two decimals."""
    assert round_amount(10.456) == 10.46
    assert round_amount(2.5) == 2.5
