# File: utils/__init__.py
"""Pure Python utilities for Pouch Tracker.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Date/time parsing, week/month keys, day ranges, epoch conversions
    - math_utils: Amount rounding, portion cost, averages, percentages

Usage:
    from . import dt_utils
    from .math_utils import round_amount
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
