"""Engine modules for Pouch Tracker integration.

Contains pure computation engines:
- statistics_engine: Rollups, streaks, trends, savings, health and snapshot assembly
"""

# Use relative imports within package to avoid mypy module resolution issues
from .statistics_engine import StatisticsEngine

__all__ = [
    "StatisticsEngine",
]
