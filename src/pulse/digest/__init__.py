"""Digest module for Pulse.

Provides trend analysis, weekly summaries and insight generation.
"""

from .insights import GenerationResult, InsightGenerator
from .trends import DaySummary, TrendAnalyzer, TrendMetric, TrendsResult, calculate_trend
from .weekly import WeeklySummaryAggregator, WeeklySummaryResult

__all__ = [
    "DaySummary",
    "GenerationResult",
    "InsightGenerator",
    "TrendAnalyzer",
    "TrendMetric",
    "TrendsResult",
    "WeeklySummaryAggregator",
    "WeeklySummaryResult",
    "calculate_trend",
]
