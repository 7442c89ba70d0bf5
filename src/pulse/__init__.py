"""Pulse - productivity analytics and insights.

Pulse turns a user's daily task, calendar, habit and focus activity into:
- Daily productivity snapshots with a 0-100 score
- Weekly summaries and trend analysis
- Goal tracking
- Actionable insights

Usage:
    python -m pulse --user alice snapshot
    python -m pulse --profile prod --user alice insights generate
"""

__version__ = "0.1.0"

from .config import PulseConfig
from .config.loader import load_config
from .service import AnalyticsService

__all__ = [
    "AnalyticsService",
    "PulseConfig",
    "__version__",
    "load_config",
]
