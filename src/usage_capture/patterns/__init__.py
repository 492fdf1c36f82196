"""Screen pattern table and loader exports."""

from .loader import PatternLoadError, PatternLoader, load_patterns
from .models import BucketHeadings, NavigationPlan, ScreenPatterns, StatusLabels

__all__ = [
    "BucketHeadings",
    "NavigationPlan",
    "PatternLoadError",
    "PatternLoader",
    "ScreenPatterns",
    "StatusLabels",
    "load_patterns",
]
