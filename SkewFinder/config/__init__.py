"""
Configuration modules for GCSkewFinder.

This package contains all configuration constants including:
- analysis: Sequence parsing, caching and batch dispatch parameters
- visualization: Skew plot appearance
"""

from .analysis import SKEW_CONFIG, SkewSettings
from .visualization import SKEW_PLOT_CONFIG, BATCH_PLOT_CONFIG

__all__ = [
    'SKEW_CONFIG',
    'SkewSettings',
    'SKEW_PLOT_CONFIG',
    'BATCH_PLOT_CONFIG',
]
