"""
CreatorLens - TikTok content analytics aggregation layer

Turns a creator's per-video metrics into dashboard aggregates: percentile
ranks and z-scores, duration cohorts, weekday x hour heatmaps, composite
growth and viral scores, and period-over-period traffic deltas.
"""

__version__ = "0.1.0"
__author__ = "CreatorLens Team"
