"""
Analytics Layer
===============

Bounded Context: Derived views over the tracking state.

Responsibilities:
- Collision-avoiding badge colors
- Counts and rolling event rates

Design Philosophy:
- Pure functions of the current state
- Immutable outputs (TrackingStats, color maps)
"""

from badgemap_zone.analytics.colors import (
    BADGE_PALETTE,
    DEFAULT_BADGE_COLOR,
    GEOFENCE_FILL_PALETTE,
    assign_colors,
    color_of,
    djb2,
    geofence_fill_colors,
)
from badgemap_zone.analytics.statistics import (
    TrackingStats,
    classify_status,
    compute_statistics,
    parse_timestamp,
)

__all__ = [
    "BADGE_PALETTE",
    "DEFAULT_BADGE_COLOR",
    "GEOFENCE_FILL_PALETTE",
    "assign_colors",
    "color_of",
    "djb2",
    "geofence_fill_colors",
    "TrackingStats",
    "classify_status",
    "compute_statistics",
    "parse_timestamp",
]
