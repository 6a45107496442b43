"""
Badgemap Zone
=============

Bounded Context: Geospatial math and derived views for indoor tracking.

Design Philosophy:
- Separation of Concerns: Geometry and Analytics separated
- KISS: Plain GeoJSON dicts in, plain values out
- Indoor scale: approximations tuned for tens of meters

Architecture:

    badgemap_zone/
    ├── geometry/          # Pure geometry (stateless)
    │   ├── shapes.py      # circle_polygon, point_in_polygon, as_polygon
    │   └── bounds.py      # bounds_of, MapView
    │
    └── analytics/         # Derived views (pure)
        ├── colors.py      # assign_colors (djb2 + linear probing)
        └── statistics.py  # compute_statistics, TrackingStats

Usage:

    from badgemap_zone import circle_polygon, point_in_polygon, bounds_of

    ring = circle_polygon(28.5944, 77.2001, radius_meters=3.0)
    point_in_polygon(28.5944, 77.2001, ring)        # True

    view = bounds_of(store.geofences())             # MapView or None

    from badgemap_zone import assign_colors, compute_statistics

    colors = assign_colors(["AA:01", "AA:02"])
    stats = compute_statistics(badges, geofences, events)
"""

# Geometry Layer (stateless)
from badgemap_zone.geometry import (
    MapView,
    as_polygon,
    badge_circle,
    bounds_of,
    circle_polygon,
    close_ring,
    feet_to_meters,
    point_in_polygon,
    zone_display_name,
)

# Analytics Layer (pure)
from badgemap_zone.analytics import (
    TrackingStats,
    assign_colors,
    color_of,
    compute_statistics,
    geofence_fill_colors,
)

__all__ = [
    # Geometry
    "MapView",
    "as_polygon",
    "badge_circle",
    "bounds_of",
    "circle_polygon",
    "close_ring",
    "feet_to_meters",
    "point_in_polygon",
    "zone_display_name",
    # Analytics
    "TrackingStats",
    "assign_colors",
    "color_of",
    "compute_statistics",
    "geofence_fill_colors",
]

__version__ = "1.0.0"
