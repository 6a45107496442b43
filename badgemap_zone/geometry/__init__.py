"""
Geometry Layer
==============

Bounded Context: Pure geospatial math for the tracking scene.

Responsibilities:
- Circle approximation for badge radii
- Point-in-polygon tests
- Ring closing and LineString conversion
- Bounds/auto-fit for geofence collections
- NO state, NO counting, NO drawing

Design Philosophy:
- Pure functions
- Immutable outputs
- Fail closed on degenerate input
"""

from badgemap_zone.geometry.shapes import (
    FEET_TO_METERS,
    METERS_PER_DEGREE,
    as_polygon,
    badge_circle,
    circle_polygon,
    close_ring,
    feet_to_meters,
    point_in_polygon,
    zone_display_name,
)
from badgemap_zone.geometry.bounds import MapView, bounds_of, zoom_for_span

__all__ = [
    "FEET_TO_METERS",
    "METERS_PER_DEGREE",
    "as_polygon",
    "badge_circle",
    "circle_polygon",
    "close_ring",
    "feet_to_meters",
    "point_in_polygon",
    "zone_display_name",
    "MapView",
    "bounds_of",
    "zoom_for_span",
]
