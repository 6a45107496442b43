"""
Geometric Shapes Module
========================

Pure geometric helpers over GeoJSON-like geometries - NO state, NO side effects.

Design:
- Geometries are plain dicts ({"type": ..., "coordinates": ...})
- Coordinates are [lon, lat] pairs (GeoJSON order)
- Local equirectangular projection for small radii (indoor scale)
- Fail closed: malformed input yields False/None, never an exception
"""

import math
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

# 1 degree of latitude is ~111,320 meters
METERS_PER_DEGREE = 111320.0
FEET_TO_METERS = 0.3048


def feet_to_meters(feet: float) -> float:
    """Convert a badge radius (feet) to meters."""
    return feet * FEET_TO_METERS


def circle_polygon(
    lat: float,
    lon: float,
    radius_meters: float,
    num_points: int = 32
) -> Dict[str, Any]:
    """
    Approximate a circle as a closed Polygon ring.

    Uses a planar approximation valid for tens of meters; no geodesic
    correction. The ring has num_points + 1 vertices and the last one
    repeats the first.

    Args:
        lat: Center latitude (degrees)
        lon: Center longitude (degrees)
        radius_meters: Circle radius in meters (<= 0 gives a zero-area ring)
        num_points: Number of segments

    Returns:
        GeoJSON Polygon dict
    """
    deg_lat = radius_meters / METERS_PER_DEGREE
    deg_lon = deg_lat / math.cos(math.radians(lat))

    angles = np.linspace(0.0, 2.0 * math.pi, num_points + 1)
    lons = lon + deg_lon * np.sin(angles)
    lats = lat + deg_lat * np.cos(angles)

    ring = [[float(x), float(y)] for x, y in zip(lons, lats)]
    # linspace end point is 2*pi; pin it so the ring closes exactly
    ring[-1] = list(ring[0])

    return {"type": "Polygon", "coordinates": [ring]}


def _is_vertex(vertex: Any) -> bool:
    """A [lon, lat, ...] position with numeric lon and lat."""
    if not isinstance(vertex, (list, tuple)) or len(vertex) < 2:
        return False
    return all(
        isinstance(v, (int, float)) and not isinstance(v, bool)
        for v in vertex[:2]
    )


def _is_ring(ring: Any) -> bool:
    return isinstance(ring, (list, tuple)) and bool(ring) and all(_is_vertex(v) for v in ring)


def _outer_ring(polygon: Any) -> Optional[List[Sequence[float]]]:
    """Return the first ring of a polygon or None if malformed."""
    if not isinstance(polygon, dict):
        return None
    coordinates = polygon.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        return None
    ring = coordinates[0]
    if not _is_ring(ring):
        return None
    return list(ring)


def point_in_polygon(lat: float, lon: float, polygon: Any) -> bool:
    """
    Ray-casting point-in-polygon test on the outer ring.

    Holes are ignored. A duplicated closing vertex contributes a
    zero-length edge and does not change the result.

    Args:
        lat: Point latitude
        lon: Point longitude
        polygon: GeoJSON Polygon dict (or anything else)

    Returns:
        True if inside, False if outside or polygon is missing/malformed
    """
    ring = _outer_ring(polygon)
    if ring is None:
        return False

    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > lat) != (yj > lat):
            cross_x = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lon < cross_x:
                inside = not inside
        j = i

    return inside


def close_ring(ring: Sequence[Sequence[float]]) -> List[List[float]]:
    """Append the first vertex when first and last differ."""
    closed = [list(vertex) for vertex in ring]
    if closed and (closed[0][0] != closed[-1][0] or closed[0][1] != closed[-1][1]):
        closed.append(list(closed[0]))
    return closed


def as_polygon(geometry: Any) -> Any:
    """
    Normalize a zone geometry to a Polygon with closed rings.

    LineString becomes a single-ring Polygon, MultiLineString one ring per
    line. Polygons get their rings closed. Anything else, including a ring
    with a malformed vertex, is returned as-is and fails closed downstream.
    """
    if not isinstance(geometry, dict):
        return geometry

    geometry_type = geometry.get("type")
    coordinates = geometry.get("coordinates")

    if geometry_type == "LineString" and isinstance(coordinates, list):
        rings = [coordinates]
    elif geometry_type in ("MultiLineString", "Polygon") and isinstance(coordinates, list):
        rings = coordinates
    else:
        return geometry

    if not rings or not all(_is_ring(ring) for ring in rings):
        return geometry

    polygon = dict(geometry)
    polygon["type"] = "Polygon"
    polygon["coordinates"] = [close_ring(ring) for ring in rings]
    return polygon


def badge_circle(badge: Any, num_points: int = 32) -> Optional[Dict[str, Any]]:
    """
    Circle polygon for a badge's radius (feet), or None.

    Returns None when the badge has no radius or no position.
    """
    if not badge.radius or badge.latitude is None or badge.longitude is None:
        return None
    return circle_polygon(
        badge.latitude,
        badge.longitude,
        feet_to_meters(badge.radius),
        num_points
    )


def zone_display_name(hook: str) -> str:
    """
    Human label for a zone hook.

    Hooks shaped like geofence_{mac}_{name} display as {name}.
    """
    parts = hook.split("_")
    if len(parts) >= 3:
        return parts[2]
    return hook
