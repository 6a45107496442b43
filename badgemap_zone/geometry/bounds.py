"""
Bounds Module
=============

Auto-fit heuristics for framing a set of geofences.

Design:
- Scans every [lon, lat] of every ring of every polygon
- Zoom chosen from a fixed step table tuned for indoor deployments
  (tens of meters), NOT a generic slippy-map bounds fit
- Degenerate geometry contributes nothing (returns None, never raises)
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Optional, Tuple

# (max span in degrees, zoom) evaluated in order
ZOOM_STEPS: Tuple[Tuple[float, int], ...] = (
    (0.0001, 21),
    (0.0005, 20),
    (0.001, 19),
    (0.002, 19),
    (0.005, 18),
    (0.01, 17),
    (0.02, 16),
)
FALLBACK_ZOOM = 15

MIN_INDOOR_ZOOM = 18
MAX_INDOOR_ZOOM = 21


@dataclass(frozen=True)
class MapView:
    """
    Immutable recenter signal for the rendering collaborator.

    Attributes:
        center_lat: Latitude of the bounding-box center
        center_lon: Longitude of the bounding-box center
        zoom: Map zoom level
    """
    center_lat: float
    center_lon: float
    zoom: int

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return asdict(self)

    def with_min_zoom(self, min_zoom: int) -> 'MapView':
        """Copy with zoom raised to at least min_zoom."""
        return MapView(self.center_lat, self.center_lon, max(min_zoom, self.zoom))


def zoom_for_span(span: float) -> int:
    """
    Pick a zoom level from the larger lat/lon span.

    Returns:
        Zoom clamped to [18, 21]
    """
    zoom = FALLBACK_ZOOM
    for max_span, step_zoom in ZOOM_STEPS:
        if span <= max_span:
            zoom = step_zoom
            break
    return min(MAX_INDOOR_ZOOM, max(MIN_INDOOR_ZOOM, zoom))


def _iter_coordinates(polygon: Any) -> Iterable[Tuple[float, float]]:
    """Yield (lon, lat) for each well-formed vertex of a polygon."""
    if not isinstance(polygon, dict):
        return
    rings = polygon.get("coordinates")
    if not isinstance(rings, (list, tuple)):
        return
    for ring in rings:
        if not isinstance(ring, (list, tuple)):
            continue
        for coord in ring:
            if not isinstance(coord, (list, tuple)) or len(coord) < 2:
                continue
            lon, lat = coord[0], coord[1]
            if isinstance(lon, (int, float)) and isinstance(lat, (int, float)):
                yield float(lon), float(lat)


def bounds_of(geofences: Iterable[Any]) -> Optional[MapView]:
    """
    Compute center and zoom that frame all geofence polygons.

    Args:
        geofences: Geofence records (anything with a .polygon attribute)
                   or raw dicts with a "polygon" key

    Returns:
        MapView, or None if no polygon contributed a coordinate
    """
    min_lat = min_lon = math.inf
    max_lat = max_lon = -math.inf

    for geofence in geofences or ():
        if isinstance(geofence, dict):
            polygon = geofence.get("polygon")
        else:
            polygon = getattr(geofence, "polygon", None)

        for lon, lat in _iter_coordinates(polygon):
            min_lat = min(min_lat, lat)
            max_lat = max(max_lat, lat)
            min_lon = min(min_lon, lon)
            max_lon = max(max_lon, lon)

    if min_lat == math.inf:
        return None

    span = max(max_lat - min_lat, max_lon - min_lon)
    return MapView(
        center_lat=(min_lat + max_lat) / 2,
        center_lon=(min_lon + max_lon) / 2,
        zoom=zoom_for_span(span)
    )
