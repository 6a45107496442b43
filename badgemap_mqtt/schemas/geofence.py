"""
Geofence Message Schema
=======================

Bounded Context: Zone Data Structures

Design:
- GeofenceStyle: stroke overrides, each independently nullable
- Geofence: stored zone record, replace-on-write
- Render defaults are applied by GeofenceStyle.resolved(), never at storage
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_STROKE_COLOR = '#1e40af'
DEFAULT_STROKE_WIDTH = 2
DEFAULT_STROKE_OPACITY = 0.8


@dataclass(frozen=True)
class GeofenceStyle:
    """
    Optional stroke overrides for a geofence outline.

    Attributes:
        stroke_color: CSS color or None
        stroke_width: Line width or None
        stroke_opacity: Opacity in [0, 1] or None
    """
    stroke_color: Optional[str] = None
    stroke_width: Optional[float] = None
    stroke_opacity: Optional[float] = None

    def resolved(self) -> 'GeofenceStyle':
        """Copy with render-time defaults filled in for unset fields."""
        return GeofenceStyle(
            stroke_color=self.stroke_color or DEFAULT_STROKE_COLOR,
            stroke_width=(
                self.stroke_width if self.stroke_width is not None
                else DEFAULT_STROKE_WIDTH
            ),
            stroke_opacity=(
                self.stroke_opacity if self.stroke_opacity is not None
                else DEFAULT_STROKE_OPACITY
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the wire spelling (camelCase)."""
        return {
            'strokeColor': self.stroke_color,
            'strokeWidth': self.stroke_width,
            'strokeOpacity': self.stroke_opacity,
        }


@dataclass(frozen=True)
class Geofence:
    """
    Stored geofence (normalized zone definition).

    Attributes:
        name: Primary key (first of name/hook/id)
        polygon: GeoJSON Polygon dict with closed [lon, lat] rings, or None
        mac: Owning badge id, if any
        style: Stroke overrides
        extra: Unrecognized source fields

    Invariants:
        - polygon rings are closed (first vertex == last vertex)
    """
    name: str
    polygon: Optional[Dict[str, Any]] = None
    mac: Optional[str] = None
    style: GeofenceStyle = field(default_factory=GeofenceStyle)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict (extra fields first)."""
        result = dict(self.extra)
        result.update({
            'name': self.name,
            'polygon': self.polygon,
            'mac': self.mac,
        })
        result.update(self.style.to_dict())
        return result
