"""
Badge Message Schema
====================

Bounded Context: Badge Data Structures

Design:
- PositionUpdate: one normalized inbound position message
- HistoryEntry: one retained trail point
- Badge: stored badge record (replaced, never mutated in place)
- TestPositionCommand: outbound command for manually positioned badges
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .event import CrossingEvent


@dataclass(frozen=True)
class HistoryEntry:
    """
    One point of a badge's trail.

    Example:
        >>> HistoryEntry(lat=28.59, lon=77.20, time="2025-10-24T15:30:45+00:00").to_dict()
        {'lat': 28.59, 'lon': 77.2, 'time': '2025-10-24T15:30:45+00:00'}
    """
    lat: float
    lon: float
    time: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {'lat': self.lat, 'lon': self.lon, 'time': self.time}


@dataclass(frozen=True)
class PositionUpdate:
    """
    Normalized position update.

    Attributes:
        id: Badge identifier (MAC-like)
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        timestamp: ISO 8601 timestamp (source field or ingestion time)
        radius: Radius in feet, None when the message had none
        extra: Unrecognized source fields
    """
    id: str
    latitude: float
    longitude: float
    timestamp: str
    radius: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def history_entry(self) -> HistoryEntry:
        """Trail point for this update."""
        return HistoryEntry(lat=self.latitude, lon=self.longitude, time=self.timestamp)


@dataclass(frozen=True)
class Badge:
    """
    Stored badge record.

    Attributes:
        id: Primary key, immutable once created
        latitude: Current latitude (None only for manually seeded badges)
        longitude: Current longitude (None only for manually seeded badges)
        radius: Sensing radius in feet, None = no circle
        timestamp: ISO 8601 time of the last position change
        history: Most recent trail points, oldest first
        status: zone hook -> last relation, written by the event correlator
        last_event: Most recent crossing event for this badge
        extra: Unrecognized fields merged from updates

    Invariants:
        - len(history) <= the store's history limit (50 by default)
    """
    id: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius: Optional[float] = None
    timestamp: Optional[str] = None
    history: Tuple[HistoryEntry, ...] = ()
    status: Dict[str, str] = field(default_factory=dict)
    last_event: Optional[CrossingEvent] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_position(self) -> bool:
        """True when both coordinates are set."""
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict (extra fields first)."""
        result = dict(self.extra)
        result.update({
            'id': self.id,
            'mac': self.id,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'radius': self.radius,
            'timestamp': self.timestamp,
            'history': [entry.to_dict() for entry in self.history],
            'status': dict(self.status),
            'lastEvent': self.last_event.to_dict() if self.last_event else None,
        })
        return result


@dataclass(frozen=True)
class TestPositionCommand:
    """
    Outbound command emitted when a manually positioned badge changes.

    Relayed by the transport to any interested backend.
    """
    __test__ = False  # not a pytest class

    mac: str
    latitude: Optional[float]
    longitude: Optional[float]
    radius: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'mac': self.mac,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'radius': self.radius,
        }
