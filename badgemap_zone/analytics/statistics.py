"""
Statistics Module
=================

On-demand aggregate view of the tracking scene.

Design:
- Pure function of (badges, geofences, event log): no mutation
- Immutable snapshot (TrackingStats)
- Event counts are windowed by the bounded log, not lifetime totals
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional, Sequence

KNOWN_EVENT_TYPES = ("enter", "exit", "cross", "inside", "outside")
RATE_WINDOW_MINUTES = 5


@dataclass(frozen=True)
class TrackingStats:
    """
    Immutable statistics snapshot.

    Attributes:
        badge_count: Number of badges in the store
        geofence_count: Number of geofences in the store
        inside_count: Badges with any "inside"/"enter" status
        crossing_count: Badges with a "cross" status (and not inside)
        outside_count: Every other badge, including ones with no status
        event_counts: Per-type counts over the retained event log
        total_events: Length of the retained event log
        events_per_minute: Events in the rate window divided by its width
    """
    badge_count: int = 0
    geofence_count: int = 0
    inside_count: int = 0
    crossing_count: int = 0
    outside_count: int = 0
    event_counts: Dict[str, int] = field(default_factory=dict)
    total_events: int = 0
    events_per_minute: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'badge_count': self.badge_count,
            'geofence_count': self.geofence_count,
            'inside_count': self.inside_count,
            'crossing_count': self.crossing_count,
            'outside_count': self.outside_count,
            'event_counts': dict(self.event_counts),
            'total_events': self.total_events,
            'events_per_minute': round(self.events_per_minute, 1),
        }

    def __str__(self) -> str:
        return (
            f"badges={self.badge_count} (in={self.inside_count}, "
            f"cross={self.crossing_count}, out={self.outside_count}), "
            f"events={self.total_events} ({self.events_per_minute:.1f}/min)"
        )


def classify_status(status: Optional[Dict[str, str]]) -> str:
    """
    Classify a badge status map.

    Returns:
        "inside", "crossing" or "outside"
    """
    relations = set((status or {}).values())
    if "inside" in relations or "enter" in relations:
        return "inside"
    if "cross" in relations:
        return "crossing"
    return "outside"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string to an aware datetime (naive means UTC)."""
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def compute_statistics(
    badges: Iterable[Any],
    geofences: Sequence[Any],
    events: Sequence[Any],
    now: Optional[datetime] = None,
    window_minutes: int = RATE_WINDOW_MINUTES
) -> TrackingStats:
    """
    Derive counts and rates from the current store and event log.

    Args:
        badges: Badge records (need .status)
        geofences: Geofence records (only counted)
        events: Event log records (need .detect and .timestamp)
        now: Reference time for the rate window (default: current UTC time)
        window_minutes: Width of the fixed rate window

    Returns:
        TrackingStats snapshot
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    counts = {"inside": 0, "crossing": 0, "outside": 0}
    badge_count = 0
    for badge in badges:
        badge_count += 1
        counts[classify_status(badge.status)] += 1

    event_counts = {event_type: 0 for event_type in KNOWN_EVENT_TYPES}
    window_start = now - timedelta(minutes=window_minutes)
    recent = 0
    for event in events:
        if event.detect:
            event_counts[event.detect] = event_counts.get(event.detect, 0) + 1
        when = parse_timestamp(event.timestamp)
        if when is not None and when > window_start:
            recent += 1

    return TrackingStats(
        badge_count=badge_count,
        geofence_count=len(geofences),
        inside_count=counts["inside"],
        crossing_count=counts["crossing"],
        outside_count=counts["outside"],
        event_counts=event_counts,
        total_events=len(events),
        events_per_minute=recent / window_minutes
    )
