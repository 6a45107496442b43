"""
Notification History
====================

Enter/exit events turned into user-facing notifications.

Design:
- Only "enter" and "exit" notify; other relations stay in the event log only
- Newest first, bounded
- Filtering is a pure query over the retained history
"""

from collections import deque
from dataclasses import dataclass, asdict
from itertools import count
from typing import Any, Deque, Dict, List, Optional

from badgemap_mqtt.schemas import CrossingEvent, Detect, NOTIFYING_DETECTS
from badgemap_zone.geometry import zone_display_name

DEFAULT_NOTIFICATION_LIMIT = 100

FILTER_ALL = "all"


@dataclass(frozen=True)
class Notification:
    """
    One enter/exit notification.

    Attributes:
        id: Monotonic sequence number
        type: "enter" or "exit"
        message: Human-readable text
        badge_id: Badge the event concerns
        geofence_name: Display name of the zone
        timestamp: Event timestamp (ISO 8601)
    """
    id: int
    type: str
    message: str
    badge_id: str
    geofence_name: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on message, badge and zone."""
        term = term.lower()
        return (
            term in self.message.lower()
            or term in self.badge_id.lower()
            or term in self.geofence_name.lower()
        )


class NotificationCenter:
    """
    Bounded history of enter/exit notifications.

    Usage:
        center = NotificationCenter()
        center.notify(event)
        center.filter(kind="enter", search="lobby")
    """

    def __init__(self, limit: int = DEFAULT_NOTIFICATION_LIMIT):
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = limit
        self._history: Deque[Notification] = deque(maxlen=limit)
        self._ids = count(1)

    def notify(self, event: CrossingEvent) -> Optional[Notification]:
        """
        Record a notification for an enter/exit event.

        Returns:
            The notification, or None if the event does not notify
        """
        if event.detect not in NOTIFYING_DETECTS:
            return None

        badge_id = event.id or "unknown"
        geofence_name = zone_display_name(event.hook) if event.hook else "unknown"
        verb = "entered" if event.detect == Detect.ENTER.value else "exited"

        notification = Notification(
            id=next(self._ids),
            type=event.detect,
            message=f"Badge {badge_id} {verb} {geofence_name}",
            badge_id=badge_id,
            geofence_name=geofence_name,
            timestamp=event.timestamp,
        )
        self._history.appendleft(notification)
        return notification

    def filter(self, kind: str = FILTER_ALL, search: Optional[str] = None) -> List[Notification]:
        """
        Query the history.

        Args:
            kind: "all", "enter" or "exit"
            search: Optional case-insensitive search term

        Returns:
            Matching notifications, newest first
        """
        result = list(self._history)
        if kind != FILTER_ALL:
            result = [n for n in result if n.type == kind]
        if search:
            result = [n for n in result if n.matches(search)]
        return result

    def counts(self) -> Dict[str, int]:
        """Totals over the retained history."""
        history = list(self._history)
        return {
            'total': len(history),
            'enter': sum(1 for n in history if n.type == Detect.ENTER.value),
            'exit': sum(1 for n in history if n.type == Detect.EXIT.value),
        }

    def clear(self) -> None:
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)
