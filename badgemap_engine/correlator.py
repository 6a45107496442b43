"""
Event Correlator
================

Bounded Context: Crossing events -> per-badge status.

Design:
- Bounded newest-first log (deque with maxlen, O(1) prepend + eviction)
- Each event is folded into its badge's status map (last writer wins per hook)
- Unknown badges: event kept in the log, store untouched

Known limitation:
    Status follows arrival order. A late, older event overwrites a newer
    relation for the same hook; there is no sequence-number guard.
"""

from collections import deque
from typing import Any, Deque, List, Optional, Tuple

from badgemap_mqtt.normalizer import normalize_event
from badgemap_mqtt.schemas import Badge, CrossingEvent

from badgemap_engine.store import EntityStore

DEFAULT_EVENT_LOG_LIMIT = 100


class EventCorrelator:
    """
    Maintains the event log and correlates events with badges.

    Usage:
        correlator = EventCorrelator(store)
        event, badge = correlator.record_event({"id": "AA:01", "detect": "enter", "hook": "lobby"})
        if badge is None:
            ...  # unknown badge, event still logged
    """

    def __init__(self, store: EntityStore, log_limit: int = DEFAULT_EVENT_LOG_LIMIT):
        if log_limit < 1:
            raise ValueError(f"log_limit must be >= 1, got {log_limit}")
        self.store = store
        self.log_limit = log_limit
        self._log: Deque[CrossingEvent] = deque(maxlen=log_limit)

    def record(self, event: CrossingEvent) -> Optional[Badge]:
        """
        Prepend a normalized event and fold it into its badge.

        Returns:
            Updated badge, or None if the badge id is not in the store
        """
        self._log.appendleft(event)
        return self.store.apply_event(event)

    def record_event(self, raw: Any) -> Tuple[CrossingEvent, Optional[Badge]]:
        """
        Normalize and record a raw crossing event.

        Raises:
            MessageRejected: If the payload cannot be normalized
        """
        event = normalize_event(raw)
        return event, self.record(event)

    @property
    def events(self) -> List[CrossingEvent]:
        """Event log, newest first."""
        return list(self._log)

    def __len__(self) -> int:
        return len(self._log)

    def __repr__(self) -> str:
        return f"EventCorrelator(events={len(self._log)}, limit={self.log_limit})"
