"""
Crossing Event Schema
=====================

Bounded Context: Geofence Event Data Structures

A crossing event says that one badge changed its relation to one zone.

Message Flow:
    Backend → MQTT → Subscriber → Normalizer → CrossingEvent → EventCorrelator
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Detect(str, Enum):
    """Known badge/zone relations. Other values are carried as plain strings."""
    ENTER = "enter"
    EXIT = "exit"
    CROSS = "cross"
    INSIDE = "inside"
    OUTSIDE = "outside"


NOTIFYING_DETECTS = frozenset({Detect.ENTER.value, Detect.EXIT.value})


@dataclass(frozen=True)
class CrossingEvent:
    """
    Single geofence event (ephemeral log entry).

    Attributes:
        id: Badge identifier the event concerns (None if unresolvable)
        detect: Relation ("enter", "exit", "cross", "inside", "outside" or other)
        timestamp: ISO 8601 timestamp
        hook: Zone identifier, used as key into the badge status map
        extra: Unrecognized source fields, kept verbatim

    Example:
        >>> event = CrossingEvent(
        ...     id="AA:01",
        ...     detect="enter",
        ...     timestamp="2025-10-24T15:30:45+00:00",
        ...     hook="geofence_AA:01_lobby"
        ... )
    """
    id: Optional[str]
    detect: Optional[str]
    timestamp: str
    hook: Optional[str]
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict (extra fields first)."""
        result = dict(self.extra)
        result.update({
            'id': self.id,
            'detect': self.detect,
            'timestamp': self.timestamp,
            'hook': self.hook,
        })
        return result
