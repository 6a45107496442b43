"""
Badgemap MQTT Schemas
=====================

Bounded Context: Data Structures

This module defines immutable, typed records for the tracking messages.

Design:
- Frozen dataclasses (immutability)
- Type hints for all fields
- to_dict() for JSON serialization
- Inbound parsing lives in badgemap_mqtt.normalizer (alias tables)

Public API
----------
Common Types:
    Timestamp: ISO 8601 timestamp wrapper

Badge Types:
    HistoryEntry, PositionUpdate, Badge, TestPositionCommand

Geofence Types:
    GeofenceStyle, Geofence

Event Types:
    Detect: Enum of known relations
    CrossingEvent: Single geofence event
"""

from .common import Timestamp
from .event import Detect, CrossingEvent, NOTIFYING_DETECTS
from .badge import HistoryEntry, PositionUpdate, Badge, TestPositionCommand
from .geofence import GeofenceStyle, Geofence

__all__ = [
    # Common types
    'Timestamp',
    # Event types
    'Detect',
    'CrossingEvent',
    'NOTIFYING_DETECTS',
    # Badge types
    'HistoryEntry',
    'PositionUpdate',
    'Badge',
    'TestPositionCommand',
    # Geofence types
    'GeofenceStyle',
    'Geofence',
]
