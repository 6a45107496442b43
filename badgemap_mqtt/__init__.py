"""
Badgemap MQTT Communication Package
===================================

Bounded Context: Communication Protocol for Badge Tracking

This package provides the message layer of the badge tracking engine:
inbound normalization of loosely-typed payloads, MQTT transport in both
directions and structured JSON logging.

Architecture:
- schemas/: Immutable records (Badge, Geofence, CrossingEvent, ...)
- normalizer: Alias resolution and rejection of unusable payloads
- connection: paho client lifecycle shared by subscriber and publishers
- subscriber: Inbound topics → message kinds
- publishers/: Outbound messages (test positions, view, snapshots)
- logging/: Structured JSON logging for observability

Design Philosophy:
- Cohesion > Location: Each module has one reason to change
- Immutability: Frozen dataclasses for records
- Tolerant input, strict output: aliases in, canonical dicts out
- Observability: Structured logs (JSON) for production queries

Public API
----------
Schemas:
    Timestamp, Detect, CrossingEvent
    HistoryEntry, PositionUpdate, Badge, TestPositionCommand
    GeofenceStyle, Geofence

Normalization:
    MessageRejected, MalformedMessage, MissingIdentifier, MissingCoordinates

Transport:
    MQTTConnection, TrackingSubscriber
    BasePublisher, TestPositionPublisher, ViewPublisher, SnapshotPublisher

Logging:
    LogEvent, StructuredLogger, create_logger

Example:
    >>> from badgemap_mqtt import TrackingSubscriber, ViewPublisher, create_logger
    >>>
    >>> logger = create_logger("engine")
    >>> view_pub = ViewPublisher(
    ...     broker_host="localhost",
    ...     topic="badgemap/floor_3/view",
    ...     logger=logger
    ... )
    >>> view_pub.connect()
"""

# Version
__version__ = "1.0.0"

# Schemas
from .schemas import (
    Timestamp,
    Detect,
    CrossingEvent,
    NOTIFYING_DETECTS,
    HistoryEntry,
    PositionUpdate,
    Badge,
    TestPositionCommand,
    GeofenceStyle,
    Geofence,
)

# Normalization
from .normalizer import (
    MessageRejected,
    MalformedMessage,
    MissingIdentifier,
    MissingCoordinates,
)

# Publishers
from .publishers import (
    BasePublisher,
    TestPositionPublisher,
    ViewPublisher,
    SnapshotPublisher,
)

# Transport
from .connection import MQTTConnection
from .subscriber import TrackingSubscriber

# Logging
from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    # Version
    '__version__',
    # Schemas
    'Timestamp',
    'Detect',
    'CrossingEvent',
    'NOTIFYING_DETECTS',
    'HistoryEntry',
    'PositionUpdate',
    'Badge',
    'TestPositionCommand',
    'GeofenceStyle',
    'Geofence',
    # Normalization
    'MessageRejected',
    'MalformedMessage',
    'MissingIdentifier',
    'MissingCoordinates',
    # Publishers
    'BasePublisher',
    'TestPositionPublisher',
    'ViewPublisher',
    'SnapshotPublisher',
    # Transport
    'MQTTConnection',
    'TrackingSubscriber',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
