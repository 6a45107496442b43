"""
MQTT Publishers
==============

Bounded Context: Message Production

This module provides the publishers for the engine's outbound messages.

Design:
- BasePublisher: Abstract base with connection management
- TestPositionPublisher: Manual badge position commands
- ViewPublisher: Recenter signals (retained)
- SnapshotPublisher: Periodic render snapshots

Public API
----------
    BasePublisher: Abstract publisher (for custom publishers)
    TestPositionPublisher: Test position command publisher
    ViewPublisher: Map view publisher
    SnapshotPublisher: Render snapshot publisher

Example:
    >>> from badgemap_mqtt.publishers import ViewPublisher
    >>> from badgemap_mqtt.logging import create_logger
    >>>
    >>> publisher = ViewPublisher(
    ...     broker_host="localhost",
    ...     topic="badgemap/floor_3/view",
    ...     logger=create_logger("engine")
    ... )
    >>> publisher.connect()
    >>> publisher.publish_view(view)
"""

from .base import BasePublisher
from .commands import TestPositionPublisher
from .view import ViewPublisher
from .snapshot import SnapshotPublisher

__all__ = [
    'BasePublisher',
    'TestPositionPublisher',
    'ViewPublisher',
    'SnapshotPublisher',
]
