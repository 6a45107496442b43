"""
Badgemap Tracking Engine
========================

Bounded Context: Geospatial State and Event Correlation

Holds the live picture of badges and geofences, folds crossing events into
per-badge status, and derives the views the map renders (colors, statistics,
notifications, recenter signals).

Public API
----------
    TrackingEngine: Orchestrator (handle / snapshot / manual operations)
    MessageKind: Inbound message kinds
    RenderSnapshot: Consistent read-only state view
    EntityStore, merge_badge: Badge and geofence collections
    EventCorrelator: Bounded event log + status fold
    NotificationCenter, Notification: Enter/exit history
    EngineConfig, MQTTConfig: YAML-backed configuration
"""

from badgemap_engine.config import EngineConfig, MQTTConfig
from badgemap_engine.store import EntityStore, merge_badge
from badgemap_engine.correlator import EventCorrelator
from badgemap_engine.notifications import Notification, NotificationCenter
from badgemap_engine.engine import MessageKind, RenderSnapshot, TrackingEngine

__version__ = "1.0.0"

__all__ = [
    'TrackingEngine',
    'MessageKind',
    'RenderSnapshot',
    'EntityStore',
    'merge_badge',
    'EventCorrelator',
    'Notification',
    'NotificationCenter',
    'EngineConfig',
    'MQTTConfig',
]
