"""
Tracking Engine
===============

Orchestrates normalization, the entity store, the event correlator and the
derived views, and exposes them to the transport and rendering collaborators.

Architecture:

    MQTT subscriber ──► TrackingEngine.handle(kind, payload)
                            │
                            ├── normalizer (typed records / rejections)
                            ├── EntityStore (badges, geofences)
                            ├── EventCorrelator (event log, status fold)
                            └── NotificationCenter (enter/exit history)
                            │
    renderer ◄── snapshot() / on_recenter(MapView)
    backend  ◄── on_test_position(TestPositionCommand)

Threading Model:
- Every mutation and every snapshot runs under one re-entrant lock, so a
  reader never observes a partially merged record or a half-swapped bulk
  import.
- Outbound callbacks are invoked after the lock is released.
- Bad input never raises: rejections are logged and the message dropped.
"""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from badgemap_mqtt.logging import LogEvent, StructuredLogger, create_logger
from badgemap_mqtt.normalizer import (
    MessageRejected,
    normalize_bulk,
    normalize_position,
    normalize_zone,
)
from badgemap_mqtt.schemas import (
    Badge,
    CrossingEvent,
    Geofence,
    GeofenceStyle,
    TestPositionCommand,
    Timestamp,
)
from badgemap_zone.analytics import (
    TrackingStats,
    assign_colors,
    compute_statistics,
    geofence_fill_colors,
)
from badgemap_zone.geometry import MapView, as_polygon, bounds_of

from badgemap_engine.config import EngineConfig
from badgemap_engine.correlator import EventCorrelator
from badgemap_engine.notifications import Notification, NotificationCenter
from badgemap_engine.store import EntityStore

# Zoom floor when the first geofence frames the map
FIRST_GEOFENCE_MIN_ZOOM = 19


class MessageKind(str, Enum):
    """Inbound message kinds."""
    POSITION_UPDATE = "position_update"
    ZONE_DEFINITION = "zone_definition"
    CROSSING_EVENT = "crossing_event"
    BULK_IMPORT = "bulk_import"


@dataclass(frozen=True)
class RenderSnapshot:
    """
    Consistent read-only view for the rendering collaborator.

    Attributes:
        badges: Badge records in insertion order
        geofences: Geofence records in insertion order
        events: Event log, newest first
        badge_colors: badge id -> palette color
        geofence_fills: geofence name -> fill color
        stats: Aggregate statistics
        notifications: Enter/exit notifications, newest first
        view: Last recenter signal, if any
    """
    badges: Tuple[Badge, ...]
    geofences: Tuple[Geofence, ...]
    events: Tuple[CrossingEvent, ...]
    badge_colors: Dict[str, str]
    geofence_fills: Dict[str, str]
    stats: TrackingStats
    notifications: Tuple[Notification, ...] = ()
    view: Optional[MapView] = None
    taken_at: str = field(default_factory=lambda: Timestamp.now().value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'taken_at': self.taken_at,
            'badges': [badge.to_dict() for badge in self.badges],
            'geofences': [
                dict(geofence.to_dict(), style=geofence.style.resolved().to_dict())
                for geofence in self.geofences
            ],
            'events': [event.to_dict() for event in self.events],
            'badge_colors': dict(self.badge_colors),
            'geofence_fills': dict(self.geofence_fills),
            'stats': self.stats.to_dict(),
            'notifications': [n.to_dict() for n in self.notifications],
            'view': self.view.to_dict() if self.view else None,
        }


class TrackingEngine:
    """
    Geospatial state and event-correlation engine.

    Usage:
        engine = TrackingEngine(
            config=EngineConfig(),
            on_recenter=view_publisher.publish_view,
            on_test_position=test_publisher.publish_command,
        )
        engine.handle(MessageKind.POSITION_UPDATE, payload)
        snapshot = engine.snapshot()
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        structured_logger: Optional[StructuredLogger] = None,
        on_recenter: Optional[Callable[[MapView], None]] = None,
        on_test_position: Optional[Callable[[TestPositionCommand], None]] = None,
    ):
        """
        Args:
            config: Engine configuration (defaults when omitted)
            structured_logger: Logger for observability signals
            on_recenter: Called with a MapView after bulk import or the first
                         geofence insertion
            on_test_position: Called when a manually positioned badge changes
        """
        self.config = config or EngineConfig()
        self.log = structured_logger or create_logger("engine")
        self.on_recenter = on_recenter
        self.on_test_position = on_test_position

        self.store = EntityStore(history_limit=self.config.history_limit)
        self.correlator = EventCorrelator(self.store, log_limit=self.config.event_log_limit)
        self.notifications = NotificationCenter(limit=self.config.notification_limit)

        self._lock = threading.RLock()
        self._view: Optional[MapView] = None
        self._counters: Dict[str, int] = {kind.value: 0 for kind in MessageKind}
        self._counters['rejected'] = 0

        self._handlers: Dict[MessageKind, Callable[[Any], Any]] = {
            MessageKind.POSITION_UPDATE: self.handle_position_update,
            MessageKind.ZONE_DEFINITION: self.handle_zone_definition,
            MessageKind.CROSSING_EVENT: self.handle_crossing_event,
            MessageKind.BULK_IMPORT: self.handle_bulk_import,
        }

    # ─────────────────────────────────────────────────────────────────────
    # Inbound messages
    # ─────────────────────────────────────────────────────────────────────

    def handle(self, kind: MessageKind, payload: Any) -> Any:
        """
        Dispatch one inbound message by kind.

        Raises:
            ValueError: If kind is not a MessageKind value
        """
        return self._handlers[MessageKind(kind)](payload)

    def handle_position_update(self, payload: Any) -> Optional[Badge]:
        """
        Merge a position update into the store.

        Returns:
            The merged badge, or None if the message was rejected
        """
        try:
            update = normalize_position(payload)
        except MessageRejected as e:
            self._reject(MessageKind.POSITION_UPDATE, e,
                         {'badge_id': getattr(e, 'badge_id', None)})
            return None

        with self._lock:
            badge, created = self.store.upsert_badge(update)
            self._counters[MessageKind.POSITION_UPDATE.value] += 1

        self.log.debug(
            event=LogEvent.BADGE_CREATED if created else LogEvent.BADGE_UPDATED,
            message="Badge created" if created else "Badge position updated",
            metadata={
                'badge_id': badge.id,
                'latitude': badge.latitude,
                'longitude': badge.longitude,
                'radius': badge.radius,
                'history_length': len(badge.history),
            }
        )
        return badge

    def handle_zone_definition(self, payload: Any) -> Optional[Geofence]:
        """
        Store a zone definition (replace-on-write).

        Returns:
            The stored geofence, or None if the message was rejected
        """
        try:
            geofence = normalize_zone(payload)
        except MessageRejected as e:
            self._reject(MessageKind.ZONE_DEFINITION, e)
            return None

        with self._lock:
            view = self._store_geofence(geofence)
            self._counters[MessageKind.ZONE_DEFINITION.value] += 1

        self._emit_recenter(view)
        return geofence

    def handle_crossing_event(self, payload: Any) -> Optional[CrossingEvent]:
        """
        Record a crossing event and fold it into its badge's status.

        Returns:
            The recorded event, or None if the message was rejected
        """
        try:
            with self._lock:
                event, badge = self.correlator.record_event(payload)
                self.notifications.notify(event)
                self._counters[MessageKind.CROSSING_EVENT.value] += 1
        except MessageRejected as e:
            self._reject(MessageKind.CROSSING_EVENT, e)
            return None

        metadata = {'badge_id': event.id, 'hook': event.hook, 'detect': event.detect}
        if badge is None:
            self.log.warning(
                event=LogEvent.UNKNOWN_ENTITY,
                message="Event references unknown badge; logged without status change",
                metadata=metadata
            )
        else:
            self.log.debug(
                event=LogEvent.EVENT_RECORDED,
                message="Event recorded",
                metadata=metadata
            )
        return event

    def handle_bulk_import(self, payload: Any) -> bool:
        """
        Replace all badges and geofences (hard reset) and recenter.

        Returns:
            True if the import was applied
        """
        def on_reject(kind: str, error: MessageRejected) -> None:
            self._reject(MessageKind.BULK_IMPORT, error, {'record_kind': kind})

        try:
            badges, geofences = normalize_bulk(payload, on_reject=on_reject)
        except MessageRejected as e:
            self._reject(MessageKind.BULK_IMPORT, e)
            return False

        with self._lock:
            self.store.replace_all(badges, geofences)
            self._counters[MessageKind.BULK_IMPORT.value] += 1
            view = bounds_of(geofences)
            if view is not None:
                self._view = view

        self.log.info(
            event=LogEvent.STORE_REPLACED,
            message="Store replaced from bulk import",
            metadata={'badge_count': len(badges), 'geofence_count': len(geofences)}
        )
        self._emit_recenter(view)
        return True

    # ─────────────────────────────────────────────────────────────────────
    # Manual / test operations
    # ─────────────────────────────────────────────────────────────────────

    def add_test_badge(
        self,
        mac: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius: Optional[float] = None
    ) -> Badge:
        """
        Create (or reset) a manually positioned badge.

        The badge starts with empty history and status; coordinates may be
        None.
        """
        badge = Badge(
            id=mac,
            latitude=latitude,
            longitude=longitude,
            radius=radius or None,
            timestamp=Timestamp.now().value,
        )
        with self._lock:
            self.store.put_badge(badge)

        self.log.info(
            event=LogEvent.BADGE_CREATED,
            message="Test badge created",
            metadata={'badge_id': mac, 'latitude': latitude, 'longitude': longitude}
        )
        return badge

    def move_badge(self, mac: str, latitude: float, longitude: float) -> Optional[Badge]:
        """Place a badge at a clicked position and emit a test command."""
        return self.update_badge_position(mac, latitude=latitude, longitude=longitude)

    def update_badge_radius(self, mac: str, radius: Optional[float]) -> Optional[Badge]:
        """
        Change a badge's radius and emit a test command.

        Returns:
            Updated badge, or None if unknown
        """
        with self._lock:
            badge = self.store.get_badge(mac)
            if badge is None:
                return None
            badge = replace(badge, radius=radius)
            self.store.put_badge(badge)

        self._emit_test_position(badge)
        return badge

    def update_badge_position(
        self,
        mac: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius: Optional[float] = None
    ) -> Optional[Badge]:
        """
        Partially update a badge; None keeps the current value.

        History is left untouched. Emits a test command.

        Returns:
            Updated badge, or None if unknown
        """
        with self._lock:
            badge = self.store.get_badge(mac)
            if badge is None:
                return None
            badge = replace(
                badge,
                latitude=latitude if latitude is not None else badge.latitude,
                longitude=longitude if longitude is not None else badge.longitude,
                radius=radius if radius is not None else badge.radius,
                timestamp=Timestamp.now().value,
            )
            self.store.put_badge(badge)

        self._emit_test_position(badge)
        return badge

    def add_geofence(
        self,
        name: str,
        polygon: Optional[Dict[str, Any]],
        mac: Optional[str] = None,
        stroke_color: Optional[str] = None,
        stroke_width: Optional[float] = None,
        stroke_opacity: Optional[float] = None
    ) -> Geofence:
        """Store a manually drawn geofence (recenters on the first one)."""
        geofence = Geofence(
            name=name,
            polygon=as_polygon(polygon),
            mac=mac or None,
            style=GeofenceStyle(
                stroke_color=stroke_color or None,
                stroke_width=stroke_width or None,
                stroke_opacity=stroke_opacity,
            ),
        )
        with self._lock:
            view = self._store_geofence(geofence)

        self._emit_recenter(view)
        return geofence

    def delete_badge(self, mac: str) -> bool:
        with self._lock:
            deleted = self.store.delete_badge(mac)
        if deleted:
            self.log.info(
                event=LogEvent.BADGE_DELETED,
                message="Badge deleted",
                metadata={'badge_id': mac}
            )
        return deleted

    def delete_geofence(self, name: str) -> bool:
        with self._lock:
            deleted = self.store.delete_geofence(name)
        if deleted:
            self.log.info(
                event=LogEvent.GEOFENCE_DELETED,
                message="Geofence deleted",
                metadata={'name': name}
            )
        return deleted

    def fit_to_geofences(self) -> Optional[MapView]:
        """Recompute bounds over all geofences and emit a recenter signal."""
        with self._lock:
            view = bounds_of(self.store.geofences())
            if view is not None:
                self._view = view
        self._emit_recenter(view)
        return view

    # ─────────────────────────────────────────────────────────────────────
    # Derived views
    # ─────────────────────────────────────────────────────────────────────

    def statistics(self, now: Optional[datetime] = None) -> TrackingStats:
        with self._lock:
            return compute_statistics(
                self.store.badges(),
                self.store.geofences(),
                self.correlator.events,
                now=now,
                window_minutes=self.config.rate_window_minutes
            )

    def badge_colors(self) -> Dict[str, str]:
        with self._lock:
            return assign_colors(badge.id for badge in self.store.badges())

    def snapshot(self, now: Optional[datetime] = None) -> RenderSnapshot:
        """Consistent view of the whole state for the renderer."""
        with self._lock:
            badges = tuple(self.store.badges())
            geofences = tuple(self.store.geofences())
            events = tuple(self.correlator.events)
            return RenderSnapshot(
                badges=badges,
                geofences=geofences,
                events=events,
                badge_colors=assign_colors(badge.id for badge in badges),
                geofence_fills=geofence_fill_colors(g.name for g in geofences),
                stats=compute_statistics(
                    badges, geofences, events,
                    now=now,
                    window_minutes=self.config.rate_window_minutes
                ),
                notifications=tuple(self.notifications.filter()),
                view=self._view,
            )

    def get_stats(self) -> Dict[str, int]:
        """Message counters (applied per kind, plus rejections)."""
        with self._lock:
            return dict(self._counters)

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _store_geofence(self, geofence: Geofence) -> Optional[MapView]:
        """
        Store a geofence; caller holds the lock.

        Returns:
            Recenter view if this was the first geofence, else None
        """
        was_empty = not self.store.geofences()
        self.store.upsert_geofence(geofence)

        contributes = bounds_of([geofence]) is not None
        if not contributes:
            self.log.warning(
                event=LogEvent.DEGENERATE_GEOMETRY,
                message="Geofence stored without usable polygon",
                metadata={'name': geofence.name}
            )
        self.log.debug(
            event=LogEvent.GEOFENCE_UPDATED,
            message="Geofence stored",
            metadata={'name': geofence.name, 'mac': geofence.mac}
        )

        if not (was_empty and contributes):
            return None
        view = bounds_of(self.store.geofences())
        if view is not None:
            view = view.with_min_zoom(FIRST_GEOFENCE_MIN_ZOOM)
            self._view = view
        return view

    def _reject(
        self,
        kind: MessageKind,
        error: MessageRejected,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        with self._lock:
            self._counters['rejected'] += 1
        self.log.warning(
            event=error.log_event,
            message=f"Dropped {kind.value} message",
            metadata=dict(metadata or {}, kind=kind.value),
            exc_info=error
        )

    def _emit_recenter(self, view: Optional[MapView]) -> None:
        if view is None:
            return
        self.log.info(
            event=LogEvent.VIEW_RECENTERED,
            message="Recenter signal emitted",
            metadata=view.to_dict()
        )
        if self.on_recenter:
            self.on_recenter(view)

    def _emit_test_position(self, badge: Badge) -> None:
        command = TestPositionCommand(
            mac=badge.id,
            latitude=badge.latitude,
            longitude=badge.longitude,
            radius=badge.radius,
        )
        self.log.info(
            event=LogEvent.TEST_POSITION_EMITTED,
            message="Test position command emitted",
            metadata=command.to_dict()
        )
        if self.on_test_position:
            self.on_test_position(command)
