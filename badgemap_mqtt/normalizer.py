"""
Message Normalizer
==================

Bounded Context: Inbound Message Canonicalization

Maps loosely-shaped inbound messages onto the canonical records:

    position_update  → PositionUpdate
    zone_definition  → Geofence
    crossing_event   → CrossingEvent
    bulk_import      → ([Badge], [Geofence])

Design:
- Explicit ordered alias tables: the first key whose value is not None wins
- Payloads may be JSON text, bytes or an already-decoded mapping
- Rejections are typed exceptions (MessageRejected subclasses ValueError),
  each carrying the LogEvent used to report it
- No state, no store access

The alias tables are part of the wire contract with existing backends;
changing them breaks compatibility.
"""

import json
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from badgemap_zone.geometry import as_polygon

from .logging import LogEvent
from .schemas import (
    Badge,
    CrossingEvent,
    Geofence,
    GeofenceStyle,
    PositionUpdate,
    Timestamp,
)

# ========== Alias Tables ==========
BADGE_ID_KEYS = ('mac', 'id')
LATITUDE_KEYS = ('latitude', 'lat')
LONGITUDE_KEYS = ('longitude', 'lon')
TIMESTAMP_KEYS = ('timestamp', 'sent_ts', 'receive_ts')
RADIUS_KEYS = ('radius',)

EVENT_BADGE_ID_KEYS = ('id', 'mac')
EVENT_TYPE_KEYS = ('detect', 'type')
EVENT_ZONE_KEYS = ('hook', 'geofence_name')
EVENT_TIMESTAMP_KEYS = ('time', 'timestamp')

ZONE_KEY_KEYS = ('name', 'hook', 'id')
ZONE_POLYGON_KEYS = ('polygon', 'object', 'boundary')
ZONE_OWNER_KEYS = ('mac', 'device_mac')
STROKE_COLOR_KEYS = ('strokeColor', 'stroke_color')
STROKE_WIDTH_KEYS = ('strokeWidth', 'stroke_width')
STROKE_OPACITY_KEYS = ('strokeOpacity', 'stroke_opacity')


# ========== Rejections ==========
class MessageRejected(ValueError):
    """Base class for inbound messages that cannot be applied."""
    log_event = LogEvent.MALFORMED_MESSAGE


class MalformedMessage(MessageRejected):
    """Payload could not be parsed into a mapping."""
    log_event = LogEvent.MALFORMED_MESSAGE


class MissingIdentifier(MessageRejected):
    """No alias for the record key carried a value."""
    log_event = LogEvent.MISSING_IDENTIFIER


class MissingCoordinates(MessageRejected):
    """Position update without a usable latitude/longitude pair."""
    log_event = LogEvent.MISSING_COORDINATES

    def __init__(self, message: str, badge_id: Optional[str] = None):
        super().__init__(message)
        self.badge_id = badge_id


# ========== Helpers ==========
def parse_payload(payload: Any) -> Dict[str, Any]:
    """
    Decode a payload into a dict.

    Raises:
        MalformedMessage: If the payload is not JSON text/bytes or a mapping,
                          or does not decode to an object
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedMessage(f"Payload is not UTF-8: {e}") from e

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedMessage(f"Payload is not valid JSON: {e}") from e

    if not isinstance(payload, Mapping):
        raise MalformedMessage(
            f"Payload must be a JSON object, got {type(payload).__name__}"
        )
    return dict(payload)


def resolve(data: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the value of the first key in `keys` that is present and not None."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _extra(data: Mapping[str, Any], *key_groups: Sequence[str]) -> Dict[str, Any]:
    """Fields not consumed by any alias group."""
    consumed = {key for group in key_groups for key in group}
    return {key: value for key, value in data.items() if key not in consumed}


def _as_float(value: Any) -> Optional[float]:
    """Coerce a numeric field, None when absent or not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_key(value: Any) -> Optional[str]:
    """Coerce an identifier to str, None when absent or empty."""
    if value is None:
        return None
    key = str(value)
    return key or None


def _timestamp(data: Mapping[str, Any], keys: Sequence[str], now: Callable[[], Timestamp]) -> str:
    stamp = Timestamp.coerce(resolve(data, keys))
    return (stamp or now()).value


# ========== Position Updates ==========
def normalize_position(
    payload: Any,
    now: Callable[[], Timestamp] = Timestamp.now
) -> PositionUpdate:
    """
    Normalize a position_update message.

    Args:
        payload: Raw message (JSON text, bytes or mapping)
        now: Clock used when no timestamp alias is present

    Returns:
        PositionUpdate

    Raises:
        MalformedMessage: Unparseable payload
        MissingIdentifier: Neither 'mac' nor 'id' present
        MissingCoordinates: Latitude or longitude missing/non-numeric

    Example:
        >>> update = normalize_position('{"mac": "AA:01", "lat": 1.0, "lon": 2.0}')
        >>> update.latitude, update.longitude
        (1.0, 2.0)
    """
    data = parse_payload(payload)

    badge_id = _as_key(resolve(data, BADGE_ID_KEYS))
    if badge_id is None:
        raise MissingIdentifier("Position update missing badge id (mac/id)")

    latitude = _as_float(resolve(data, LATITUDE_KEYS))
    longitude = _as_float(resolve(data, LONGITUDE_KEYS))
    if latitude is None or longitude is None:
        raise MissingCoordinates(
            f"Position update for {badge_id} missing coordinates",
            badge_id=badge_id
        )

    return PositionUpdate(
        id=badge_id,
        latitude=latitude,
        longitude=longitude,
        timestamp=_timestamp(data, TIMESTAMP_KEYS, now),
        radius=_as_float(resolve(data, RADIUS_KEYS)),
        extra=_extra(data, BADGE_ID_KEYS, LATITUDE_KEYS, LONGITUDE_KEYS,
                     TIMESTAMP_KEYS, RADIUS_KEYS)
    )


# ========== Zone Definitions ==========
def normalize_zone(payload: Any) -> Geofence:
    """
    Normalize a zone_definition message.

    LineString/MultiLineString boundaries are converted to a Polygon and
    every ring is closed before the record is built.

    Raises:
        MalformedMessage: Unparseable payload
        MissingIdentifier: None of name/hook/id present
    """
    data = parse_payload(payload)

    name = _as_key(resolve(data, ZONE_KEY_KEYS))
    if name is None:
        raise MissingIdentifier("Zone definition missing key (name/hook/id)")

    return Geofence(
        name=name,
        polygon=as_polygon(resolve(data, ZONE_POLYGON_KEYS)),
        mac=_as_key(resolve(data, ZONE_OWNER_KEYS)),
        style=GeofenceStyle(
            stroke_color=resolve(data, STROKE_COLOR_KEYS),
            stroke_width=_as_float(resolve(data, STROKE_WIDTH_KEYS)),
            stroke_opacity=_as_float(resolve(data, STROKE_OPACITY_KEYS)),
        ),
        extra=_extra(data, ZONE_KEY_KEYS, ZONE_POLYGON_KEYS, ZONE_OWNER_KEYS,
                     STROKE_COLOR_KEYS, STROKE_WIDTH_KEYS, STROKE_OPACITY_KEYS)
    )


# ========== Crossing Events ==========
def normalize_event(
    payload: Any,
    now: Callable[[], Timestamp] = Timestamp.now
) -> CrossingEvent:
    """
    Normalize a crossing_event message.

    Raises:
        MalformedMessage: Unparseable payload
        MissingIdentifier: Neither 'id' nor 'mac' present
    """
    data = parse_payload(payload)

    badge_id = _as_key(resolve(data, EVENT_BADGE_ID_KEYS))
    if badge_id is None:
        raise MissingIdentifier("Crossing event missing badge id (id/mac)")

    return CrossingEvent(
        id=badge_id,
        detect=_as_key(resolve(data, EVENT_TYPE_KEYS)),
        timestamp=_timestamp(data, EVENT_TIMESTAMP_KEYS, now),
        hook=_as_key(resolve(data, EVENT_ZONE_KEYS)),
        extra=_extra(data, EVENT_BADGE_ID_KEYS, EVENT_TYPE_KEYS,
                     EVENT_ZONE_KEYS, EVENT_TIMESTAMP_KEYS)
    )


# ========== Bulk Import ==========
def seed_badge(
    record: Any,
    now: Callable[[], Timestamp] = Timestamp.now
) -> Badge:
    """
    Build a fresh badge from a raw import record.

    Coordinates may be missing (test fixtures); history and status start
    empty.

    Raises:
        MalformedMessage: Record is not a mapping
        MissingIdentifier: Neither 'mac' nor 'id' present
    """
    data = parse_payload(record)

    badge_id = _as_key(resolve(data, BADGE_ID_KEYS))
    if badge_id is None:
        raise MissingIdentifier("Imported badge missing id (mac/id)")

    return Badge(
        id=badge_id,
        latitude=_as_float(resolve(data, LATITUDE_KEYS)),
        longitude=_as_float(resolve(data, LONGITUDE_KEYS)),
        radius=_as_float(resolve(data, RADIUS_KEYS)),
        timestamp=_timestamp(data, TIMESTAMP_KEYS, now),
        extra=_extra(data, BADGE_ID_KEYS, LATITUDE_KEYS, LONGITUDE_KEYS,
                     TIMESTAMP_KEYS, RADIUS_KEYS, ('history', 'status', 'lastEvent'))
    )


def normalize_bulk(
    payload: Any,
    on_reject: Optional[Callable[[str, MessageRejected], None]] = None
) -> Tuple[List[Badge], List[Geofence]]:
    """
    Normalize a bulk_import message {"badges": [...], "geofences": [...]}.

    Individual records that fail are skipped and reported through
    on_reject(kind, error); the rest of the import proceeds.

    Raises:
        MalformedMessage: Unparseable payload or non-list collections
    """
    data = parse_payload(payload)

    raw_badges = data.get('badges') or []
    raw_geofences = data.get('geofences') or []
    if not isinstance(raw_badges, list) or not isinstance(raw_geofences, list):
        raise MalformedMessage("Bulk import 'badges' and 'geofences' must be lists")

    badges: List[Badge] = []
    for record in raw_badges:
        try:
            badges.append(seed_badge(record))
        except MessageRejected as e:
            if on_reject:
                on_reject('badge', e)

    geofences: List[Geofence] = []
    for record in raw_geofences:
        try:
            geofences.append(normalize_zone(record))
        except MessageRejected as e:
            if on_reject:
                on_reject('geofence', e)

    return badges, geofences
