"""
Log Event Names
===============

Every structured log line carries one of these values in its "event" field.
Rejection reasons raised by the normalizer map one-to-one onto the error.*
members (see MessageRejected.log_event).

Event Naming Convention:
    <component>.<action>

    component: mqtt, badge, geofence, event, store, view, error

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.badge_id
    | filter event = "error.missing_coordinates"
    | stats count() by bin(5m)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - badge.* / geofence.* / event.*: Entity mutations
    - store.* / view.*: Bulk operations and outbound signals
    - error.*: Rejected input and failures
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    MESSAGE_RECEIVED = "mqtt.message.received"
    """Inbound message received by subscriber."""

    # ========== Entity Events ==========
    BADGE_CREATED = "badge.created"
    """Badge first seen (stream update or manual creation)."""

    BADGE_UPDATED = "badge.updated"
    """Badge position merged into the store."""

    BADGE_DELETED = "badge.deleted"
    """Badge removed from the store."""

    TEST_POSITION_EMITTED = "badge.test_position"
    """Manual badge change emitted as a test-position command."""

    GEOFENCE_UPDATED = "geofence.updated"
    """Geofence stored (replace-on-write)."""

    GEOFENCE_DELETED = "geofence.deleted"
    """Geofence removed from the store."""

    EVENT_RECORDED = "event.recorded"
    """Crossing event prepended to the log."""

    STORE_REPLACED = "store.replaced"
    """Bulk import replaced both collections."""

    VIEW_RECENTERED = "view.recentered"
    """Recenter signal emitted for the renderer."""

    # ========== Error Events ==========
    MALFORMED_MESSAGE = "error.malformed_message"
    """Payload could not be parsed."""

    MISSING_IDENTIFIER = "error.missing_identifier"
    """Message had no resolvable key."""

    MISSING_COORDINATES = "error.missing_coordinates"
    """Position update lacked latitude or longitude."""

    UNKNOWN_ENTITY = "error.unknown_entity"
    """Event referenced a badge not in the store."""

    DEGENERATE_GEOMETRY = "error.degenerate_geometry"
    """Polygon missing or malformed; contributes nothing to bounds."""

    MESSAGE_HANDLER_ERROR = "error.message_handler"
    """Unexpected exception while handling a decoded message."""

    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""

