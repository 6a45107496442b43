"""
Test MQTT Pub/Sub (Without Real Broker)
========================================

Exercises the subscriber routing and the publishers' message formatting by
calling them directly, so no MQTT broker is needed.

Usage:
    pytest test_mqtt_pubsub.py
    python test_mqtt_pubsub.py
"""

import json

from badgemap_engine import MessageKind, TrackingEngine
from badgemap_mqtt import (
    SnapshotPublisher,
    TestPositionPublisher,
    TrackingSubscriber,
    ViewPublisher,
    create_logger,
)
from badgemap_mqtt.schemas import TestPositionCommand
from badgemap_zone.geometry import MapView

TOPICS = {
    "badgemap/test/badges": MessageKind.POSITION_UPDATE.value,
    "badgemap/test/geofences": MessageKind.ZONE_DEFINITION.value,
    "badgemap/test/events": MessageKind.CROSSING_EVENT.value,
    "badgemap/test/import": MessageKind.BULK_IMPORT.value,
}


def encode(data):
    return json.dumps(data).encode("utf-8")


def make_subscriber():
    logger = create_logger("test")
    engine = TrackingEngine(structured_logger=logger)
    subscriber = TrackingSubscriber(
        broker_host="localhost",
        topics=TOPICS,
        on_message=engine.handle,
        logger=logger,
    )
    return engine, subscriber


def test_subscriber_routes_topics_to_engine():
    """Payloads on each topic reach the matching engine handler."""
    print("\n" + "=" * 60)
    print("TEST: Subscriber Routing")
    print("=" * 60)

    engine, subscriber = make_subscriber()

    assert subscriber.handle_payload(
        "badgemap/test/badges", encode({"mac": "AA:01", "lat": 28.5, "lon": 77.2})
    )
    assert subscriber.handle_payload(
        "badgemap/test/events", encode({"id": "AA:01", "detect": "enter", "hook": "lobby"})
    )
    assert subscriber.handle_payload(
        "badgemap/test/geofences", encode({"name": "lobby", "polygon": None})
    )

    badge = engine.store.get_badge("AA:01")
    assert badge.status == {"lobby": "enter"}
    assert engine.store.get_geofence("lobby") is not None

    stats = subscriber.get_stats()
    assert stats["received"]["position_update"] == 1
    assert stats["received"]["crossing_event"] == 1
    assert stats["received"]["zone_definition"] == 1
    assert stats["connected"] is False
    print(f"✓ Subscriber stats: {stats['received']}")


def test_subscriber_bulk_import():
    engine, subscriber = make_subscriber()
    engine.handle_position_update({"mac": "OLD", "lat": 1, "lon": 2})

    subscriber.handle_payload(
        "badgemap/test/import",
        encode({"badges": [{"mac": "AA:01"}], "geofences": []})
    )

    assert [b.id for b in engine.store.badges()] == ["AA:01"]


def test_subscriber_drops_bad_payloads():
    engine, subscriber = make_subscriber()

    assert not subscriber.handle_payload("badgemap/test/badges", b"{not json")
    assert not subscriber.handle_payload("badgemap/test/badges", b"\xff\xfe")
    assert not subscriber.handle_payload("badgemap/other", encode({"mac": "AA:01"}))

    assert subscriber.get_stats()["dropped"] == 2
    assert engine.store.badges() == []


def test_subscriber_passes_rejections_to_engine():
    """Valid JSON with missing fields is rejected by the engine, not the transport."""
    engine, subscriber = make_subscriber()

    assert subscriber.handle_payload("badgemap/test/badges", encode({"mac": "AA:01"}))

    assert engine.store.badges() == []
    assert engine.get_stats()["rejected"] == 1


def test_subscriber_absorbs_handler_exceptions():
    """A raising callback is logged and counted; later messages still flow."""
    delivered = []

    def on_message(kind, data):
        if data.get("explode"):
            raise RuntimeError("handler failed")
        delivered.append(kind)

    subscriber = TrackingSubscriber(
        broker_host="localhost",
        topics=TOPICS,
        on_message=on_message,
        logger=create_logger("test"),
    )

    assert not subscriber.handle_payload("badgemap/test/badges", encode({"explode": True}))
    assert subscriber.handle_payload("badgemap/test/badges", encode({"mac": "AA:01"}))

    stats = subscriber.get_stats()
    assert stats["dropped"] == 1
    assert stats["received"]["position_update"] == 2
    assert delivered == ["position_update"]


def test_subscriber_survives_malformed_zone_vertices():
    engine, subscriber = make_subscriber()

    assert subscriber.handle_payload(
        "badgemap/test/geofences",
        encode({"name": "z", "polygon": {"type": "Polygon", "coordinates": [[[0, 0], [0]]]}})
    )

    assert engine.store.get_geofence("z") is not None
    assert subscriber.get_stats()["dropped"] == 0


def test_publishers_format_messages():
    print("\n" + "=" * 60)
    print("TEST: Publisher Formatting")
    print("=" * 60)

    logger = create_logger("test")

    view_pub = ViewPublisher(broker_host="localhost", topic="badgemap/test/view", logger=logger)
    assert view_pub.retain
    assert view_pub.format_message(MapView(28.5, 77.2, 19)) == {
        "center": [28.5, 77.2],
        "zoom": 19,
    }

    test_pub = TestPositionPublisher(
        broker_host="localhost", topic="badgemap/test/test/badges", logger=logger
    )
    command = TestPositionCommand(mac="TEST:01", latitude=28.5, longitude=77.2, radius=None)
    assert test_pub.format_message(command) == {
        "mac": "TEST:01",
        "latitude": 28.5,
        "longitude": 77.2,
        "radius": None,
    }
    print("✓ View and test position messages formatted")


def test_snapshot_publisher_sequence():
    logger = create_logger("test")
    engine = TrackingEngine(structured_logger=logger)
    engine.handle_position_update({"mac": "AA:01", "lat": 28.5, "lon": 77.2})
    publisher = SnapshotPublisher(
        broker_host="localhost", topic="badgemap/test/snapshot", logger=logger
    )

    first = publisher.format_message(engine.snapshot())
    second = publisher.format_message(engine.snapshot())

    assert first["sequence"] == 1
    assert second["sequence"] == 2
    assert first["stats"]["badge_count"] == 1
    json.dumps(first)


def test_publish_without_connection_fails_cleanly():
    logger = create_logger("test")
    publisher = ViewPublisher(broker_host="localhost", topic="badgemap/test/view", logger=logger)

    assert not publisher.is_connected()
    assert publisher.publish_view(MapView(1.0, 2.0, 18)) is False
    assert publisher.get_stats()["failed_count"] == 1
    assert publisher.get_stats()["message_count"] == 0


def test_engine_callbacks_feed_publishers():
    """Engine outputs line up with publisher inputs."""
    logger = create_logger("test")
    view_pub = ViewPublisher(broker_host="localhost", topic="badgemap/test/view", logger=logger)
    formatted = []
    engine = TrackingEngine(
        structured_logger=logger,
        on_recenter=lambda view: formatted.append(view_pub.format_message(view)),
    )

    engine.handle_zone_definition({
        "name": "room",
        "polygon": {
            "type": "Polygon",
            "coordinates": [[[77.2, 28.5], [77.2004, 28.5], [77.2004, 28.5002], [77.2, 28.5]]],
        },
    })

    assert len(formatted) == 1
    assert formatted[0]["zoom"] == 20


def main():
    """Run all tests."""
    print("\nbadgemap_mqtt - Pub/Sub Tests")
    print("=" * 60)
    print("Testing without real MQTT broker (simulated)")
    print("=" * 60)

    test_subscriber_routes_topics_to_engine()
    test_subscriber_bulk_import()
    test_subscriber_drops_bad_payloads()
    test_subscriber_passes_rejections_to_engine()
    test_subscriber_absorbs_handler_exceptions()
    test_subscriber_survives_malformed_zone_vertices()
    test_publishers_format_messages()
    test_snapshot_publisher_sequence()
    test_publish_without_connection_fails_cleanly()
    test_engine_callbacks_feed_publishers()

    print("\n" + "=" * 60)
    print("✅ ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()
