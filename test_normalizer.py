"""
Test Message Normalization
==========================

Alias resolution, payload decoding and typed rejections for the inbound
message kinds.

Usage:
    pytest test_normalizer.py
"""

import json

import pytest

from badgemap_mqtt.logging import LogEvent
from badgemap_mqtt.normalizer import (
    MalformedMessage,
    MissingCoordinates,
    MissingIdentifier,
    normalize_bulk,
    normalize_event,
    normalize_position,
    normalize_zone,
    seed_badge,
)
from badgemap_mqtt.schemas import Timestamp

FIXED_NOW = "2025-10-24T15:30:45+00:00"


def fixed_clock():
    return Timestamp(FIXED_NOW)


# ========== Position Updates ==========

def test_position_aliases():
    update = normalize_position(
        '{"mac": "AA:01", "lat": 28.5, "lon": 77.2, "radius": 12}',
        now=fixed_clock
    )

    assert update.id == "AA:01"
    assert update.latitude == 28.5
    assert update.longitude == 77.2
    assert update.radius == 12.0
    assert update.timestamp == FIXED_NOW


def test_position_mac_wins_over_id():
    assert normalize_position({"mac": "AA:01", "id": "BB:02", "lat": 1, "lon": 2}).id == "AA:01"
    assert normalize_position({"mac": None, "id": "BB:02", "lat": 1, "lon": 2}).id == "BB:02"


def test_position_bytes_payload():
    payload = json.dumps({"id": "AA:01", "latitude": 1.5, "longitude": 2.5}).encode("utf-8")

    update = normalize_position(payload)

    assert update.id == "AA:01"
    assert (update.latitude, update.longitude) == (1.5, 2.5)
    assert update.radius is None


def test_position_timestamp_aliases():
    update = normalize_position(
        {"mac": "AA:01", "lat": 1, "lon": 2, "sent_ts": "2025-01-01T00:00:00Z"},
        now=fixed_clock
    )
    assert update.timestamp == "2025-01-01T00:00:00Z"

    update = normalize_position(
        {"mac": "AA:01", "lat": 1, "lon": 2, "receive_ts": "2025-01-02T00:00:00Z"},
        now=fixed_clock
    )
    assert update.timestamp == "2025-01-02T00:00:00Z"


def test_position_epoch_timestamps():
    seconds = normalize_position({"mac": "AA:01", "lat": 1, "lon": 2, "timestamp": 1700000000})
    millis = normalize_position({"mac": "AA:01", "lat": 1, "lon": 2, "timestamp": 1700000000000})

    assert seconds.timestamp == "2023-11-14T22:13:20+00:00"
    assert millis.timestamp == seconds.timestamp


def test_position_unrepresentable_epoch_falls_back_to_now():
    for raw in ('1e300', 'NaN', 'Infinity', '-Infinity', str(10 ** 400)):
        update = normalize_position(
            '{"mac": "AA:01", "lat": 1, "lon": 2, "timestamp": %s}' % raw,
            now=fixed_clock
        )
        assert update.timestamp == FIXED_NOW


def test_event_unrepresentable_epoch_falls_back_to_now():
    event = normalize_event(
        '{"id": "AA:01", "detect": "enter", "hook": "lobby", "time": NaN}',
        now=fixed_clock
    )

    assert event.timestamp == FIXED_NOW


def test_position_keeps_unknown_fields():
    update = normalize_position({"mac": "AA:01", "lat": 1, "lon": 2, "battery": 80})

    assert update.extra == {"battery": 80}


def test_position_rejections():
    with pytest.raises(MissingIdentifier):
        normalize_position({"lat": 1, "lon": 2})

    with pytest.raises(MissingCoordinates) as excinfo:
        normalize_position({"mac": "AA:01", "lat": 1})
    assert excinfo.value.badge_id == "AA:01"
    assert excinfo.value.log_event == LogEvent.MISSING_COORDINATES

    with pytest.raises(MissingCoordinates):
        normalize_position({"mac": "AA:01", "lat": "north", "lon": 2})

    with pytest.raises(MalformedMessage):
        normalize_position("not json")

    with pytest.raises(MalformedMessage):
        normalize_position("[1, 2, 3]")


def test_rejections_are_value_errors():
    with pytest.raises(ValueError):
        normalize_position({})


# ========== Zone Definitions ==========

def test_zone_aliases_and_closing():
    geofence = normalize_zone({
        "hook": "geofence_AA:01_lobby",
        "object": {"type": "LineString", "coordinates": [[0, 0], [1, 0], [1, 1]]},
        "device_mac": "AA:01",
        "strokeColor": "#ff0000",
        "stroke_width": 3,
    })

    assert geofence.name == "geofence_AA:01_lobby"
    assert geofence.mac == "AA:01"
    assert geofence.polygon["type"] == "Polygon"
    ring = geofence.polygon["coordinates"][0]
    assert ring[0] == ring[-1]
    assert geofence.style.stroke_color == "#ff0000"
    assert geofence.style.stroke_width == 3.0
    assert geofence.style.stroke_opacity is None


def test_zone_name_wins_over_hook():
    geofence = normalize_zone({"name": "lobby", "hook": "other", "boundary": None})

    assert geofence.name == "lobby"
    assert geofence.polygon is None


def test_zone_style_defaults_at_render_time():
    style = normalize_zone({"name": "lobby"}).style.resolved()

    assert style.stroke_color == "#1e40af"
    assert style.stroke_width == 2
    assert style.stroke_opacity == 0.8


def test_zone_without_key():
    with pytest.raises(MissingIdentifier):
        normalize_zone({"polygon": None})


# ========== Crossing Events ==========

def test_event_aliases():
    event = normalize_event(
        {"mac": "AA:01", "type": "enter", "geofence_name": "lobby"},
        now=fixed_clock
    )

    assert event.id == "AA:01"
    assert event.detect == "enter"
    assert event.hook == "lobby"
    assert event.timestamp == FIXED_NOW


def test_event_time_wins_over_timestamp():
    event = normalize_event({
        "id": "AA:01",
        "detect": "exit",
        "hook": "lobby",
        "time": "2025-01-01T00:00:00Z",
        "timestamp": "2025-01-02T00:00:00Z",
    })

    assert event.timestamp == "2025-01-01T00:00:00Z"


def test_event_without_badge_id():
    with pytest.raises(MissingIdentifier):
        normalize_event({"detect": "enter", "hook": "lobby"})


def test_event_unknown_detect_is_kept():
    event = normalize_event({"id": "AA:01", "detect": "loiter", "hook": "lobby"})

    assert event.detect == "loiter"


# ========== Bulk Import ==========

def test_seed_badge_without_coordinates():
    badge = seed_badge({"mac": "AA:01", "history": [1, 2], "status": {"x": "enter"}})

    assert badge.id == "AA:01"
    assert not badge.has_position
    assert badge.history == ()
    assert badge.status == {}


def test_bulk_skips_bad_records():
    rejected = []
    badges, geofences = normalize_bulk(
        {
            "badges": [{"mac": "AA:01", "lat": 1, "lon": 2}, {"lat": 3}],
            "geofences": [{"name": "lobby", "polygon": None}, {"strokeColor": "#000"}],
        },
        on_reject=lambda kind, error: rejected.append(kind)
    )

    assert [b.id for b in badges] == ["AA:01"]
    assert [g.name for g in geofences] == ["lobby"]
    assert rejected == ["badge", "geofence"]


def test_bulk_requires_lists():
    with pytest.raises(MalformedMessage):
        normalize_bulk({"badges": {"mac": "AA:01"}})

    assert normalize_bulk("{}") == ([], [])
