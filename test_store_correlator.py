"""
Test Entity Store and Event Correlator
======================================

Badge merge rule, bounded history, bounded event log and status folding.

Usage:
    pytest test_store_correlator.py
"""

from badgemap_engine import EntityStore, EventCorrelator, NotificationCenter, merge_badge
from badgemap_mqtt.schemas import CrossingEvent, Geofence, PositionUpdate


def position(badge_id="AA:01", lat=28.5, lon=77.2, radius=None, ts="2025-10-24T15:30:45+00:00"):
    return PositionUpdate(id=badge_id, latitude=lat, longitude=lon, timestamp=ts, radius=radius)


def event(badge_id="AA:01", detect="enter", hook="geofence_AA:01_lobby",
          ts="2025-10-24T15:30:45+00:00"):
    return CrossingEvent(id=badge_id, detect=detect, timestamp=ts, hook=hook)


# ========== Merge Rule ==========

def test_merge_creates_badge():
    badge = merge_badge(None, position(radius=10.0))

    assert badge.id == "AA:01"
    assert badge.radius == 10.0
    assert len(badge.history) == 1
    assert badge.history[0].lat == 28.5


def test_merge_keeps_radius_when_update_has_none():
    first = merge_badge(None, position(lat=1.0, lon=2.0, radius=10.0, ts="t1"))
    second = merge_badge(first, position(lat=1.1, lon=2.1, ts="t2"))

    assert second.radius == 10.0
    assert (second.latitude, second.longitude) == (1.1, 2.1)
    assert second.timestamp == "t2"
    assert [(h.lat, h.lon, h.time) for h in second.history] == [
        (1.0, 2.0, "t1"),
        (1.1, 2.1, "t2"),
    ]


def test_history_is_capped():
    store = EntityStore()
    for i in range(60):
        store.upsert_badge(position(lat=float(i), ts=f"t{i}"))

    badge = store.get_badge("AA:01")
    assert len(badge.history) == 50
    assert badge.history[0].time == "t10"
    assert badge.history[-1].time == "t59"


def test_merge_does_not_touch_status():
    store = EntityStore()
    store.upsert_badge(position())
    store.apply_event(event())

    badge, created = store.upsert_badge(position(lat=30.0))

    assert not created
    assert badge.status == {"geofence_AA:01_lobby": "enter"}
    assert badge.last_event is not None


# ========== Store ==========

def test_upsert_reports_creation():
    store = EntityStore()

    _, created = store.upsert_badge(position())
    assert created
    _, created = store.upsert_badge(position())
    assert not created


def test_geofence_replace_on_write():
    store = EntityStore()

    assert store.upsert_geofence(Geofence(name="lobby", mac="AA:01"))
    assert not store.upsert_geofence(Geofence(name="lobby", mac="BB:02"))
    assert store.get_geofence("lobby").mac == "BB:02"
    assert len(store.geofences()) == 1


def test_replace_all_is_a_hard_reset():
    store = EntityStore()
    store.upsert_badge(position(badge_id="OLD"))
    store.upsert_geofence(Geofence(name="old"))

    store.replace_all([merge_badge(None, position(badge_id="NEW"))], [Geofence(name="new")])

    assert [b.id for b in store.badges()] == ["NEW"]
    assert [g.name for g in store.geofences()] == ["new"]


def test_delete():
    store = EntityStore()
    store.upsert_badge(position())

    assert store.delete_badge("AA:01")
    assert not store.delete_badge("AA:01")
    assert not store.delete_geofence("missing")


# ========== Correlator ==========

def test_event_updates_status_and_last_event():
    store = EntityStore()
    store.upsert_badge(position())
    correlator = EventCorrelator(store)

    correlator.record(event(detect="enter"))
    badge = correlator.record(event(detect="exit"))

    assert badge.status == {"geofence_AA:01_lobby": "exit"}
    assert badge.last_event.detect == "exit"


def test_event_for_unknown_badge_is_logged_only():
    store = EntityStore()
    correlator = EventCorrelator(store)

    badge = correlator.record(event(badge_id="ZZ:99"))

    assert badge is None
    assert store.get_badge("ZZ:99") is None
    assert len(correlator) == 1


def test_event_log_is_bounded_newest_first():
    correlator = EventCorrelator(EntityStore())
    for i in range(105):
        correlator.record(event(ts=f"t{i}"))

    events = correlator.events
    assert len(events) == 100
    assert events[0].timestamp == "t104"
    assert events[-1].timestamp == "t5"


def test_record_event_normalizes():
    store = EntityStore()
    store.upsert_badge(position())
    correlator = EventCorrelator(store)

    recorded, badge = correlator.record_event('{"mac": "AA:01", "type": "cross", "hook": "door"}')

    assert recorded.detect == "cross"
    assert badge.status == {"door": "cross"}


# ========== Notifications ==========

def test_notifications_enter_exit_only():
    center = NotificationCenter()

    first = center.notify(event(detect="enter"))
    assert first.message == "Badge AA:01 entered lobby"
    assert center.notify(event(detect="inside")) is None
    center.notify(event(detect="exit", hook="geofence_AA:01_kitchen"))

    assert len(center) == 2
    assert center.filter()[0].message == "Badge AA:01 exited kitchen"
    assert center.counts() == {"total": 2, "enter": 1, "exit": 1}


def test_notifications_filter_and_search():
    center = NotificationCenter()
    center.notify(event(badge_id="AA:01", detect="enter"))
    center.notify(event(badge_id="BB:02", detect="exit", hook="geofence_BB:02_kitchen"))

    assert [n.badge_id for n in center.filter(kind="enter")] == ["AA:01"]
    assert [n.badge_id for n in center.filter(search="KITCHEN")] == ["BB:02"]
    assert center.filter(kind="exit", search="lobby") == []

    center.clear()
    assert len(center) == 0


def test_notifications_are_bounded():
    center = NotificationCenter(limit=3)
    for i in range(5):
        center.notify(event(ts=f"t{i}"))

    assert [n.timestamp for n in center.filter()] == ["t4", "t3", "t2"]
