"""
Test Geometry Helpers
=====================

Circle approximation, point-in-polygon, ring closing and map auto-fit.

Usage:
    pytest test_geometry.py
"""

import pytest

from badgemap_mqtt.schemas import Badge
from badgemap_zone.geometry import (
    MapView,
    as_polygon,
    badge_circle,
    bounds_of,
    circle_polygon,
    point_in_polygon,
    zone_display_name,
    zoom_for_span,
)

# 2 x 1 degree rectangle in [lon, lat] order
RECTANGLE = {
    "type": "Polygon",
    "coordinates": [[[0.0, 0.0], [2.0, 0.0], [2.0, 1.0], [0.0, 1.0], [0.0, 0.0]]],
}

# ~44 m x 22 m room
ROOM = {
    "type": "Polygon",
    "coordinates": [[
        [77.2000, 28.5000],
        [77.2004, 28.5000],
        [77.2004, 28.5002],
        [77.2000, 28.5002],
        [77.2000, 28.5000],
    ]],
}


def test_circle_ring_is_closed():
    circle = circle_polygon(28.5, 77.2, 10.0, num_points=32)

    ring = circle["coordinates"][0]
    assert circle["type"] == "Polygon"
    assert len(ring) == 33
    assert ring[0] == ring[-1]


def test_circle_contains_center():
    circle = circle_polygon(28.5, 77.2, 10.0)

    assert point_in_polygon(28.5, 77.2, circle)
    assert not point_in_polygon(28.6, 77.2, circle)


def test_circle_zero_radius_collapses_to_center():
    ring = circle_polygon(28.5, 77.2, 0.0)["coordinates"][0]

    for lon, lat in ring:
        assert lon == pytest.approx(77.2)
        assert lat == pytest.approx(28.5)


def test_circle_radius_in_degrees():
    ring = circle_polygon(0.0, 0.0, 111320.0, num_points=4)["coordinates"][0]

    # first vertex is due north, one degree away
    assert ring[0][0] == pytest.approx(0.0)
    assert ring[0][1] == pytest.approx(1.0)


def test_point_in_polygon_uses_lon_as_x():
    # Inside the rectangle only if lon is read as x
    assert point_in_polygon(0.5, 1.5, RECTANGLE)
    assert not point_in_polygon(1.5, 0.5, RECTANGLE)


def test_point_in_polygon_closing_vertex_is_harmless():
    open_ring = {
        "type": "Polygon",
        "coordinates": [RECTANGLE["coordinates"][0][:-1]],
    }

    for lat, lon in [(0.5, 0.5), (0.5, 1.9), (0.9, 3.0), (-0.1, 1.0)]:
        assert point_in_polygon(lat, lon, open_ring) == point_in_polygon(lat, lon, RECTANGLE)


def test_point_in_polygon_fails_closed():
    assert point_in_polygon(0.5, 0.5, None) is False
    assert point_in_polygon(0.5, 0.5, {"type": "Polygon"}) is False
    assert point_in_polygon(0.5, 0.5, {"type": "Polygon", "coordinates": [[1, 2]]}) is False
    # short or non-numeric vertices
    assert point_in_polygon(0.5, 0.5, {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [0]]]}) is False
    assert point_in_polygon(0.5, 0.5, {"type": "Polygon", "coordinates": [[[0, 0], ["a", 0], [1, 1]]]}) is False


def test_as_polygon_closes_linestring():
    polygon = as_polygon({
        "type": "LineString",
        "coordinates": [[0, 0], [1, 0], [1, 1]],
    })

    assert polygon["type"] == "Polygon"
    assert polygon["coordinates"] == [[[0, 0], [1, 0], [1, 1], [0, 0]]]


def test_as_polygon_multilinestring_and_polygon():
    multi = as_polygon({
        "type": "MultiLineString",
        "coordinates": [[[0, 0], [1, 0], [1, 1]], [[5, 5], [6, 5], [6, 6], [5, 5]]],
    })
    assert multi["type"] == "Polygon"
    assert len(multi["coordinates"]) == 2
    for ring in multi["coordinates"]:
        assert ring[0] == ring[-1]

    # Already closed polygon is unchanged
    assert as_polygon(ROOM) == ROOM
    assert as_polygon(None) is None


def test_as_polygon_leaves_malformed_rings_unconverted():
    flat_line = {"type": "LineString", "coordinates": [5, 6]}
    short_vertex = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [0]]]}
    empty = {"type": "Polygon", "coordinates": []}

    assert as_polygon(flat_line) == flat_line
    assert as_polygon(short_vertex) == short_vertex
    assert as_polygon(empty) == empty
    assert bounds_of([{"polygon": as_polygon(flat_line)}]) is None
    assert point_in_polygon(0.5, 0.5, as_polygon(short_vertex)) is False


def test_badge_circle():
    badge = Badge(id="AA:01", latitude=28.5, longitude=77.2, radius=10.0)
    circle = badge_circle(badge)
    assert circle is not None
    assert len(circle["coordinates"][0]) == 33

    assert badge_circle(Badge(id="AA:02", latitude=28.5, longitude=77.2)) is None
    assert badge_circle(Badge(id="AA:03", radius=10.0)) is None


def test_zone_display_name():
    assert zone_display_name("geofence_AA:01_lobby") == "lobby"
    assert zone_display_name("lobby") == "lobby"
    assert zone_display_name("zone_a") == "zone_a"


def test_zoom_table():
    assert zoom_for_span(0.00005) == 21
    assert zoom_for_span(0.0004) == 20
    assert zoom_for_span(0.0008) == 19
    assert zoom_for_span(0.0015) == 19
    assert zoom_for_span(0.004) == 18
    # Wider spans are clamped to the indoor floor
    assert zoom_for_span(0.5) == 18


def test_bounds_of_room():
    view = bounds_of([{"polygon": ROOM}])

    assert isinstance(view, MapView)
    assert view.center_lat == pytest.approx(28.5001)
    assert view.center_lon == pytest.approx(77.2002)
    assert view.zoom == 20


def test_bounds_of_without_geometry():
    assert bounds_of([]) is None
    assert bounds_of([{"polygon": None}]) is None
    assert bounds_of([{"polygon": {"type": "Polygon", "coordinates": []}}]) is None


def test_map_view_min_zoom():
    view = MapView(center_lat=1.0, center_lon=2.0, zoom=18)

    assert view.with_min_zoom(19).zoom == 19
    assert view.with_min_zoom(17).zoom == 18
    assert view.to_dict() == {"center_lat": 1.0, "center_lon": 2.0, "zoom": 18}
