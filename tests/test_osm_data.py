from datetime import date

import pytest
from shapely.geometry import Point

from heatroute.core.errors import OSMDataError
from heatroute.data.osm_data import has_opening_hours, load_osm_file, place_type_filter

START = Point(8.39995, 49.0000)


def test_ways_and_nodes(osm_data):
    assert [n.id for n in osm_data.way_nodes(100)] == [1, 2, 3]
    assert osm_data.way_nodes(999) == []
    assert not osm_data.is_cyclic_way(100)
    assert osm_data.contains_node(4)
    assert not osm_data.contains_node(None)


def test_places(osm_data):
    assert [p.id for p in osm_data.places] == [10, 11, 12]
    assert osm_data.place(10).name == "Corner Market"
    assert has_opening_hours(osm_data.place(10))
    assert not has_opening_hours(osm_data.place(11))
    assert osm_data.has_parsed_opening_hours(12)


def test_opening_hours_of_place(osm_data):
    windows = osm_data.opening_hours(12, date(2015, 8, 1))
    assert [(o.hour, c.hour) for o, c in windows] == [(9, 13)]
    assert osm_data.opening_hours(11, date(2015, 8, 1)) == []


def test_k_nearest_neighbor(osm_data):
    assert [p.id for p in osm_data.k_nearest_neighbor(START, 5, 1000)] == [11, 12, 10]
    assert [p.id for p in osm_data.k_nearest_neighbor(START, 1, 1000)] == [11]
    assert osm_data.k_nearest_neighbor(START, 5, 1000, place_type_filter(["supermarket"]))[0].id == 10
    assert osm_data.k_nearest_neighbor(START, 0, 1000) == []


def test_place_type_filter_requires_opening_hours(osm_data):
    assert osm_data.k_nearest_neighbor(START, 5, 1000, place_type_filter(["bakery"])) == []


def test_malformed_osm_file_raises(tmp_path):
    path = tmp_path / "broken.osm"
    path.write_text("<osm><node id='1'", encoding="utf-8")
    with pytest.raises(OSMDataError):
        load_osm_file(path)


def test_missing_osm_file_raises(tmp_path):
    with pytest.raises(OSMDataError):
        load_osm_file(tmp_path / "missing.osm")
