import os
import tempfile
from datetime import datetime

# config creates the log directory on import
os.environ.setdefault("HEATROUTE_DATA_DIR", tempfile.mkdtemp(prefix="heatroute-"))

import pytest

from heatroute.core.cache import StationaryData
from heatroute.data.osm_data import load_osm_file
from heatroute.data.segments import parse_segment_file
from heatroute.data.weather import parse_weather_file
from heatroute.utils.routing import Router, RoutingHelper, build_graph


# Two walkable ways 1-2-3 and 3-4 near Karlsruhe, a motorway 1-4 and three places.
OSM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6" generator="tests">
  <node id="1" lat="49.0000" lon="8.4000"/>
  <node id="2" lat="49.0000" lon="8.4010"/>
  <node id="3" lat="49.0000" lon="8.4020"/>
  <node id="4" lat="49.0010" lon="8.4020"/>
  <node id="10" lat="49.0010" lon="8.4021">
    <tag k="shop" v="supermarket"/>
    <tag k="name" v="Corner Market"/>
    <tag k="opening_hours" v="Mo-Su 08:00-20:00"/>
  </node>
  <node id="11" lat="49.0001" lon="8.4001">
    <tag k="shop" v="bakery"/>
  </node>
  <node id="12" lat="49.0001" lon="8.4011">
    <tag k="amenity" v="pharmacy"/>
    <tag k="opening_hours" v="Mo-Fr 08:00-18:00; Sa 09:00-13:00"/>
  </node>
  <way id="100">
    <nd ref="1"/>
    <nd ref="2"/>
    <nd ref="3"/>
    <tag k="highway" v="footway"/>
  </way>
  <way id="101">
    <nd ref="3"/>
    <nd ref="4"/>
    <tag k="highway" v="residential"/>
  </way>
  <way id="102">
    <nd ref="1"/>
    <nd ref="4"/>
    <tag k="highway" v="motorway"/>
  </way>
</osm>
"""

WEATHER_CSV = """STATIONS_ID;MESS_DATUM;LUFTTEMPERATUR;REL_FEUCHTE
4177;2015080100;21.0;80.0
4177;2015080106;20.5;85.0
4177;2015080110;28.0;55.0
4177;2015080114;34.0;35.0
4177;2015080118;30.0;40.0
4177;2015080123;23.0;70.0
"""

SEGMENTS_CSV = """way_id|from_node_id|to_node_id|distance|temperature_delta|time_range
100|1|2|40.0|-1.5|morning
100|1|2|33.0|-1.0|morning
100|1|2|73.0|2.0|evening
100|2|3|73.0|-0.5|morning
100|2|3|73.0|1.0|evening
101|3|4|111.0|-2.0|morning
101|3|4|111.0|-3.0|evening
"""

# 2015-08-01 is a Saturday
DAY = datetime(2015, 8, 1)


@pytest.fixture(scope="session")
def data_dir(tmp_path_factory):
    path = tmp_path_factory.mktemp("data")
    (path / "test.osm").write_text(OSM_XML, encoding="utf-8")
    (path / "weather.csv").write_text(WEATHER_CSV, encoding="utf-8")
    (path / "segments.csv").write_text(SEGMENTS_CSV, encoding="utf-8")
    return path


@pytest.fixture(scope="session")
def osm_data(data_dir):
    return load_osm_file(data_dir / "test.osm")


@pytest.fixture(scope="session")
def weather(data_dir):
    return parse_weather_file(data_dir / "weather.csv")


@pytest.fixture(scope="session")
def segments(data_dir):
    return parse_segment_file(data_dir / "segments.csv")


@pytest.fixture(scope="session")
def graph(data_dir):
    return build_graph(data_dir / "test.osm")


@pytest.fixture(scope="session")
def router(graph):
    return Router(graph)


@pytest.fixture(scope="session")
def routing_helper(router, weather, segments, osm_data):
    return RoutingHelper(router, weather, segments, osm_data)


@pytest.fixture(scope="session")
def stationary(data_dir):
    data = StationaryData(
        data_dir / "test.osm", data_dir / "weather.csv", data_dir / "segments.csv",
        graph_file=data_dir / "walk_graph.graphml"
    )
    data.load()
    return data


@pytest.fixture
def client(stationary):
    from fastapi.testclient import TestClient

    from heatroute.api.parsing import get_stationary_data
    from main import app

    app.dependency_overrides[get_stationary_data] = lambda: stationary
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
