from datetime import datetime

import pytest
from shapely.geometry import Point

from heatroute.core.data_types import Edge, SegmentId, SegmentRecord, WeatherSample
from heatroute.core.errors import NegativeCostError
from heatroute.data.osm_data import OSMData
from heatroute.data.segments import EVENING, MORNING, SegmentStore
from heatroute.data.weather import WeatherSeries
from heatroute.processing.thermal_comfort import heat_index
from heatroute.processing.weighting import HeatStressWeighting, WeightingType

NOON = datetime(2015, 8, 1, 12)

NODES = {1: Point(8.4000, 49.0000), 2: Point(8.4010, 49.0000), 3: Point(8.4020, 49.0000)}


@pytest.fixture
def way_index():
    return OSMData(NODES, {}, {100: (1, 2, 3)})


def series(temperature, humidity=50.0):
    return WeatherSeries([
        WeatherSample(datetime(2015, 8, 1, 0), temperature, humidity),
        WeatherSample(datetime(2015, 8, 1, 23), temperature, humidity),
    ])


def edge(way_id=100, distance=146.0):
    return Edge(way_id, 1, 3, (NODES[1], NODES[2], NODES[3]), distance)


def store(distance=73.0, delta=0.0):
    return SegmentStore([
        SegmentRecord(SegmentId(100, (1, 2)), EVENING, (distance,), (delta,)),
        SegmentRecord(SegmentId(100, (2, 3)), EVENING, (distance,), (delta,)),
    ])


@pytest.mark.parametrize("name, expected", [
    ("shortest", WeightingType.SHORTEST),
    ("HeatIndex", WeightingType.HEAT_INDEX),
    (" heatindexweighted ", WeightingType.HEAT_INDEX_WEIGHTED),
])
def test_weighting_names(name, expected):
    assert WeightingType.from_name(name) is expected


def test_unknown_weighting_name():
    with pytest.raises(ValueError):
        WeightingType.from_name("coolest")


def test_shortest_costs_distance():
    weighting = HeatStressWeighting(WeightingType.SHORTEST, None, None, None, None)
    assert weighting(edge()) == 146.0


def test_cool_weather_costs_comfort_floor(way_index):
    weighting = HeatStressWeighting(WeightingType.TEMPERATURE, NOON, series(15.0), store(), way_index)
    assert weighting(edge()) == pytest.approx(2 * 73.0 * 20.0)


def test_temperature_adds_segment_delta(way_index):
    weighting = HeatStressWeighting(WeightingType.TEMPERATURE, NOON, series(30.0), store(delta=-2.0), way_index)
    assert weighting(edge()) == pytest.approx(2 * 73.0 * 28.0)


def test_heat_index_cost(way_index):
    weighting = HeatStressWeighting(WeightingType.HEAT_INDEX, NOON, series(30.0, 60.0), store(), way_index)
    assert weighting(edge()) == pytest.approx(2 * 73.0 * heat_index(30.0, 60.0))


def test_weighted_heat_index_cost(way_index):
    weighting = HeatStressWeighting(
        WeightingType.HEAT_INDEX_WEIGHTED, NOON, series(30.0, 60.0), store(), way_index,
        weight_distance=0.5, weight_thermal_comfort=0.5
    )
    assert weighting(edge()) == pytest.approx(2 * 73.0 ** 0.5 * heat_index(30.0, 60.0) ** 0.5)


def test_only_records_of_the_time_of_day_are_priced(way_index):
    morning = SegmentStore([SegmentRecord(SegmentId(100, (1, 2)), MORNING, (73.0,), (0.0,))])
    weighting = HeatStressWeighting(WeightingType.TEMPERATURE, NOON, series(30.0), morning, way_index)
    assert weighting(edge()) == 0.0


def test_unmatched_edge_costs_distance(way_index):
    weighting = HeatStressWeighting(WeightingType.HEAT_INDEX, NOON, series(30.0), store(), way_index)
    assert weighting(edge(way_id=999)) == 146.0


def test_synthetic_edge_costs_distance(way_index):
    weighting = HeatStressWeighting(WeightingType.HEAT_INDEX, NOON, series(30.0), store(), way_index)
    synthetic = Edge(None, None, 1, (Point(8.3999, 49.0), NODES[1]), 7.3, synthetic=True)
    assert weighting(synthetic) == 7.3


def test_time_outside_weather_costs_distance(way_index):
    weighting = HeatStressWeighting(
        WeightingType.HEAT_INDEX, datetime(2015, 8, 2, 12), series(30.0), store(), way_index
    )
    assert weighting(edge()) == 146.0


def test_negative_cost_raises(way_index):
    weighting = HeatStressWeighting(WeightingType.TEMPERATURE, NOON, series(30.0), store(distance=-73.0), way_index)
    with pytest.raises(NegativeCostError):
        weighting(edge())


def test_invalid_weights_raise(way_index):
    with pytest.raises(ValueError):
        HeatStressWeighting(WeightingType.HEAT_INDEX_WEIGHTED, NOON, series(30.0), store(), way_index,
                            weight_distance=1.5)


def test_heat_weighting_requires_time(way_index):
    with pytest.raises(ValueError):
        HeatStressWeighting(WeightingType.HEAT_INDEX, None, series(30.0), store(), way_index)
