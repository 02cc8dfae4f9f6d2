from datetime import datetime, timedelta

import pytest
from shapely.geometry import Point

from heatroute.core.data_types import OptimalTimeResult, Place
from heatroute.data.osm_data import place_type_filter
from heatroute.processing.nearby_search import NearbySearch, NearbySearchConfig, rank
from heatroute.processing.objective import ObjectiveFunction, ObjectiveType
from heatroute.processing.optimal_time import FinderVariant, OptimalTimeFinder
from heatroute.processing.scoring import THERMAL_COMFORT, WEIGHTED_SUM, ScoreBounds, normalize
from heatroute.processing.weighting import WeightingType

START = Point(8.39995, 49.0000)
NOW = datetime(2015, 8, 1, 12, 50)


def candidate(place_id, distance, value):
    place = Place(place_id, Point(8.4, 49.0), {"amenity": "cafe"})
    result = OptimalTimeResult(NOW, distance, value, timedelta(minutes=5), None, None)
    return place, result


def test_rank_orders_by_value():
    ranked = rank([candidate(1, 100, 5.0), candidate(2, 500, 3.0), candidate(3, 900, 8.0)], THERMAL_COMFORT)
    assert [c.place.id for c in ranked] == [2, 1, 3]
    assert [c.rank for c in ranked] == [1, 2, 3]
    assert [c.score for c in ranked] == [3.0, 5.0, 8.0]


def test_rank_is_stable_for_equal_values():
    ranked = rank([candidate(1, 100, 5.0), candidate(2, 500, 5.0)], THERMAL_COMFORT)
    assert [c.place.id for c in ranked] == [1, 2]


def test_weighted_sum_score():
    bounds = ScoreBounds(100, 900, 3.0, 8.0)
    assert WEIGHTED_SUM.score(100, 3.0, bounds) == 0.0
    assert WEIGHTED_SUM.score(900, 8.0, bounds) == pytest.approx(1.0)
    assert normalize(5.0, 5.0, 5.0) == 0.0


def test_rank_of_nothing():
    assert rank([], WEIGHTED_SUM) == []


@pytest.fixture
def search(routing_helper):
    objective = ObjectiveFunction(ObjectiveType.REFERENCE_PATH, routing_helper, WeightingType.HEAT_INDEX)
    return NearbySearch(OptimalTimeFinder(objective, FinderVariant.HEURISTIC))


def test_search_finds_open_places(search):
    results = search.find(START, place_type_filter(["supermarket", "pharmacy", "bakery"]), NOW)
    # the pharmacy closes too soon for the time buffer; the bakery declares no opening hours
    assert [c.place.id for c in results] == [10]
    best = results[0]
    assert best.rank == 1
    assert NOW <= best.optimal_time <= datetime(2015, 8, 1, 20)
    assert best.result.reference_path is not None


def test_search_is_reproducible(search):
    predicate = place_type_filter(["supermarket"])
    sequential = search.find(START, predicate, NOW, config=NearbySearchConfig(parallel=False))
    parallel = search.find(START, predicate, NOW, config=NearbySearchConfig(parallel=True))
    assert sequential == parallel == search.find(START, predicate, NOW, config=NearbySearchConfig(parallel=False))


def test_search_radius(search):
    assert search.find(START, place_type_filter(["supermarket"]), NOW, config=NearbySearchConfig(max_distance=50)) == []


def test_default_score_function(search, routing_helper):
    assert search.default_score_function() is THERMAL_COMFORT
    comfort = NearbySearch(OptimalTimeFinder(ObjectiveFunction(ObjectiveType.THERMAL_COMFORT, routing_helper)))
    assert comfort.default_score_function() is WEIGHTED_SUM


def test_unknown_place_type():
    with pytest.raises(ValueError):
        place_type_filter(["castle"])
