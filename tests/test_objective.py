from datetime import datetime, timedelta

import pytest
from shapely.geometry import Point

from heatroute.processing.objective import ObjectiveFunction, ObjectiveType, TimeLimits
from heatroute.processing.thermal_comfort import ThermalComfortType
from heatroute.processing.weighting import WeightingType

START = Point(8.39995, 49.0000)
DESTINATION = Point(8.4020, 49.00105)
LIMITS = TimeLimits(datetime(2015, 8, 1, 10), datetime(2015, 8, 1, 18))


def test_thermal_comfort_objective(routing_helper):
    objective = ObjectiveFunction(ObjectiveType.THERMAL_COMFORT, routing_helper)
    assert objective.routing_weighting is WeightingType.SHORTEST
    assert objective.value(datetime(2015, 8, 1, 14), START, DESTINATION, LIMITS, timedelta(0)) == 34.0

    heat_index = objective._replace(comfort_type=ThermalComfortType.HEAT_INDEX)
    assert heat_index.value(datetime(2015, 8, 1, 14), START, DESTINATION, LIMITS, timedelta(0)) > 34.0


def test_routing_objective(routing_helper):
    objective = ObjectiveFunction(ObjectiveType.ROUTING, routing_helper, WeightingType.HEAT_INDEX)
    t = datetime(2015, 8, 1, 14)
    expected = routing_helper.route(START, DESTINATION, t, WeightingType.HEAT_INDEX).path.weight
    assert objective.value(t, START, DESTINATION, LIMITS, timedelta(0)) == pytest.approx(expected)


def test_routing_objective_rejects_arrival_after_upper_limit(routing_helper):
    objective = ObjectiveFunction(ObjectiveType.ROUTING, routing_helper, WeightingType.HEAT_INDEX)
    # no walking time is expected, so any walk beyond the upper limit is infeasible
    assert objective.value(LIMITS.upper, START, DESTINATION, LIMITS, timedelta(0)) is None
    assert objective.value(LIMITS.upper, START, DESTINATION, LIMITS, timedelta(hours=1)) is not None


def test_reference_path_objective(routing_helper):
    objective = ObjectiveFunction(ObjectiveType.REFERENCE_PATH, routing_helper, WeightingType.HEAT_INDEX)
    reference = routing_helper.shortest_route(START, DESTINATION).path
    t = datetime(2015, 8, 1, 9)
    assert objective.value(t, START, DESTINATION, LIMITS, timedelta(0), reference) == \
        pytest.approx(routing_helper.route_weight(reference, t, WeightingType.HEAT_INDEX))
    with pytest.raises(ValueError):
        objective.value(t, START, DESTINATION, LIMITS, timedelta(0))


def test_times_without_weather_are_infeasible(routing_helper):
    objective = ObjectiveFunction(ObjectiveType.ROUTING, routing_helper, WeightingType.HEAT_INDEX)
    t = datetime(2015, 8, 2, 9)
    assert objective.value(t, START, DESTINATION, TimeLimits(t, t + timedelta(hours=1)), timedelta(0)) is None
