"""
Objective Functions for the Optimal Time Search

An objective function maps a candidate departure time to a scalar value that
the optimal time finder minimizes. The variants form a closed set selected by
`ObjectiveType`:

- THERMAL_COMFORT: Comfort value of the station weather only (temperature or
  heat index, floored at 20). Routes are computed with SHORTEST afterwards.
- ROUTING: Weight of the optimal route at the candidate time. Undefined if the
  walk, minus the estimated minimum walking time, would end after the upper
  limit of the search window.
- REFERENCE_PATH: Weight of a fixed reference path re-priced at the
  candidate time. Used by the heuristic finder.

An undefined value (`None`) marks the time as infeasible.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import NamedTuple, Optional

from shapely.geometry import Point

from heatroute.core.data_types import Path
from heatroute.processing.thermal_comfort import ThermalComfortType, thermal_comfort
from heatroute.processing.weighting import WeightingType
from heatroute.utils.routing import RoutingHelper

logger = logging.getLogger(__name__)


class ObjectiveType(Enum):
    THERMAL_COMFORT = "thermal_comfort"
    ROUTING = "routing"
    REFERENCE_PATH = "reference_path"


class TimeLimits(NamedTuple):
    """Closed search window `[lower, upper]` for the departure time."""
    lower: datetime
    upper: datetime

    @property
    def duration(self) -> timedelta:
        return self.upper - self.lower


class ObjectiveFunction(NamedTuple):
    """
    Objective function of the optimal time search.

    Attributes:
        objective_type (ObjectiveType): Variant.
        routing_helper (RoutingHelper): Routing and weather access.
        weighting_type (WeightingType): Weighting of the ROUTING and
            REFERENCE_PATH variants.
        comfort_type (ThermalComfortType): Measure of the THERMAL_COMFORT variant.
    """
    objective_type: ObjectiveType
    routing_helper: RoutingHelper
    weighting_type: WeightingType = WeightingType.HEAT_INDEX
    comfort_type: ThermalComfortType = ThermalComfortType.TEMPERATURE

    @property
    def routing_weighting(self) -> WeightingType:
        """Weighting used to route at the optimal time."""
        if self.objective_type is ObjectiveType.THERMAL_COMFORT:
            return WeightingType.SHORTEST
        return self.weighting_type

    def value(
        self,
        t: datetime,
        start: Point,
        destination: Point,
        limits: TimeLimits,
        min_walking_time: timedelta,
        reference_path: Optional[Path] = None
    ) -> Optional[float]:
        """
        Evaluates the objective at departure time `t`.

        Args:
            t (datetime): Candidate departure time.
            start (Point): Start location.
            destination (Point): Location of the place.
            limits (TimeLimits): Search window.
            min_walking_time (timedelta): Estimated minimum walking time.
            reference_path (Optional[Path]): Path re-priced by REFERENCE_PATH.

        Returns:
            Optional[float]: The objective value, or None if `t` is infeasible
            or not covered by the weather data.
        """
        if self.objective_type is ObjectiveType.THERMAL_COMFORT:
            return thermal_comfort(self.routing_helper.weather, t, self.comfort_type)

        if not self.routing_helper.weather.in_range(t):
            return None

        if self.objective_type is ObjectiveType.REFERENCE_PATH:
            if reference_path is None:
                raise ValueError("the reference path objective requires a reference path")
            return self.routing_helper.route_weight(reference_path, t, self.weighting_type)

        response = self.routing_helper.route(start, destination, t, self.weighting_type)
        if response.path is None:
            logger.debug(f"No route at {t}: {response.errors}")
            return None

        walk = max(response.path.duration - min_walking_time, timedelta(0))
        if t + walk <= limits.upper:
            return response.path.weight
        return None
