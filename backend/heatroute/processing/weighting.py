"""
Heat Exposure Cost Model

This module prices routing graph edges by the heat a pedestrian is exposed to
while walking them at a given point in time.

Core Features
-------------
- `WeightingType`: Closed set of edge weightings (shortest, temperature,
  heat index, weighted heat index).
- `HeatStressWeighting`: Immutable cost function usable as the `cost_fn` of
  the router. Per-segment pricing is dispatched through a table keyed by the
  weighting type.

Pricing
-------
For every matched way segment valid at the time of day, with station mean
temperature T, relative humidity RH and per-slice distance d_i and
temperature delta dT_i:

- TEMPERATURE: sum of d_i * max(T + dT_i, 20)
- HEAT_INDEX: sum of d_i * max(HI(T + dT_i, RH), 20), with HI falling back
  to the raw temperature outside its validity domain
- HEAT_INDEX_WEIGHTED: sum of d_i ** w_d * max(HI(T + dT_i, RH), 20) ** w_t

Synthetic edges, SHORTEST, edges without matched segments and times the
weather series does not cover cost the physical edge distance.

Usage
-----
    weighting = HeatStressWeighting(WeightingType.HEAT_INDEX, t, weather, segments, osm_data)
    cost = weighting(edge)
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional, Protocol, List

from heatroute.core.config import (
    COMFORT_HEAT_INDEX, COMFORT_TEMPERATURE, WEIGHT_DISTANCE, WEIGHT_THERMAL_COMFORT
)
from heatroute.core.data_types import Edge, SegmentRecord, WayNode
from heatroute.core.errors import NegativeCostError
from heatroute.data.segments import SegmentStore
from heatroute.data.weather import WeatherSeries
from heatroute.processing.segment_matcher import edge_segments
from heatroute.processing.thermal_comfort import heat_index_or_temperature

logger = logging.getLogger(__name__)


class WeightingType(Enum):
    SHORTEST = "shortest"
    TEMPERATURE = "temperature"
    HEAT_INDEX = "heatindex"
    HEAT_INDEX_WEIGHTED = "heatindexweighted"

    @classmethod
    def from_name(cls, name: str) -> "WeightingType":
        """Parses a weighting name case-insensitively; raises `ValueError` if unknown."""
        key = name.strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"unsupported weighting type '{name}'")

    def __str__(self) -> str:
        return self.value


class WayIndex(Protocol):
    def way_nodes(self, way_id: int) -> List[WayNode]: ...

    def is_cyclic_way(self, way_id: int) -> bool: ...

    def contains_node(self, node_id: Optional[int]) -> bool: ...


# (record, mean temperature, relative humidity, weight distance, weight thermal comfort) -> cost
SegmentPricer = Callable[[SegmentRecord, float, float, float, float], float]


def _temperature_cost(record: SegmentRecord, mean_temp: float, humidity: float, wd: float, wt: float) -> float:
    return sum(
        d * max(mean_temp + delta, COMFORT_TEMPERATURE)
        for d, delta in zip(record.distances, record.temperature_deltas)
    )

def _heat_index_cost(record: SegmentRecord, mean_temp: float, humidity: float, wd: float, wt: float) -> float:
    return sum(
        d * max(heat_index_or_temperature(mean_temp + delta, humidity), COMFORT_HEAT_INDEX)
        for d, delta in zip(record.distances, record.temperature_deltas)
    )

def _heat_index_weighted_cost(record: SegmentRecord, mean_temp: float, humidity: float, wd: float, wt: float) -> float:
    return sum(
        d ** wd * max(heat_index_or_temperature(mean_temp + delta, humidity), COMFORT_HEAT_INDEX) ** wt
        for d, delta in zip(record.distances, record.temperature_deltas)
    )


SEGMENT_PRICERS: Dict[WeightingType, SegmentPricer] = {
    WeightingType.TEMPERATURE: _temperature_cost,
    WeightingType.HEAT_INDEX: _heat_index_cost,
    WeightingType.HEAT_INDEX_WEIGHTED: _heat_index_weighted_cost,
}


class HeatStressWeighting:
    """
    Edge cost function for one weighting type at one point in time.

    Instances are not modified after construction and hold only read-only
    references, so one instance may be shared between concurrent route queries.

    Attributes:
        weighting_type (WeightingType): Pricing variant.
        time (Optional[datetime]): Point in time the edges are walked at.
        weight_distance (float): Distance exponent of the weighted variant.
        weight_thermal_comfort (float): Heat index exponent of the weighted variant.
    """

    def __init__(
        self,
        weighting_type: WeightingType,
        time: Optional[datetime],
        weather: Optional[WeatherSeries],
        segments: Optional[SegmentStore],
        way_index: Optional[WayIndex],
        weight_distance: float = WEIGHT_DISTANCE,
        weight_thermal_comfort: float = WEIGHT_THERMAL_COMFORT
    ) -> None:
        if not 0 <= weight_distance <= 1:
            raise ValueError("weight_distance must be a number between 0 and 1")
        if not 0 <= weight_thermal_comfort <= 1:
            raise ValueError("weight_thermal_comfort must be a number between 0 and 1")
        if weighting_type is not WeightingType.SHORTEST and (
            time is None or weather is None or segments is None or way_index is None
        ):
            raise ValueError(f"weighting '{weighting_type}' requires time, weather, segments and way index")

        mean_temp = humidity = None
        if weighting_type is not WeightingType.SHORTEST and weather.in_range(time):
            mean_temp = weather.temperature(time)
            humidity = weather.relative_humidity(time)

        self.weighting_type = weighting_type
        self.time = time
        self.weather = weather
        self.segments = segments
        self.way_index = way_index
        self.weight_distance = weight_distance
        self.weight_thermal_comfort = weight_thermal_comfort
        self._mean_temp = mean_temp
        self._humidity = humidity

    def __call__(self, edge: Edge) -> float:
        """
        Cost of walking `edge` at the weighting's time.

        Raises:
            NegativeCostError: If the computed cost is negative.
        """
        if self.weighting_type is WeightingType.SHORTEST or edge.synthetic:
            return edge.distance
        if self._mean_temp is None:
            # time not covered by the weather series
            return edge.distance
        if not (self.way_index.contains_node(edge.base_node) and self.way_index.contains_node(edge.adj_node)):
            logger.debug(f"Unknown anchor nodes {edge.base_node}/{edge.adj_node} on way {edge.way_id}.")
            return edge.distance

        segment_ids = edge_segments(self.way_index, edge.way_id, edge.points, edge.base_node, edge.adj_node)
        if not segment_ids:
            return edge.distance

        time_of_day = self.time.time()
        pricer = SEGMENT_PRICERS[self.weighting_type]
        weight = 0.0
        for segment_id in segment_ids:
            record = self.segments.segment(segment_id, time_of_day)
            if record is None:
                if segment_id.nodes[0] != segment_id.nodes[1]:
                    logger.debug(f"Missing {segment_id}, edge distance = {edge.distance:.1f}")
                continue
            weight += pricer(
                record, self._mean_temp, self._humidity,
                self.weight_distance, self.weight_thermal_comfort
            )

        if weight < 0:
            logger.error(
                f"Negative edge weight {weight} (distance = {edge.distance}, time = {self.time}, "
                f"way = {edge.way_id}, base = {edge.base_node}, adj = {edge.adj_node}, "
                f"weather = {self.weather.weather_record(self.time)}, segments = {segment_ids})"
            )
            raise NegativeCostError(
                f"negative edge weight: edge from {edge.base_node} to {edge.adj_node} (way {edge.way_id})"
            )
        return weight

    def __repr__(self) -> str:
        return f"HeatStressWeighting({self.weighting_type}, time={self.time})"
