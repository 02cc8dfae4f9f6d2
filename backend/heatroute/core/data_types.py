"""
Typed Records for Heat Stress Routing

This module defines the immutable `NamedTuple` records exchanged between the
weather store, the segment store, the routing adapter, and the optimal time
search. Stores and algorithms only ever read these records; a record is never
updated in place.

Key Structures:
---------------
- `WeatherSample`: One station reading (time, temperature, relative humidity).
- `SegmentId` / `SegmentRecord`: Fine-grained way segments and their measured
  temperature deltas, optionally restricted to a half-day window.
- `WayNode` / `Place`: Nodes of the OSM extract used by the way and place index.
- `Edge` / `Path` / `RoutingResponse`: The contract of the routing adapter.
- `OptimalTimeResult` / `RankedCandidate`: Results of the optimal time and
  nearby search.

Usage:
------
    from heatroute.core.data_types import SegmentId
    segment_id = SegmentId(way_id=4711, nodes=(1, 2))
    segment_id.swapped()  # SegmentId(way_id=4711, nodes=(2, 1))

Notes:
------
- Coordinates are `shapely.geometry.Point` objects with x = longitude and
  y = latitude.
"""

from datetime import datetime, time, timedelta
from typing import Dict, List, NamedTuple, Optional, Tuple

from shapely.geometry import Point


class WeatherSample(NamedTuple):
    """
    A single weather station reading.

    Attributes:
        time (datetime): Time of the reading.
        temperature (float): Air temperature in °C.
        relative_humidity (float): Relative humidity in percent.
    """
    time: datetime
    temperature: float
    relative_humidity: float


class SegmentId(NamedTuple):
    """
    Directed identifier of a way segment between two adjacent way nodes.

    Attributes:
        way_id (int): OSM id of the way.
        nodes (Tuple[int, int]): Ordered pair of OSM node ids.
    """
    way_id: int
    nodes: Tuple[int, int]

    def swapped(self) -> "SegmentId":
        return SegmentId(self.way_id, (self.nodes[1], self.nodes[0]))

    def __str__(self) -> str:
        return f"SegmentId(way={self.way_id}, {self.nodes[0]} -> {self.nodes[1]})"


class TimeWindow(NamedTuple):
    """
    Half-open time of day window `[start, end)`. `end=None` means end of day.
    """
    start: time
    end: Optional[time] = None

    def contains(self, t: time) -> bool:
        if t < self.start:
            return False
        return self.end is None or t < self.end


class SegmentRecord(NamedTuple):
    """
    Measured temperature deltas along one way segment.

    `distances` and `temperature_deltas` are parallel: slice `i` of the
    segment has length `distances[i]` meters and a temperature difference of
    `temperature_deltas[i]` °C to the station mean.

    Attributes:
        id (SegmentId): The segment the slices belong to.
        window (Optional[TimeWindow]): Time of day the record is valid for; `None` means always.
        distances (Tuple[float, ...]): Slice lengths in meters.
        temperature_deltas (Tuple[float, ...]): Slice temperature deltas in °C.
    """
    id: SegmentId
    window: Optional[TimeWindow]
    distances: Tuple[float, ...]
    temperature_deltas: Tuple[float, ...]

    @property
    def distance(self) -> float:
        return float(sum(self.distances))

    def valid_at(self, t: time) -> bool:
        return self.window is None or self.window.contains(t)


class WayNode(NamedTuple):
    id: int
    location: Point


class Place(NamedTuple):
    """
    A tagged OSM node that can be searched for (shop, amenity, ...).

    Attributes:
        id (int): OSM node id.
        location (Point): Location of the node.
        tags (Dict[str, str]): OSM tags of the node.
    """
    id: int
    location: Point
    tags: Dict[str, str]

    @property
    def name(self) -> Optional[str]:
        return self.tags.get("name")


class Edge(NamedTuple):
    """
    One traversal of a routing graph edge, as seen by a cost function.

    Attributes:
        way_id (Optional[int]): OSM way the edge belongs to; `None` for synthetic edges.
        base_node (Optional[int]): OSM node id the traversal starts at.
        adj_node (Optional[int]): OSM node id the traversal ends at.
        points (Tuple[Point, ...]): Geometry from base to adjacent node, pillar points included.
        distance (float): Length of the edge in meters.
        synthetic (bool): True for snap edges created at routing time.
    """
    way_id: Optional[int]
    base_node: Optional[int]
    adj_node: Optional[int]
    points: Tuple[Point, ...]
    distance: float
    synthetic: bool = False


class Path(NamedTuple):
    """
    A routed path.

    Attributes:
        edges (Tuple[Edge, ...]): Edges in travel order, snap edges included.
        distance (float): Total length in meters.
        duration (timedelta): Walking duration.
        weight (float): Sum of the edge costs under the weighting used for routing.
        points (Tuple[Point, ...]): Geometry of the whole path.
    """
    edges: Tuple[Edge, ...]
    distance: float
    duration: timedelta
    weight: float
    points: Tuple[Point, ...]


class RoutingResponse(NamedTuple):
    path: Optional[Path]
    errors: List[Exception]

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


class OptimalTimeResult(NamedTuple):
    """
    Best departure time found for one place.

    Attributes:
        optimal_time (datetime): Departure time with the lowest objective value.
        distance (float): Length of the optimal path in meters.
        optimal_value (float): Objective value at `optimal_time`.
        duration (timedelta): Walking duration of the optimal path.
        optimal_path (Optional[Path]): The path walked at `optimal_time`.
        reference_path (Optional[Path]): Plain shortest path between the same points.
    """
    optimal_time: datetime
    distance: float
    optimal_value: float
    duration: timedelta
    optimal_path: Optional[Path]
    reference_path: Optional[Path]


class RankedCandidate(NamedTuple):
    """
    A place with a feasible optimal time, ranked within a nearby search.

    Attributes:
        place (Place): The candidate place.
        rank (int): 1-based rank by ascending optimal value.
        score (float): Value of the score function (lower is better).
        result (OptimalTimeResult): The optimal time result of the place.
    """
    place: Place
    rank: int
    score: float
    result: OptimalTimeResult

    @property
    def optimal_time(self) -> datetime:
        return self.result.optimal_time

    @property
    def distance(self) -> float:
        return self.result.distance

    @property
    def optimal_value(self) -> float:
        return self.result.optimal_value

    @property
    def duration(self) -> timedelta:
        return self.result.duration
