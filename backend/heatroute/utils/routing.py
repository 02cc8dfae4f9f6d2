"""
Pedestrian Routing over the OSM Walking Graph

This module loads the OSM extract into an osmnx walking graph and answers
weighted shortest path queries with a pluggable edge cost function.

Core Features
-------------
- build_graph(...): Loads the walkable ways with osmnx, simplifies the graph
  at way boundaries and attaches an `Edge` record to every edge. The result
  can be cached as GraphML.
- Router: Snaps request points with `ox.distance.nearest_nodes` and runs
  Dijkstra with a per-query memoised cost callback.
- RoutingHelper: Bundles the router with weather, segment and way data and
  creates heat stress weightings for a point in time.

Conventions
-----------
- Points are `shapely.geometry.Point` objects with x = longitude, y = latitude.
- Request points are connected to their snapped graph node by a synthetic
  edge that has no way and always costs its distance.
- Routing failures are returned as `RoutingResponse.errors`, never raised.

Dependencies
------------
- networkx: Graph storage and Dijkstra.
- osmnx: OSM XML import, graph simplification, GraphML caching, snapping.
- scikit-learn: Needed by osmnx for nearest node queries on unprojected graphs.
- shapely: Edge geometry.
"""


import logging
import os
import xml.sax
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple, Union

import networkx as nx
import osmnx as ox
from shapely.geometry import Point

from heatroute.core.config import EXCLUDED_HIGHWAYS, MAX_SNAP_DISTANCE, WALKING_SPEED
from heatroute.core.data_types import Edge, Path, RoutingResponse
from heatroute.core.errors import OSMDataError
from heatroute.data.osm_data import OSMData
from heatroute.data.segments import SegmentStore
from heatroute.data.weather import WeatherSeries
from heatroute.processing.weighting import HeatStressWeighting, WeightingType

logger = logging.getLogger(__name__)

CostFunction = Callable[[Edge], float]


def _is_walkable(tags: Dict[str, str]) -> bool:
    highway = tags.get("highway")
    if highway is None or highway in EXCLUDED_HIGHWAYS:
        return False
    return tags.get("foot") != "no" and tags.get("access") not in ("no", "private")


def _node_point(G: nx.MultiDiGraph, node: int) -> Point:
    data = G.nodes[node]
    return Point(data["x"], data["y"])


def _walking_graph(osm_file: Union[str, os.PathLike]) -> nx.MultiDiGraph:
    """
    Reads every way of the extract, drops the ones not open to pedestrians and
    simplifies the rest. Interior nodes are only merged within one way, so
    every simplified edge keeps a single way id.
    """
    try:
        G = ox.graph_from_xml(osm_file, bidirectional=True, simplify=False, retain_all=True)
    except (OSError, xml.sax.SAXException) as e:
        raise OSMDataError(f"could not read OSM file {osm_file}: {e}") from e

    G.remove_edges_from([
        (u, v, k) for u, v, k, data in G.edges(keys=True, data=True) if not _is_walkable(data)
    ])
    G.remove_nodes_from(list(nx.isolates(G)))
    return ox.simplify_graph(G, edge_attrs_differ=["osmid"], remove_rings=False)


def _edge_record(G: nx.MultiDiGraph, u: int, v: int, data: Dict) -> Edge:
    if "geometry" in data:
        points = tuple(Point(x, y) for x, y in data["geometry"].coords)
    else:
        points = (_node_point(G, u), _node_point(G, v))
    return Edge(int(data["osmid"]), u, v, points, float(data["length"]))


def build_graph(
    osm_file: Union[str, os.PathLike],
    graph_file: Optional[Union[str, os.PathLike]] = None
) -> nx.MultiDiGraph:
    """
    Builds the walking graph from the walkable ways of the OSM extract.

    When `graph_file` exists the simplified graph is loaded from it instead,
    otherwise it is written there after the import.

    Args:
        osm_file (Union[str, os.PathLike]): Location of the `.osm` file.
        graph_file (Optional[Union[str, os.PathLike]]): GraphML cache, or None to
            always import.

    Returns:
        nx.MultiDiGraph: osmnx graph with OSM node ids as nodes and the `Edge`
        record of every edge under the `edge` attribute.

    Raises:
        OSMDataError: If the extract cannot be read.
    """
    if graph_file is not None and os.path.exists(graph_file):
        G = ox.load_graphml(graph_file)
        logger.debug(f"Loaded cached walking graph from {graph_file}.")
    else:
        G = _walking_graph(osm_file)
        if graph_file is not None:
            ox.save_graphml(G, filepath=graph_file)
            logger.debug(f"Cached walking graph in {graph_file}.")

    for u, v, data in G.edges(data=True):
        data["edge"] = _edge_record(G, u, v, data)

    logger.info(f"Walking graph built: {G.number_of_nodes()} nodes, {G.number_of_edges()} edges.")
    return G


class Router:
    """
    Weighted shortest path queries over a walking graph.

    The graph is only read, so one router can serve concurrent queries.

    Attributes:
        G (nx.MultiDiGraph): Graph built by `build_graph`.
        max_snap_distance (float): Maximum distance (m) between a request
            point and its graph node.
    """

    def __init__(self, G: nx.MultiDiGraph, max_snap_distance: float = MAX_SNAP_DISTANCE) -> None:
        self.G = G
        self.max_snap_distance = max_snap_distance

    def _node_point(self, node: int) -> Point:
        return _node_point(self.G, node)

    def snap(self, point: Point) -> Tuple[int, float]:
        """
        Finds the graph node closest to `point`.

        Returns:
            Tuple[int, float]: Node id and its distance in meters.

        Raises:
            nx.NodeNotFound: If the graph is empty or the closest node is too far away.
        """
        if self.G.number_of_nodes() == 0:
            raise nx.NodeNotFound(f"no graph node found for {point}")

        node, distance = ox.distance.nearest_nodes(self.G, point.x, point.y, return_dist=True)
        node, distance = int(node), float(distance)
        if distance > self.max_snap_distance:
            raise nx.NodeNotFound(
                f"cannot find point {point.y},{point.x}: nearest node is {distance:.0f} m away"
            )
        return node, distance

    def route(self, start: Point, end: Point, cost_fn: CostFunction) -> RoutingResponse:
        """
        Computes the path of minimal cost from `start` to `end`.

        Args:
            start (Point): Start location.
            end (Point): Destination.
            cost_fn (CostFunction): Edge cost; must not be negative.

        Returns:
            RoutingResponse: The path, or an empty path with the routing errors.
        """
        errors: List[Exception] = []
        snapped = []
        for point in (start, end):
            try:
                snapped.append(self.snap(point))
            except nx.NodeNotFound as e:
                errors.append(e)
        if errors:
            return RoutingResponse(None, errors)
        (start_node, start_dist), (end_node, end_dist) = snapped

        costs: Dict[Tuple[int, int, int], float] = {}

        def edge_cost(u: int, v: int, key: int, data: Dict) -> float:
            cached = costs.get((u, v, key))
            if cached is None:
                cached = cost_fn(data["edge"])
                costs[(u, v, key)] = cached
            return cached

        def weight(u: int, v: int, parallel: Dict) -> float:
            return min(edge_cost(u, v, key, data) for key, data in parallel.items())

        try:
            nodes = nx.dijkstra_path(self.G, start_node, end_node, weight=weight)
        except (nx.NetworkXNoPath, nx.NodeNotFound) as e:
            logger.debug(f"No path from {start} to {end}: {e}")
            return RoutingResponse(None, [e])

        edges: List[Edge] = [
            Edge(None, None, start_node, (start, self._node_point(start_node)), start_dist, synthetic=True)
        ]
        for u, v in zip(nodes, nodes[1:]):
            parallel = self.G[u][v]
            key = min(parallel, key=lambda k: (edge_cost(u, v, k, parallel[k]), k))
            edges.append(parallel[key]["edge"])
        edges.append(Edge(None, end_node, None, (self._node_point(end_node), end), end_dist, synthetic=True))

        return RoutingResponse(_make_path(edges, cost_fn), [])


def _make_path(edges: List[Edge], cost_fn: CostFunction) -> Path:
    distance = sum(e.distance for e in edges)
    weight = sum(cost_fn(e) for e in edges)

    points: List[Point] = []
    for edge in edges:
        for point in edge.points:
            if not points or not points[-1].equals(point):
                points.append(point)

    return Path(
        edges=tuple(edges),
        distance=distance,
        duration=timedelta(seconds=distance / WALKING_SPEED),
        weight=weight,
        points=tuple(points)
    )


class RoutingHelper:
    """
    Routes with heat stress weightings for a point in time.

    Attributes:
        router (Router): Path engine.
        weather (WeatherSeries): Station weather.
        segments (SegmentStore): Segment weather records.
        osm_data (OSMData): Way index used by the segment matcher.
    """

    def __init__(self, router: Router, weather: WeatherSeries, segments: SegmentStore, osm_data: OSMData) -> None:
        self.router = router
        self.weather = weather
        self.segments = segments
        self.osm_data = osm_data

    def create_weighting(self, weighting_type: WeightingType, time: Optional[datetime] = None) -> HeatStressWeighting:
        if weighting_type is not WeightingType.SHORTEST and time is None:
            raise ValueError(f"weighting '{weighting_type}' requires a time")
        return HeatStressWeighting(weighting_type, time, self.weather, self.segments, self.osm_data)

    def route(
        self,
        start: Point,
        destination: Point,
        time: Optional[datetime],
        weighting_type: WeightingType
    ) -> RoutingResponse:
        return self.router.route(start, destination, self.create_weighting(weighting_type, time))

    def shortest_route(self, start: Point, destination: Point) -> RoutingResponse:
        return self.route(start, destination, None, WeightingType.SHORTEST)

    def route_weight(self, path: Path, time: Optional[datetime], weighting_type: WeightingType) -> float:
        """Prices a fixed path with the weighting at `time`."""
        weighting = self.create_weighting(weighting_type, time)
        return sum(weighting(edge) for edge in path.edges)

    def time_range(self) -> Tuple[datetime, datetime]:
        return self.weather.time_range()
