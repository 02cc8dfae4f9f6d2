"""
OSM Way and Place Index

This module reads an OSM XML extract and exposes the ordered way node refs
and the tagged places needed by the segment matcher and the nearby search.
The walking graph itself is built by osmnx (see `heatroute.utils.routing`),
which does not keep the node order of a way or the tagged nodes that lie off
the network.

Features:
---------
- `load_osm_file(...)`: Streams an `.osm` file into an `OSMData` instance.
- `OSMData`: Read-only index with way node lookups, a k-nearest-neighbor
  place query backed by an R-tree, and parsed opening hours per place.
- Place filters: `has_opening_hours`, `contains_any_tag`, `place_type_filter`.

Usage:
------
    from heatroute.data.osm_data import load_osm_file, place_type_filter
    osm_data = load_osm_file(OSM_FILE)
    places = osm_data.k_nearest_neighbor(start, 5, 1000.0, place_type_filter(["supermarket"]))

Dependencies:
-------------
- `xml.etree.ElementTree`: Streaming parse of the OSM XML.
- `osmnx`: Great-circle distances.
- `rtree`, `shapely`: Spatial index over the places.
"""


import logging
import xml.etree.ElementTree as ET
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

import osmnx as ox
from shapely.geometry import Point

from heatroute.core.config import OPENING_HOURS_KEY, PLACE_TYPES
from heatroute.core.data_types import Place, WayNode
from heatroute.core.errors import OSMDataError
from heatroute.data.opening_hours import OpeningHours, parse_opening_hours
from heatroute.utils.rtree_structure import build_rtree, find_within

logger = logging.getLogger(__name__)

PlacePredicate = Callable[[Place], bool]

# Tags that carry no meaning as a place on their own
_GEOMETRY_ONLY_TAGS = {"created_by", "source", "fixme", "FIXME", "note"}


class OSMData:
    """
    Read-only way and place index over an OSM extract.

    Attributes:
        nodes (Dict[int, Point]): Location of every node.
        ways (Dict[int, Tuple[int, ...]]): Ordered node refs of every way.
        places (List[Place]): Tagged nodes in file order.
    """

    def __init__(
        self,
        nodes: Dict[int, Point],
        node_tags: Dict[int, Dict[str, str]],
        ways: Dict[int, Tuple[int, ...]]
    ) -> None:
        self.nodes = nodes
        self.ways = ways

        self.places: List[Place] = [
            Place(node_id, nodes[node_id], tags)
            for node_id, tags in node_tags.items()
            if node_id in nodes and set(tags) - _GEOMETRY_ONLY_TAGS
        ]
        self._place_index: Dict[int, Place] = {p.id: p for p in self.places}
        self._opening_hours: Dict[int, OpeningHours] = {}
        for place in self.places:
            text = place.tags.get(OPENING_HOURS_KEY)
            if text:
                parsed = parse_opening_hours(text)
                if parsed is not None:
                    self._opening_hours[place.id] = parsed

        # item ids are list positions, so intersection order is file order
        self._rtree = build_rtree((i, p.location) for i, p in enumerate(self.places))
        logger.info(
            f"OSM data indexed: {len(self.nodes)} nodes, {len(self.ways)} ways, "
            f"{len(self.places)} places ({len(self._opening_hours)} with opening hours)."
        )

    # --- Way index ---

    def way_nodes(self, way_id: int) -> List[WayNode]:
        """Ordered nodes of a way with their locations; unknown refs are dropped."""
        return [WayNode(ref, self.nodes[ref]) for ref in self.ways.get(way_id, ()) if ref in self.nodes]

    def is_cyclic_way(self, way_id: int) -> bool:
        refs = self.ways.get(way_id, ())
        return len(refs) > 1 and refs[0] == refs[-1]

    def contains_node(self, node_id: Optional[int]) -> bool:
        return node_id is not None and node_id in self.nodes

    # --- Place index ---

    def place(self, place_id: int) -> Optional[Place]:
        return self._place_index.get(place_id)

    def opening_hours(self, place_id: int, day: date) -> List[Tuple[datetime, datetime]]:
        """
        Opening windows of a place on `day`.

        Returns:
            List[Tuple[datetime, datetime]]: Disjoint (open, close) windows;
            empty if the place has no (parsable) opening hours or is closed.
        """
        hours = self._opening_hours.get(place_id)
        return hours.windows(day) if hours is not None else []

    def has_parsed_opening_hours(self, place_id: int) -> bool:
        return place_id in self._opening_hours

    def k_nearest_neighbor(
        self,
        point: Point,
        k: int,
        max_distance: float,
        predicate: Optional[PlacePredicate] = None
    ) -> List[Place]:
        """
        Returns up to `k` places within `max_distance` of `point`, nearest first.

        Args:
            point (Point): Query location.
            k (int): Maximum number of places.
            max_distance (float): Maximum great-circle distance in meters.
            predicate (Optional[PlacePredicate]): Filter the places must pass.

        Returns:
            List[Place]: Matching places ordered by distance; ties keep file order.
        """
        if k <= 0:
            return []

        candidates: List[Tuple[float, int, Place]] = []
        for i in find_within(self._rtree, point.x, point.y, max_distance):
            place = self.places[i]
            if predicate is not None and not predicate(place):
                continue
            distance = float(ox.distance.great_circle(point.y, point.x, place.location.y, place.location.x))
            if distance <= max_distance:
                candidates.append((distance, i, place))

        candidates.sort(key=lambda c: (c[0], c[1]))
        return [place for _, _, place in candidates[:k]]


# --- Place filters ---

def has_opening_hours(place: Place) -> bool:
    return bool(place.tags.get(OPENING_HOURS_KEY))


def contains_any_tag(tags: Iterable[Tuple[str, str]]) -> PlacePredicate:
    wanted = set(tags)
    return lambda place: any((key, value) in wanted for key, value in place.tags.items())


def place_type_filter(place_types: Iterable[str]) -> PlacePredicate:
    """
    Predicate matching places of the given types that declare opening hours.

    Args:
        place_types (Iterable[str]): Keys of `PLACE_TYPES`.

    Returns:
        PlacePredicate: The combined filter.

    Raises:
        ValueError: If a place type is unknown.
    """
    place_types = list(place_types)
    unknown = [t for t in place_types if t not in PLACE_TYPES]
    if unknown:
        raise ValueError(f"unsupported place type(s): {', '.join(unknown)}")

    matches_type = contains_any_tag(PLACE_TYPES[t] for t in place_types)
    return lambda place: matches_type(place) and has_opening_hours(place)


# --- Loading ---

def load_osm_file(path: Union[str, Path]) -> OSMData:
    """
    Streams an OSM XML file into an `OSMData` index.

    Args:
        path (Union[str, Path]): Location of the `.osm` file.

    Returns:
        OSMData: The indexed data.

    Raises:
        OSMDataError: If the file cannot be read or is not valid OSM XML.
    """
    logger.info(f"Reading OSM data from {path}...")

    nodes: Dict[int, Point] = {}
    node_tags: Dict[int, Dict[str, str]] = {}
    ways: Dict[int, Tuple[int, ...]] = {}

    try:
        for _, elem in ET.iterparse(str(path), events=("end",)):
            if elem.tag == "node":
                node_id = int(elem.get("id"))
                nodes[node_id] = Point(float(elem.get("lon")), float(elem.get("lat")))
                tags = _tags(elem)
                if tags:
                    node_tags[node_id] = tags
                elem.clear()
            elif elem.tag == "way":
                way_id = int(elem.get("id"))
                ways[way_id] = tuple(int(nd.get("ref")) for nd in elem.iter("nd"))
                elem.clear()
            elif elem.tag == "relation":
                elem.clear()
    except (OSError, ET.ParseError) as e:
        raise OSMDataError(f"could not read OSM file {path}: {e}") from e
    except (TypeError, ValueError) as e:
        raise OSMDataError(f"malformed element in OSM file {path}: {e}") from e

    return OSMData(nodes, node_tags, ways)


def _tags(elem: ET.Element) -> Dict[str, str]:
    return {tag.get("k"): tag.get("v") for tag in elem.iter("tag")}
