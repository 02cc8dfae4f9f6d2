"""
R-Tree Spatial Index Utilities

This module provides functions to build and query R-tree indices over point
locations, such as the tagged places of the OSM extract.

Functions
---------
- build_rtree(...): Builds an R-tree index over (id, Point) pairs.
- find_within(...): Returns the ids of the indexed points within a radius (meters).

Dependencies
------------
- rtree: Efficient spatial indexing.
- shapely: Point geometries (x = longitude, y = latitude).
"""


import logging
import math
from typing import Iterable, List, Tuple

from rtree.index import Index
from shapely.geometry import Point

logger = logging.getLogger(__name__)

METERS_PER_DEGREE = 111_320.0


def build_rtree(points: Iterable[Tuple[int, Point]]) -> Index:
    """
    Builds an R-tree spatial index over point locations.

    Args:
        points (Iterable[Tuple[int, Point]]): Pairs of integer id and location.

    Returns:
        Index: R-tree index with the ids as item ids.
    """
    rtree_idx = Index()
    count = 0
    for item_id, point in points:
        rtree_idx.insert(item_id, (point.x, point.y, point.x, point.y))
        count += 1
    logger.debug(f"Built R-tree index with {count} points.")
    return rtree_idx


def find_within(rtree_idx: Index, lon: float, lat: float, distance: float) -> List[int]:
    """
    Returns the ids of points inside the bounding box of a circle.

    The box is an overestimate of the circle; callers filter the candidates by
    their exact great-circle distance.

    Args:
        rtree_idx (Index): Index built by `build_rtree`.
        lon (float): Longitude of the circle center.
        lat (float): Latitude of the circle center.
        distance (float): Radius in meters.

    Returns:
        List[int]: Ids of the candidate points in index order.
    """
    dlat = distance / METERS_PER_DEGREE
    dlon = distance / (METERS_PER_DEGREE * max(math.cos(math.radians(lat)), 1e-6))
    return sorted(rtree_idx.intersection((lon - dlon, lat - dlat, lon + dlon, lat + dlat)))
