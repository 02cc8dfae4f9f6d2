"""
Segment Matcher

Reconciles a routing graph edge with the authoritative node order of its OSM
way and yields the way segments the edge traverses.

A graph edge reports a base node, an adjacent node and its geometry points,
but the anchor ids are not always reliable and a cyclic way offers two paths
between the same anchors. The matcher therefore walks the way in both
directions starting at the base node and picks the direction whose nodes line
up with the edge geometry.

Functions
---------
- match_way_nodes(...): Resolves the ordered way nodes of an edge, or None.
- edge_segments(...): Slices the resolved nodes into `SegmentId`s.

Resolution Order
----------------
1. Both directions exact: forward for a loop (base == adjacent), otherwise
   the smaller average deviation (forward on ties).
2. Exactly one direction exact: that direction.
3. Only forward has N nodes: forward.
4. Both have N nodes: the smaller average deviation (forward on ties).
5. Only backward has N nodes: backward.
6. Otherwise: no match.

A direction is exact if it found N nodes and its last node is the adjacent
anchor.
"""

import logging
from itertools import dropwhile, islice
from typing import List, NamedTuple, Optional, Protocol, Sequence

import osmnx as ox
from shapely.geometry import Point

from heatroute.core.data_types import SegmentId, WayNode

logger = logging.getLogger(__name__)


class WayIndex(Protocol):
    def way_nodes(self, way_id: int) -> List[WayNode]: ...

    def is_cyclic_way(self, way_id: int) -> bool: ...


class _SearchResult(NamedTuple):
    exact_match: bool
    avg_deviation: float
    nodes: List[WayNode]


def _search(
    way_nodes: Sequence[WayNode],
    cyclic: bool,
    points: Sequence[Point],
    reverse: bool,
    base_id: int,
    adj_id: Optional[int]
) -> _SearchResult:
    n = len(points)
    nodes = list(reversed(way_nodes)) if reverse else list(way_nodes)
    if cyclic:
        # a walk across the seam node continues at the start of the way
        nodes = nodes * 2

    walk = list(islice(dropwhile(lambda node: node.id != base_id, nodes), n))

    deviation = 0.0
    exact_match = False
    for i, node in enumerate(walk):
        point = points[i]
        deviation += float(ox.distance.great_circle(point.y, point.x, node.location.y, node.location.x))
        if adj_id is not None and node.id == adj_id and i == n - 1:
            exact_match = True

    return _SearchResult(exact_match, deviation / n if n else 0.0, walk)


def match_way_nodes(
    way_index: WayIndex,
    way_id: int,
    points: Sequence[Point],
    base_id: int,
    adj_id: Optional[int]
) -> Optional[List[WayNode]]:
    """
    Resolves the ordered way nodes an edge passes.

    Args:
        way_index (WayIndex): Source of the authoritative way node order.
        way_id (int): OSM id of the edge's way.
        points (Sequence[Point]): Edge geometry, base to adjacent node.
        base_id (int): OSM id of the base anchor node.
        adj_id (Optional[int]): OSM id of the adjacent anchor node, if known.

    Returns:
        Optional[List[WayNode]]: The matched nodes, or None if no direction matches.
    """
    way_nodes = way_index.way_nodes(way_id)
    node_ids = {node.id for node in way_nodes}

    contains_base = base_id in node_ids
    contains_adj = adj_id is not None and adj_id in node_ids

    if not contains_base and contains_adj:
        # known upstream defect: the anchors are swapped
        base_id, adj_id = adj_id, base_id
    elif not contains_base:
        logger.debug(f"base node {base_id} and adjacent node {adj_id} are not in way {way_id}")
        return None

    cyclic = way_index.is_cyclic_way(way_id)
    forward = _search(way_nodes, cyclic, points, False, base_id, adj_id)
    backward = _search(way_nodes, cyclic, points, True, base_id, adj_id)
    n = len(points)

    if forward.exact_match and backward.exact_match:
        if adj_id is not None and base_id == adj_id:
            return forward.nodes
        return forward.nodes if forward.avg_deviation <= backward.avg_deviation else backward.nodes
    if forward.exact_match:
        return forward.nodes
    if backward.exact_match:
        return backward.nodes

    forward_complete = len(forward.nodes) == n
    backward_complete = len(backward.nodes) == n
    if forward_complete and not backward_complete:
        return forward.nodes
    if forward_complete and backward_complete:
        return forward.nodes if forward.avg_deviation <= backward.avg_deviation else backward.nodes
    if backward_complete:
        return backward.nodes

    logger.debug(f"no match found for way {way_id} (base={base_id}, adj={adj_id}, points={n})")
    return None


def edge_segments(
    way_index: WayIndex,
    way_id: int,
    points: Sequence[Point],
    base_id: int,
    adj_id: Optional[int]
) -> List[SegmentId]:
    """
    Returns the way segments an edge traverses, in travel order.

    The adjacent anchor is only passed on to the matcher if it belongs to the
    way. An unmatched edge, or a match whose length differs from the number
    of geometry points, yields an empty list.

    Args:
        way_index (WayIndex): Source of the authoritative way node order.
        way_id (int): OSM id of the edge's way.
        points (Sequence[Point]): Edge geometry, base to adjacent node.
        base_id (int): OSM id of the base anchor node.
        adj_id (Optional[int]): OSM id of the adjacent anchor node.

    Returns:
        List[SegmentId]: Consecutive node pairs of the matched nodes.
    """
    way_node_ids = {node.id for node in way_index.way_nodes(way_id)}
    known_adj = adj_id if adj_id in way_node_ids else None

    nodes = match_way_nodes(way_index, way_id, points, base_id, known_adj)
    if nodes is None or len(nodes) != len(points):
        logger.debug(
            f"different number of way nodes found for way {way_id}: "
            f"nodes={[n.id for n in nodes or []]}, points={len(points)}"
        )
        return []

    return [SegmentId(way_id, (a.id, b.id)) for a, b in zip(nodes, nodes[1:])]
