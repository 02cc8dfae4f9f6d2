from typing import Dict, List, Tuple

import pytest
from shapely.geometry import Point

from heatroute.core.data_types import SegmentId, WayNode
from heatroute.processing.segment_matcher import _search, edge_segments, match_way_nodes


class Ways:
    def __init__(self, ways: Dict[int, Tuple[int, ...]], nodes: Dict[int, Point]) -> None:
        self.ways = ways
        self.nodes = nodes

    def way_nodes(self, way_id: int) -> List[WayNode]:
        return [WayNode(ref, self.nodes[ref]) for ref in self.ways.get(way_id, ())]

    def is_cyclic_way(self, way_id: int) -> bool:
        refs = self.ways.get(way_id, ())
        return len(refs) > 1 and refs[0] == refs[-1]


NODES = {
    1: Point(8.4000, 49.0000),
    2: Point(8.4010, 49.0000),
    3: Point(8.4020, 49.0000),
    4: Point(8.4030, 49.0000),
}
WAYS = Ways({7: (1, 2, 3, 4), 8: (1, 2, 3, 1)}, NODES)


def points(*ids):
    return [NODES[i] for i in ids]


def test_forward_edge():
    assert edge_segments(WAYS, 7, points(1, 2, 3, 4), 1, 4) == [
        SegmentId(7, (1, 2)), SegmentId(7, (2, 3)), SegmentId(7, (3, 4))
    ]


def test_backward_edge():
    assert edge_segments(WAYS, 7, points(4, 3, 2, 1), 4, 1) == [
        SegmentId(7, (4, 3)), SegmentId(7, (3, 2)), SegmentId(7, (2, 1))
    ]


def test_exact_geometry_has_no_deviation():
    way_nodes = WAYS.way_nodes(7)
    forward = _search(way_nodes, False, points(1, 2, 3, 4), False, 1, 4)
    assert forward.exact_match
    assert forward.avg_deviation == pytest.approx(0.0, abs=1e-6)
    backward = _search(way_nodes, False, points(4, 3, 2, 1), True, 4, 1)
    assert backward.exact_match
    assert backward.avg_deviation == pytest.approx(0.0, abs=1e-6)


def test_partial_edge():
    assert edge_segments(WAYS, 7, points(2, 3), 2, 3) == [SegmentId(7, (2, 3))]


def test_edge_across_seam_of_cyclic_way():
    assert edge_segments(WAYS, 8, points(3, 1), 3, 1) == [SegmentId(8, (3, 1))]


def test_swapped_anchors_are_repaired():
    # base node not on the way, adjacent node is
    nodes = match_way_nodes(WAYS, 7, points(4, 3), 99, 4)
    assert [n.id for n in nodes] == [4, 3]


def test_unknown_way_yields_no_segments():
    assert edge_segments(WAYS, 42, points(1, 2), 1, 2) == []
    assert match_way_nodes(WAYS, 42, points(1, 2), 1, 2) is None


def test_length_mismatch_yields_no_segments():
    # the way ends before all geometry points are matched
    assert edge_segments(WAYS, 7, points(3, 4, 4, 4), 3, None) == []
