"""Tests for edge lane allocation."""

from __future__ import annotations

from odg_meshviz.enums import EdgeKind
from odg_meshviz.lanes import allocate_lanes, lane_offsets
from odg_meshviz.models import Edge, GridCell
from odg_meshviz.settings import LayoutSettings

SETTINGS = LayoutSettings()


def _edge(edge_id: str, source: str, target: str) -> Edge:
    return Edge(id=edge_id, source=source, target=target, kind=EdgeKind.FOREIGN_KEY)


class TestLaneOffsets:
    def test_five_lanes(self) -> None:
        assert [lane_offsets(i, SETTINGS) for i in range(5)] == [
            (0, -40, 30),
            (1, -20, 45),
            (2, 0, 60),
            (3, 20, 75),
            (4, 40, 90),
        ]

    def test_wraps_around(self) -> None:
        assert lane_offsets(5, SETTINGS) == lane_offsets(0, SETTINGS)
        assert lane_offsets(12, SETTINGS) == lane_offsets(2, SETTINGS)


class TestAllocateLanes:
    def setup_method(self) -> None:
        self.cells = {
            "a": GridCell(row=0, col=0, total_cols=3),
            "b": GridCell(row=0, col=2, total_cols=3),
            "c": GridCell(row=1, col=0, total_cols=3),
            "d": GridCell(row=0, col=1, total_cols=3),
        }

    def test_long_distance_routes_through_gap(self) -> None:
        [edge] = allocate_lanes([_edge("e", "a", "b")], self.cells, {"a": 250}, SETTINGS)
        assert edge.data.lane_idx == 0
        assert edge.data.is_long_distance is True
        assert edge.data.is_same_row is True
        assert edge.data.is_right_to_left is False
        assert edge.data.route_through_gap is True
        assert edge.data.gap_center_y == 250
        assert edge.data.gap_y == 210

    def test_same_row_right_to_left_routes_through_gap(self) -> None:
        edges = allocate_lanes([_edge("e0", "a", "c"), _edge("e1", "d", "a")], self.cells, {"d": 250}, SETTINGS)
        data = edges[1].data
        assert data.lane_idx == 1
        assert data.is_long_distance is False
        assert data.is_same_row is True
        assert data.is_right_to_left is True
        assert data.route_through_gap is True
        assert data.gap_y == 230

    def test_direct_path_between_rows(self) -> None:
        [edge] = allocate_lanes([_edge("e", "a", "c")], self.cells, {"a": 250}, SETTINGS)
        assert edge.data.is_same_row is False
        assert edge.data.route_through_gap is False
        assert edge.data.gap_y is None
        assert edge.data.step_offset == 30

    def test_unknown_endpoints_get_lane_only(self) -> None:
        [edge] = allocate_lanes([_edge("e", "a", "missing")], self.cells, None, SETTINGS)
        assert edge.data.is_long_distance is False
        assert edge.data.route_through_gap is False
        assert edge.data.gap_offset == -40

    def test_inputs_not_mutated(self) -> None:
        original = _edge("e", "a", "b")
        allocate_lanes([original], self.cells, {}, SETTINGS)
        assert original.data.is_long_distance is False

    def test_deterministic(self) -> None:
        edges = [_edge(f"e{i}", "a" if i % 2 else "b", "c") for i in range(8)]
        first = allocate_lanes(edges, self.cells, {"a": 10, "b": 20}, SETTINGS)
        second = allocate_lanes(edges, self.cells, {"a": 10, "b": 20}, SETTINGS)
        assert first == second
        assert [e.data.lane_idx for e in first] == [0, 1, 2, 3, 4, 0, 1, 2]
