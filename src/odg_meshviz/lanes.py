"""Routing lane assignment for relationship edges.

A deterministic heuristic, not an optimal router: each edge gets a lane from
its index and flags derived from the grid cells of its endpoints. The renderer
uses them to decide whether to detour through the horizontal gap below a row
or draw the direct step path.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from odg_meshviz.models import Edge, GridCell
from odg_meshviz.settings import LayoutSettings, get_layout_settings


def lane_offsets(edge_index: int, settings: LayoutSettings | None = None) -> tuple[int, int, int]:
    """``(lane_idx, gap_offset, step_offset)`` for the n-th edge.

    With five lanes the gap offsets are -40, -20, 0, 20, 40 around the gap
    centre and the step offsets 30, 45, 60, 75, 90.
    """
    settings = settings or get_layout_settings()
    lane_idx = edge_index % settings.lane_count
    gap_offset = (lane_idx - settings.lane_count // 2) * settings.lane_spacing
    step_offset = settings.step_base + lane_idx * settings.step_increment
    return lane_idx, gap_offset, step_offset


def allocate_lanes(
    edges: Sequence[Edge],
    cells: Mapping[str, GridCell],
    gap_centers: Mapping[str, int] | None = None,
    settings: LayoutSettings | None = None,
) -> list[Edge]:
    """Return copies of ``edges`` carrying lane metadata.

    Args:
        edges: Edges in render order; the position in this list picks the lane.
        cells: Grid cell per node id.
        gap_centers: y of the gap below each source node's row, when known.
        settings: Layout settings.
    """
    gap_centers = gap_centers or {}
    result = []
    for index, edge in enumerate(edges):
        lane_idx, gap_offset, step_offset = lane_offsets(index, settings)
        source = cells.get(edge.source)
        target = cells.get(edge.target)

        is_long_distance = is_same_row = is_right_to_left = False
        if source is not None and target is not None:
            is_long_distance = abs(source.col - target.col) > 1
            is_same_row = source.row == target.row
            is_right_to_left = target.col < source.col
        route_through_gap = (is_same_row and is_right_to_left) or is_long_distance

        gap_center_y = gap_centers.get(edge.source)
        gap_y = gap_center_y + gap_offset if route_through_gap and gap_center_y is not None else None

        data = edge.data.model_copy(
            update={
                "lane_idx": lane_idx,
                "gap_offset": gap_offset,
                "step_offset": step_offset,
                "is_long_distance": is_long_distance,
                "is_same_row": is_same_row,
                "is_right_to_left": is_right_to_left,
                "route_through_gap": route_through_gap,
                "gap_center_y": gap_center_y,
                "gap_y": gap_y,
            }
        )
        result.append(edge.model_copy(update={"data": data}))
    return result
