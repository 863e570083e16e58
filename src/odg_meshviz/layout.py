"""Deterministic grid coordinates for mesh and contract views.

Everything here is positional arithmetic; nothing is mutated.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from odg_meshviz.models import GridCell, Position, SchemaElement
from odg_meshviz.settings import LayoutSettings, get_layout_settings


def stack_in_columns(
    column_numbers: Sequence[int],
    settings: LayoutSettings | None = None,
) -> list[tuple[Position, GridCell]]:
    """Place items into 1-based layout columns, stacking in input order.

    ``x = (column - 1) * column_spacing``; each column keeps its own running
    ``y``, advanced by ``node_height + vertical_gap`` per item.
    """
    settings = settings or get_layout_settings()
    next_row: dict[int, int] = {}
    placements = []
    for column in column_numbers:
        row = next_row.get(column, 0)
        next_row[column] = row + 1
        position = Position(x=(column - 1) * settings.column_spacing, y=row * settings.vertical_step)
        placements.append((position, GridCell(row=row, col=column - 1)))
    return placements


def grid_columns(count: int) -> int:
    """Column count of the table grid: 1, 2, then ceil(sqrt(n))."""
    if count <= 1:
        return 1
    if count == 2:
        return 2
    return math.ceil(math.sqrt(count))


def table_cell_size(tables: Sequence[SchemaElement], settings: LayoutSettings | None = None) -> tuple[int, int]:
    """Cell width/height shared by all tables of one contract.

    Width grows with the longest column name plus the longest logical type,
    height with the column count; the largest table sets the cell.
    """
    settings = settings or get_layout_settings()
    max_width = settings.table_min_width
    max_height = settings.table_min_height

    for table in tables:
        columns = table.table_columns
        name_len = max((len(c.physical_name or c.name or "") for c in columns), default=0)
        type_len = max((len(c.logical_type or "") for c in columns), default=0)
        width = (name_len + type_len) * settings.char_width + settings.width_padding
        width = min(settings.table_max_width, max(settings.table_min_width, width))
        height = settings.table_base_height + len(columns) * settings.row_height
        max_width = max(max_width, width)
        max_height = max(max_height, height)

    return max_width, max_height


@dataclass(frozen=True)
class TablePlacement:
    position: Position
    grid: GridCell
    vertical_gap_center: int


def table_grid(tables: Sequence[SchemaElement], settings: LayoutSettings | None = None) -> list[TablePlacement]:
    """Place already ordered tables row by row on the contract grid."""
    settings = settings or get_layout_settings()
    width, height = table_cell_size(tables, settings)
    horizontal_step = width + settings.grid_gap
    vertical_step = height + settings.grid_gap
    cols = grid_columns(len(tables))

    placements = []
    for index in range(len(tables)):
        row, col = divmod(index, cols)
        placements.append(
            TablePlacement(
                position=Position(x=col * horizontal_step, y=row * vertical_step),
                grid=GridCell(row=row, col=col, total_cols=cols),
                vertical_gap_center=row * vertical_step + height + settings.grid_gap // 2,
            )
        )
    return placements


def lineage_positions(
    upstream: int,
    downstream: int,
    settings: LayoutSettings | None = None,
) -> tuple[list[Position], list[Position]]:
    """Providers stacked one column left of the centre, consumers one column right."""
    settings = settings or get_layout_settings()
    left = [Position(x=-settings.column_spacing, y=i * settings.lineage_row_step) for i in range(upstream)]
    right = [Position(x=settings.column_spacing, y=i * settings.lineage_row_step) for i in range(downstream)]
    return left, right
