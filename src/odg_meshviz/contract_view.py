"""Contract (table) view: one node per table, one edge per foreign key."""

from __future__ import annotations

import logging
from typing import Any

from odg_meshviz.config import MeshConfig
from odg_meshviz.dependency import sorted_tables
from odg_meshviz.enums import EdgeKind, EntityKind, NodeKind
from odg_meshviz.layout import table_grid
from odg_meshviz.models import (
    Column,
    DataContract,
    Edge,
    EdgeData,
    GridCell,
    Node,
    Position,
    RecordRef,
    SchemaElement,
    split_reference,
)
from odg_meshviz.settings import LayoutSettings, get_layout_settings

logger = logging.getLogger(__name__)

CONTRACT_BANNER = "DATA CONTRACT"
CONTRACT_BANNER_COLOR = "#e5e7eb"


def _contract_icon(contract: DataContract, config: MeshConfig) -> str | None:
    icons = config.icon_map
    technology = contract.technology
    return icons.get("table") or (icons.get(technology) if technology else None) or icons.get("dataProduct")


def _column_payload(column: Column) -> dict[str, Any]:
    return {
        "name": column.name,
        "physicalName": column.physical_name,
        "logicalType": column.logical_type,
        "physicalType": column.physical_type,
        "primaryKey": column.primary_key,
        "primaryKeyPosition": column.primary_key_position,
        "hasRelationships": any(rel.is_foreign_key for rel in column.relationships),
    }


def _table_payload(contract: DataContract, table: SchemaElement, position: int, config: MeshConfig) -> dict[str, Any]:
    return {
        "contractId": contract.id,
        "contractName": contract.name,
        "status": contract.status,
        "version": contract.version,
        "label": table.name or table.physical_name or f"Schema {position + 1}",
        "tableName": table.name,
        "description": table.description or "",
        "banner": CONTRACT_BANNER,
        "bannerColor": CONTRACT_BANNER_COLOR,
        "icon": _contract_icon(contract, config),
        "columns": [_column_payload(column) for column in table.table_columns],
    }


def build_table_nodes(
    contract: DataContract,
    config: MeshConfig,
    settings: LayoutSettings | None = None,
) -> list[Node]:
    """Table nodes in dependency order on the contract grid.

    A contract without tables is shown as a single node keyed by its id.
    """
    settings = settings or get_layout_settings()
    ref = RecordRef(id=str(contract.id), kind=EntityKind.DATA_CONTRACT)

    if not contract.tables:
        return [
            Node(
                id=str(contract.id),
                kind=NodeKind.DATA_CONTRACT,
                position=Position(x=0, y=0),
                grid=GridCell(row=0, col=0),
                data={
                    "contractId": contract.id,
                    "label": contract.name or str(contract.id),
                    "description": "",
                    "banner": CONTRACT_BANNER,
                    "bannerColor": CONTRACT_BANNER_COLOR,
                    "icon": _contract_icon(contract, config),
                    "columns": [],
                },
                ref=ref,
            )
        ]

    tables = sorted_tables(contract)
    nodes = []
    for position, (table, placement) in enumerate(zip(tables, table_grid(tables, settings), strict=True)):
        data = _table_payload(contract, table, position, config)
        data["verticalGap"] = settings.grid_gap
        data["verticalGapCenter"] = placement.vertical_gap_center
        nodes.append(
            Node(
                id=f"{contract.id}-schema-{position}",
                kind=NodeKind.DATA_CONTRACT,
                position=placement.position,
                grid=placement.grid,
                data=data,
                ref=ref,
            )
        )
    return nodes


def _column_name(ref: str) -> str:
    _, column = split_reference(ref)
    return column if column is not None else ref


def build_foreign_key_edges(contract: DataContract, nodes: list[Node]) -> list[Edge]:
    """Edges for table-level and column-level foreign keys.

    ``nodes`` are the table nodes of ``build_table_nodes``, in the same order.
    A repeated table name resolves to its first table, as in the dependency
    graph. Foreign keys whose target table has no node are skipped; they are
    reported by the dependency builder.
    """
    tables = sorted_tables(contract)
    node_by_table: dict[str, Node] = {}
    for table, node in zip(tables, nodes, strict=False):
        if table.name:
            node_by_table.setdefault(table.name, node)
    edges: list[Edge] = []

    for table, node in zip(tables, nodes, strict=False):
        for rel_index, rel in enumerate(table.relationships):
            if not rel.is_foreign_key or not rel.from_ or not rel.to:
                continue
            for pair_index, from_ref in enumerate(rel.from_):
                to_ref = rel.to[pair_index] if pair_index < len(rel.to) else None
                if not from_ref or not to_ref:
                    continue
                from_column = _column_name(from_ref)
                target_table, to_column = split_reference(to_ref)
                target_node = node_by_table.get(target_table)
                if target_node is None:
                    continue
                target = contract.table(target_table)
                source_col = table.column(from_column)
                target_col = target.column(to_column) if target else None
                edges.append(
                    Edge(
                        id=f"table-rel-{node.id}-{rel_index}-{pair_index}",
                        source=node.id,
                        target=target_node.id,
                        kind=EdgeKind.FOREIGN_KEY,
                        source_handle=f"{(source_col.handle_name if source_col else None) or from_column}-source",
                        target_handle=f"{(target_col.handle_name if target_col else None) or to_column}-target",
                        data=EdgeData(
                            description=(
                                f"The '{table.name}' table links to '{target_table}' "
                                f"using the '{from_column}' composite field."
                            )
                        ),
                    )
                )

        for column_index, column in enumerate(table.table_columns):
            for rel_index, rel in enumerate(column.relationships):
                if not rel.is_foreign_key or not rel.to:
                    continue
                for target_index, to_ref in enumerate(rel.to):
                    target_table, to_column = split_reference(to_ref)
                    target_node = node_by_table.get(target_table)
                    if target_node is None:
                        continue
                    target = contract.table(target_table)
                    target_col = target.column(to_column) if target else None
                    edge_id = f"col-rel-{node.id}-{column.name}-{column_index}-{rel_index}"
                    if len(rel.to) > 1:
                        edge_id = f"{edge_id}-{target_index}"
                    edges.append(
                        Edge(
                            id=edge_id,
                            source=node.id,
                            target=target_node.id,
                            kind=EdgeKind.FOREIGN_KEY,
                            source_handle=f"{column.handle_name}-source",
                            target_handle=f"{(target_col.handle_name if target_col else None) or to_column}-target",
                            data=EdgeData(
                                description=(
                                    f"The '{table.name}' table links to '{target_table}' "
                                    f"using the '{column.name}' field."
                                )
                            ),
                        )
                    )

    logger.debug(f"Contract {contract.id}: {len(nodes)} tables, {len(edges)} foreign key edges")
    return edges
