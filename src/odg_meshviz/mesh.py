"""Mesh (data product) view: product nodes, usage agreement edges, lineage drill-down."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from odg_meshviz.config import DEFAULT_BANNER, DEFAULT_BANNER_COLOR, DEFAULT_TIER_COLOR, MeshConfig
from odg_meshviz.enums import EdgeKind, EntityKind, NodeKind
from odg_meshviz.layout import lineage_positions, stack_in_columns
from odg_meshviz.models import DataProduct, Edge, EdgeData, GridCell, Node, OutputPort, Position, RecordRef
from odg_meshviz.resolver import AgreementLink, RegistryIndex
from odg_meshviz.settings import LayoutSettings

logger = logging.getLogger(__name__)

NO_DOMAIN_COLOR = "white"


def domain_colors(domains: Sequence[str], palette: Sequence[str]) -> dict[str, str]:
    """Background colour per domain.

    A single domain (or none) stays white; otherwise sorted domains cycle
    through the palette.
    """
    ordered = sorted(set(domains))
    if len(ordered) <= 1 or not palette:
        return {domain: NO_DOMAIN_COLOR for domain in ordered}
    return {domain: palette[i % len(palette)] for i, domain in enumerate(ordered)}


def product_payload(product: DataProduct, config: MeshConfig, colors: dict[str, str]) -> dict[str, Any]:
    tier = product.tier
    tier_config = config.tier(tier)
    color = (tier_config.color if tier_config else None) or DEFAULT_TIER_COLOR
    banner = (tier_config.label if tier_config else None) or DEFAULT_BANNER
    banner_color = (
        (tier_config.banner_color or tier_config.color) if tier_config else None
    ) or DEFAULT_BANNER_COLOR
    technology = product.technology

    return {
        "id": product.id,
        "label": product.name,
        "subtitle": product.domain,
        "tier": tier,
        "color": color,
        "banner": banner,
        "bannerColor": banner_color,
        "backgroundColor": colors.get(product.domain or "", NO_DOMAIN_COLOR),
        "icon": (config.icon_map.get(technology) if technology else None) or config.icon_map.get("dataProduct"),
        "hasOutputPorts": bool(product.output_ports),
        "outputPortCount": len(product.output_ports),
    }


def build_mesh_nodes(
    index: RegistryIndex,
    config: MeshConfig,
    settings: LayoutSettings | None = None,
) -> list[Node]:
    """One node per data product, stacked in its tier column in registry order."""
    products = list(index.products.values())
    colors = domain_colors(index.available_domains(), config.domain_palette)
    placements = stack_in_columns([config.column_for(p.tier) for p in products], settings)

    return [
        Node(
            id=str(product.id),
            kind=NodeKind.DATA_PRODUCT,
            position=position,
            grid=grid,
            data=product_payload(product, config, colors),
            ref=RecordRef(id=str(product.id), kind=EntityKind.DATA_PRODUCT),
        )
        for product, (position, grid) in zip(products, placements, strict=True)
    ]


def usage_edges(links: Iterable[AgreementLink]) -> list[Edge]:
    """Provider → consumer edges for resolved usage agreements."""
    edges = []
    for link in links:
        info = link.agreement.info
        edges.append(
            Edge(
                id=link.id,
                source=link.provider_id,
                target=link.consumer_id,
                kind=EdgeKind.USAGE_AGREEMENT,
                data=EdgeData(description=info.purpose if info else None),
            )
        )
    return edges


def visible_edges(edges: Iterable[Edge], nodes: Iterable[Node]) -> list[Edge]:
    """Edges whose endpoints are both visible."""
    visible_ids = {node.id for node in nodes}
    return [edge for edge in edges if edge.source in visible_ids and edge.target in visible_ids]


def _port_payload(port: OutputPort, index: RegistryIndex, config: MeshConfig, fallback_icon: str | None) -> dict:
    contract = index.contract(port.contract_id)
    icon = None
    if contract is not None:
        table = contract.table(port.name)
        if table is not None and table.technology:
            icon = config.icon_map.get(table.technology)
        if icon is None and contract.technology:
            icon = config.icon_map.get(contract.technology)

    return {
        "id": port.id,
        "name": port.name,
        "version": port.version,
        "contractId": port.contract_id,
        "contractResolved": contract is not None,
        "icon": icon or config.icon_map.get("table") or fallback_icon,
    }


def _with_layout(node: Node, position: Position, grid: GridCell) -> Node:
    return node.model_copy(update={"position": position, "grid": grid})


def build_lineage_view(
    index: RegistryIndex,
    product_id: str,
    mesh_nodes: Sequence[Node],
    config: MeshConfig,
    settings: LayoutSettings | None = None,
) -> tuple[list[Node], list[Edge]] | None:
    """Drill-down around one product: providers left, the product centred, consumers right.

    Returns:
        Nodes and edges of the view, or None when the product has no node.
    """
    by_id = {node.id: node for node in mesh_nodes}
    selected = by_id.get(product_id)
    product = index.product(product_id)
    if selected is None or product is None:
        return None

    links = [link for link in index.links() if product_id in (link.provider_id, link.consumer_id)]
    upstream: list[str] = []
    downstream: list[str] = []
    for link in links:
        if link.consumer_id == product_id and link.provider_id != product_id and link.provider_id not in upstream:
            upstream.append(link.provider_id)
        if link.provider_id == product_id and link.consumer_id != product_id and link.consumer_id not in downstream:
            downstream.append(link.consumer_id)

    # A product both upstream and downstream is shown once, on the provider side
    downstream = [node_id for node_id in downstream if node_id not in upstream]
    left, right = lineage_positions(len(upstream), len(downstream), settings)

    centre_data = dict(selected.data)
    centre_data["outputPorts"] = [
        _port_payload(port, index, config, selected.data.get("icon")) for port in product.output_ports
    ]
    nodes = [
        selected.model_copy(
            update={
                "kind": NodeKind.DATA_PRODUCT_DETAIL,
                "position": Position(x=0, y=0),
                "grid": GridCell(row=0, col=1, total_cols=3),
                "data": centre_data,
            }
        )
    ]
    for row, (node_id, position) in enumerate(zip(upstream, left, strict=True)):
        nodes.append(_with_layout(by_id[node_id], position, GridCell(row=row, col=0, total_cols=3)))
    for row, (node_id, position) in enumerate(zip(downstream, right, strict=True)):
        nodes.append(_with_layout(by_id[node_id], position, GridCell(row=row, col=2, total_cols=3)))

    logger.debug(f"Lineage view of {product_id}: {len(upstream)} upstream, {len(downstream)} downstream")
    return nodes, usage_edges(links)
