"""Domain/text filtering of the mesh view with one-hop neighbor expansion."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Sequence

from odg_meshviz.config import MeshConfig
from odg_meshviz.layout import stack_in_columns
from odg_meshviz.models import Node
from odg_meshviz.resolver import AgreementLink
from odg_meshviz.settings import LayoutSettings

logger = logging.getLogger(__name__)


def _domain(node: Node) -> str | None:
    return node.data.get("subtitle")


def _label(node: Node) -> str:
    return node.data.get("label") or ""


def matches(node: Node, domains: Collection[str], text: str) -> bool:
    """Primary match: domain selected (or none selected) and name contains text."""
    matches_domain = not domains or _domain(node) in domains
    matches_name = text == "" or text.lower() in _label(node).lower()
    return matches_domain and matches_name


def neighbor_ids(primary_ids: set[str], links: Iterable[AgreementLink]) -> set[str]:
    """Ids one usage agreement away from a primary match, in either role."""
    neighbors: set[str] = set()
    for link in links:
        if link.provider_id in primary_ids:
            neighbors.add(link.consumer_id)
        if link.consumer_id in primary_ids:
            neighbors.add(link.provider_id)
    return neighbors


def visible_ids(
    nodes: Sequence[Node],
    links: Iterable[AgreementLink],
    domains: Collection[str],
    text: str,
) -> set[str]:
    """Ids of the nodes the filter keeps."""
    if not domains and text == "":
        return {node.id for node in nodes}

    primary_ids = {node.id for node in nodes if matches(node, domains, text)}
    if not primary_ids:
        return set()
    node_ids = {node.id for node in nodes}
    return primary_ids | (neighbor_ids(primary_ids, links) & node_ids)


def filter_mesh(
    nodes: Sequence[Node],
    links: Iterable[AgreementLink],
    domains: Collection[str],
    text: str,
    config: MeshConfig,
    settings: LayoutSettings | None = None,
) -> list[Node]:
    """Visible subset of the mesh, re-laid-out by tier column.

    With no active filter the nodes are returned untouched. Otherwise the
    primary matches plus their neighbors are sorted by (tier column, domain,
    name) and stacked again so the filtered view stays column aligned.
    """
    if not domains and text == "":
        return list(nodes)

    keep = visible_ids(nodes, links, domains, text)
    if not keep:
        logger.debug(f"Filter domains={sorted(domains)} text={text!r} matched nothing")
        return []

    def sort_key(node: Node) -> tuple[int, str, str]:
        return config.column_for(node.data.get("tier")), _domain(node) or "", _label(node)

    ordered = sorted((node for node in nodes if node.id in keep), key=sort_key)
    placements = stack_in_columns([sort_key(node)[0] for node in ordered], settings)
    return [
        node.model_copy(update={"position": position, "grid": grid})
        for node, (position, grid) in zip(ordered, placements, strict=True)
    ]
