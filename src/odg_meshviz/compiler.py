"""Registry graph compiler.

``compile_registry`` is a pure function of (records, config, filters,
selection): it classifies and indexes the records, picks the view implied by
the selection (mesh, lineage drill-down or contract tables), lays it out and
assigns edge lanes. Nothing is retained between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from odg_meshviz.classifier import classify_registry
from odg_meshviz.config import MeshConfig
from odg_meshviz.contract_view import build_foreign_key_edges, build_table_nodes
from odg_meshviz.dependency import dependency_warnings
from odg_meshviz.enums import EntityKind, ViewKind
from odg_meshviz.exceptions import RegistryParseError
from odg_meshviz.filtering import filter_mesh
from odg_meshviz.lanes import allocate_lanes
from odg_meshviz.loader import parse_registry_text
from odg_meshviz.mesh import build_lineage_view, build_mesh_nodes, usage_edges, visible_edges
from odg_meshviz.models import CompileResult, Edge, Filters, Node, Selection
from odg_meshviz.resolver import RegistryIndex, build_index, reference_warnings
from odg_meshviz.settings import LayoutSettings
from odg_meshviz.validation import SchemaValidator, validate_registry

logger = logging.getLogger(__name__)


def _select_view(
    index: RegistryIndex,
    config: MeshConfig,
    filters: Filters,
    selection: Selection,
    settings: LayoutSettings | None,
) -> tuple[ViewKind, list[Node], list[Edge]]:
    if selection.id is not None and selection.kind is EntityKind.DATA_CONTRACT:
        contract = index.contract(selection.id)
        if contract is not None:
            nodes = build_table_nodes(contract, config, settings)
            return ViewKind.CONTRACT, nodes, build_foreign_key_edges(contract, nodes)
        logger.warning(f"Selected contract {selection.id} is not in the registry; showing mesh")

    mesh_nodes = build_mesh_nodes(index, config, settings)

    if selection.id is not None and selection.kind is EntityKind.DATA_PRODUCT:
        lineage = build_lineage_view(index, selection.id, mesh_nodes, config, settings)
        if lineage is not None:
            nodes, edges = lineage
            return ViewKind.LINEAGE, nodes, edges
        logger.warning(f"Selected data product {selection.id} is not in the registry; showing mesh")

    links = index.links()
    nodes = filter_mesh(mesh_nodes, links, filters.domains, filters.text, config, settings)
    return ViewKind.MESH, nodes, visible_edges(usage_edges(links), nodes)


def compile_registry(
    records: Sequence[Any],
    config: MeshConfig | None = None,
    filters: Filters | None = None,
    selection: Selection | None = None,
    *,
    raw_text: str | None = None,
    validator: SchemaValidator | None = None,
    settings: LayoutSettings | None = None,
) -> CompileResult:
    """Compile decoded registry records into a laid-out graph.

    Args:
        records: Decoded registry records, in document order.
        config: Tier/palette/icon configuration.
        filters: Domain and text filters of the mesh view.
        selection: Selected product (lineage view) or contract (table view).
        raw_text: Source document, used for validation line numbers.
        validator: When given, records are validated and the report attached.
        settings: Layout constants.

    Returns:
        Nodes, edges, warnings and (optionally) the validation report.
    """
    config = config or MeshConfig()
    filters = filters or Filters()
    selection = selection or Selection()

    classified, warnings = classify_registry(records)
    index, index_warnings = build_index(classified)
    warnings.extend(index_warnings)
    warnings.extend(reference_warnings(index))
    for contract in index.contracts.values():
        warnings.extend(dependency_warnings(contract, index.position_of(EntityKind.DATA_CONTRACT, contract.id)))

    validation = validate_registry(classified, raw_text, validator) if validator is not None else []

    view, nodes, edges = _select_view(index, config, filters, selection, settings)
    cells = {node.id: node.grid for node in nodes if node.grid is not None}
    gap_centers = {
        node.id: node.data["verticalGapCenter"] for node in nodes if node.data.get("verticalGapCenter") is not None
    }
    edges = allocate_lanes(edges, cells, gap_centers, settings)

    logger.info(
        f"Compiled {view} view: {len(nodes)} nodes, {len(edges)} edges, "
        f"{len(warnings)} warnings, {len(validation)} validation issues"
    )
    return CompileResult(
        view=view,
        nodes=nodes,
        edges=edges,
        warnings=warnings,
        validation=validation,
        domains=index.available_domains(),
    )


def compile_registry_text(
    text: str,
    config: MeshConfig | None = None,
    filters: Filters | None = None,
    selection: Selection | None = None,
    *,
    validator: SchemaValidator | None = None,
    settings: LayoutSettings | None = None,
) -> CompileResult:
    """Parse and compile a registry document.

    A document that cannot be parsed yields an empty graph carrying the
    parse error; no partial graph is ever built from malformed input.
    """
    try:
        records = parse_registry_text(text)
    except RegistryParseError as e:
        logger.error(f"Error loading registry: {e}")
        return CompileResult(error=str(e))

    return compile_registry(
        records,
        config,
        filters,
        selection,
        raw_text=text,
        validator=validator,
        settings=settings,
    )


def available_domains(records: Sequence[Any]) -> list[str]:
    """Sorted distinct data product domains of a registry."""
    classified, _ = classify_registry(records)
    index, _ = build_index(classified)
    return index.available_domains()
