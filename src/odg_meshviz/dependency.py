"""Foreign-key dependency graph and stable topological order of contract tables."""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field

from odg_meshviz.enums import WarningType
from odg_meshviz.models import CompileWarning, DataContract, ForeignKeyRelationship, SchemaElement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnresolvedReference:
    """Foreign key whose target table is not part of the contract."""

    table: str
    reference: str


@dataclass
class DependencyGraph:
    """Directed graph over table names.

    An edge ``T -> S`` means table ``S`` has a foreign key to ``T`` and must be
    laid out no earlier than ``T``.
    """

    tables: list[str] = field(default_factory=list)
    adjacency: dict[str, set[str]] = field(default_factory=dict)
    in_degree: dict[str, int] = field(default_factory=dict)
    unresolved: list[UnresolvedReference] = field(default_factory=list)

    def add_edge(self, target: str, source: str) -> None:
        if source in self.adjacency[target]:
            return
        self.adjacency[target].add(source)
        self.in_degree[source] += 1


def table_relationships(table: SchemaElement) -> list[ForeignKeyRelationship]:
    """Foreign keys declared on a table and on each of its columns."""
    relationships = [rel for rel in table.relationships if rel.is_foreign_key]
    for column in table.table_columns:
        relationships.extend(rel for rel in column.relationships if rel.is_foreign_key)
    return relationships


def build_dependency_graph(contract: DataContract) -> DependencyGraph:
    """Build the foreign-key dependency graph of one contract.

    Foreign keys pointing at tables outside the contract are collected in
    ``unresolved`` and add no edge. Self references add no edge.
    """
    graph = DependencyGraph()
    for table in contract.tables:
        if table.name is None or table.name in graph.adjacency:
            continue
        graph.tables.append(table.name)
        graph.adjacency[table.name] = set()
        graph.in_degree[table.name] = 0

    for table in contract.tables:
        if table.name is None:
            continue
        for rel in table_relationships(table):
            for reference, target in zip(rel.to, rel.target_tables, strict=True):
                if target not in graph.adjacency:
                    graph.unresolved.append(UnresolvedReference(table=table.name, reference=reference))
                    continue
                if target != table.name:
                    graph.add_edge(target, table.name)

    return graph


def topological_order(graph: DependencyGraph) -> list[str]:
    """Kahn's algorithm with lexicographic tie-breaking.

    The smallest ready table is always emitted next. Tables left over because
    of cycles are appended in schema order, so every table appears exactly once.
    """
    in_degree = dict(graph.in_degree)
    ready = [name for name in graph.tables if in_degree[name] == 0]
    heapq.heapify(ready)

    order: list[str] = []
    while ready:
        current = heapq.heappop(ready)
        order.append(current)
        for neighbor in sorted(graph.adjacency[current]):
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                heapq.heappush(ready, neighbor)

    if len(order) < len(graph.tables):
        placed = set(order)
        leftover = [name for name in graph.tables if name not in placed]
        logger.debug(f"Foreign key cycle among tables {leftover}; appending in schema order")
        order.extend(leftover)

    return order


def sorted_tables(contract: DataContract) -> list[SchemaElement]:
    """Contract tables in dependency order.

    Tables without a name or repeating an earlier name cannot take part in
    the ordering and keep their schema position after the ordered ones.
    """
    by_name: dict[str, SchemaElement] = {}
    extras: list[SchemaElement] = []
    for table in contract.tables:
        if table.name is None or table.name in by_name:
            extras.append(table)
        else:
            by_name[table.name] = table

    order = topological_order(build_dependency_graph(contract))
    return [by_name[name] for name in order] + extras


def dependency_warnings(contract: DataContract, index: int | None = None) -> list[CompileWarning]:
    """One reference warning per foreign key that leaves the contract."""
    graph = build_dependency_graph(contract)
    return [
        CompileWarning(
            type=WarningType.REFERENCE,
            id=contract.id,
            index=index,
            message=(
                f"Foreign key '{ref.reference}' on table '{ref.table}' references a table "
                f"outside contract '{contract.id}'"
            ),
        )
        for ref in graph.unresolved
    ]
