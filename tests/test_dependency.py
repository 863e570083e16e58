"""Tests for the foreign-key dependency graph and topological order."""

from __future__ import annotations

import itertools
from typing import Any

from odg_meshviz.dependency import (
    build_dependency_graph,
    dependency_warnings,
    sorted_tables,
    topological_order,
)
from odg_meshviz.enums import WarningType
from odg_meshviz.models import DataContract


def _column(name: str, *targets: str) -> dict[str, Any]:
    column: dict[str, Any] = {"name": name, "logicalType": "string"}
    if targets:
        column["relationships"] = [{"type": "foreignKey", "to": target} for target in targets]
    return column


def _table(name: str, *columns: dict[str, Any], relationships: list[dict] | None = None) -> dict[str, Any]:
    table: dict[str, Any] = {"name": name, "properties": list(columns) or [_column("id")]}
    if relationships:
        table["relationships"] = relationships
    return table


def _contract(*tables: dict[str, Any], contract_id: str = "c1") -> DataContract:
    return DataContract.model_validate({"kind": "DataContract", "id": contract_id, "schema": list(tables)})


def _order(contract: DataContract) -> list[str]:
    return topological_order(build_dependency_graph(contract))


class TestDependencyGraph:
    def test_column_level_edge(self) -> None:
        contract = _contract(
            _table("Orders", _column("customerId", "Customers.id")),
            _table("Customers", _column("id")),
        )
        graph = build_dependency_graph(contract)
        assert graph.adjacency["Customers"] == {"Orders"}
        assert graph.in_degree == {"Orders": 1, "Customers": 0}

    def test_table_level_edge(self) -> None:
        contract = _contract(
            _table(
                "Orders",
                _column("customerId"),
                relationships=[{"type": "foreignKey", "from": ["Orders.customerId"], "to": ["Customers.id"]}],
            ),
            _table("Customers"),
        )
        graph = build_dependency_graph(contract)
        assert graph.adjacency["Customers"] == {"Orders"}

    def test_duplicate_references_counted_once(self) -> None:
        contract = _contract(
            _table("Orders", _column("buyerId", "Customers.id"), _column("payerId", "Customers.id")),
            _table("Customers"),
        )
        assert build_dependency_graph(contract).in_degree["Orders"] == 1

    def test_self_reference_adds_no_edge(self) -> None:
        contract = _contract(_table("Employees", _column("id"), _column("managerId", "Employees.id")))
        graph = build_dependency_graph(contract)
        assert graph.adjacency["Employees"] == set()
        assert graph.in_degree["Employees"] == 0
        assert graph.unresolved == []

    def test_non_foreign_key_relationships_ignored(self) -> None:
        contract = _contract(
            _table("Orders", {"name": "customerId", "relationships": [{"type": "lookup", "to": "Customers.id"}]}),
            _table("Customers"),
        )
        assert build_dependency_graph(contract).in_degree["Orders"] == 0

    def test_unresolved_target_excluded(self) -> None:
        contract = _contract(_table("Orders", _column("warehouseId", "Warehouses.id")), _table("Customers"))
        graph = build_dependency_graph(contract)
        assert graph.in_degree == {"Orders": 0, "Customers": 0}
        assert len(graph.unresolved) == 1
        assert graph.unresolved[0].table == "Orders"
        assert graph.unresolved[0].reference == "Warehouses.id"


class TestTopologicalOrder:
    def test_target_before_dependent(self) -> None:
        contract = _contract(
            _table("Orders", _column("customerId", "Customers.id")),
            _table("Customers", _column("id")),
        )
        assert _order(contract) == ["Customers", "Orders"]

    def test_two_cycle_keeps_both_tables_once(self) -> None:
        contract = _contract(
            _table("A", _column("x", "B.id"), _column("id")),
            _table("B", _column("y", "A.id"), _column("id")),
        )
        assert _order(contract) == ["A", "B"]

    def test_ties_broken_lexicographically(self) -> None:
        contract = _contract(_table("Zeta"), _table("Alpha"), _table("Mid"))
        assert _order(contract) == ["Alpha", "Mid", "Zeta"]

    def test_smallest_ready_table_dequeued_first(self) -> None:
        contract = _contract(_table("C"), _table("A", _column("bId", "B.id")), _table("B"))
        assert _order(contract) == ["B", "A", "C"]

    def test_cycle_leftovers_in_schema_order(self) -> None:
        contract = _contract(
            _table("A", _column("bId", "B.id")),
            _table("B", _column("aId", "A.id")),
            _table("C", _column("aId", "A.id")),
            _table("D"),
        )
        assert _order(contract) == ["D", "A", "B", "C"]

    def test_unresolved_reference_does_not_change_order(self) -> None:
        contract = _contract(_table("B", _column("ghostId", "Ghost.id")), _table("A"))
        assert _order(contract) == ["A", "B"]

    def test_every_table_exactly_once_for_any_edge_set(self) -> None:
        names = ["A", "B", "C", "D"]
        pairs = [(s, t) for s in names for t in names if s != t]
        for size in (0, 3, 6, 12):
            for chosen in itertools.islice(itertools.combinations(pairs, size), 40):
                tables = [
                    _table(name, _column("id"), *[_column(f"{t}_id", f"{t}.id") for s, t in chosen if s == name])
                    for name in names
                ]
                order = _order(_contract(*tables))
                assert sorted(order) == names

    def test_acyclic_edges_respect_order(self) -> None:
        # every table depends on all tables earlier in the alphabet
        names = ["A", "B", "C", "D", "E"]
        tables = [
            _table(name, _column("id"), *[_column(f"{t}_id", f"{t}.id") for t in names if t < name])
            for name in reversed(names)
        ]
        contract = _contract(*tables)
        graph = build_dependency_graph(contract)
        order = _order(contract)
        for target, sources in graph.adjacency.items():
            for source in sources:
                assert order.index(target) < order.index(source)


class TestSortedTables:
    def test_returns_schema_elements(self) -> None:
        contract = _contract(
            _table("Orders", _column("customerId", "Customers.id")),
            _table("Customers"),
        )
        assert [t.name for t in sorted_tables(contract)] == ["Customers", "Orders"]

    def test_unnamed_tables_kept_last(self) -> None:
        contract = _contract(_table("B"), {"physicalName": "raw_events"}, _table("A"))
        tables = sorted_tables(contract)
        assert [t.name for t in tables] == ["A", "B", None]
        assert tables[2].physical_name == "raw_events"


class TestDependencyWarnings:
    def test_one_warning_per_unresolved_reference(self) -> None:
        contract = _contract(
            _table("Orders", _column("warehouseId", "Warehouses.id"), _column("carrierId", "Carriers.id")),
        )
        warnings = dependency_warnings(contract, index=4)
        assert len(warnings) == 2
        assert all(w.type == WarningType.REFERENCE and w.id == "c1" and w.index == 4 for w in warnings)
        assert "Warehouses.id" in warnings[0].message

    def test_no_warnings_for_resolved_keys(self) -> None:
        contract = _contract(_table("Orders", _column("customerId", "Customers.id")), _table("Customers"))
        assert dependency_warnings(contract) == []
