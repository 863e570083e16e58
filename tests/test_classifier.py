"""Tests for registry record classification."""

from __future__ import annotations

from odg_meshviz.classifier import classify, classify_kind, classify_registry, record_label
from odg_meshviz.enums import EntityKind, WarningType


class TestClassifyKind:
    def test_data_product(self) -> None:
        assert classify_kind({"kind": "DataProduct", "id": "p1"}) is EntityKind.DATA_PRODUCT

    def test_data_contract(self) -> None:
        assert classify_kind({"kind": "DataContract", "id": "c1"}) is EntityKind.DATA_CONTRACT

    def test_usage_agreement_by_marker(self) -> None:
        record = {"dataUsageAgreementSpecification": "0.0.1", "id": "dua1"}
        assert classify_kind(record) is EntityKind.DATA_USAGE_AGREEMENT

    def test_unknown_kind_value(self) -> None:
        assert classify_kind({"kind": "Pipeline", "id": "x"}) is EntityKind.UNKNOWN

    def test_kind_wins_over_marker(self) -> None:
        record = {"kind": "Something", "dataUsageAgreementSpecification": "0.0.1"}
        assert classify_kind(record) is EntityKind.UNKNOWN

    def test_non_text_kind(self) -> None:
        assert classify_kind({"kind": ["DataProduct"], "id": "x"}) is EntityKind.UNKNOWN
        assert classify_kind({"kind": {"name": "DataContract"}, "id": "x"}) is EntityKind.UNKNOWN

    def test_no_kind_no_marker(self) -> None:
        assert classify_kind({"id": "x"}) is EntityKind.UNKNOWN

    def test_non_mapping_records(self) -> None:
        assert classify_kind("just a string") is EntityKind.UNKNOWN
        assert classify_kind(None) is EntityKind.UNKNOWN
        assert classify_kind([1, 2]) is EntityKind.UNKNOWN


class TestClassify:
    def test_keeps_record_and_index(self) -> None:
        record = {"kind": "DataProduct", "id": "p1"}
        item = classify(record, 3)
        assert item.kind is EntityKind.DATA_PRODUCT
        assert item.record is record
        assert item.index == 3

    def test_record_label(self) -> None:
        assert record_label({"id": 42}, 0) == "42"
        assert record_label({"name": "no id"}, 5) == "Item 5"
        assert record_label("scalar", 2) == "Item 2"


class TestClassifyRegistry:
    def test_unknown_records_become_warnings(self) -> None:
        records = [
            {"kind": "DataProduct", "id": "p1"},
            {"id": "mystery"},
            {"kind": "DataContract", "id": "c1"},
            "garbage",
        ]
        classified, warnings = classify_registry(records)

        assert [item.index for item in classified] == [0, 2]
        assert len(warnings) == 2
        assert all(w.type == WarningType.CLASSIFICATION for w in warnings)
        assert warnings[0].id == "mystery"
        assert warnings[0].index == 1
        assert warnings[1].id == "Item 3"

    def test_empty_registry(self) -> None:
        classified, warnings = classify_registry([])
        assert classified == []
        assert warnings == []
