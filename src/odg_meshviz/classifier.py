"""Entity classification of raw registry records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from odg_meshviz.enums import EntityKind, WarningType
from odg_meshviz.models import AGREEMENT_MARKER, ClassifiedRecord, CompileWarning

logger = logging.getLogger(__name__)

_DIRECT_KINDS = {
    EntityKind.DATA_PRODUCT.value: EntityKind.DATA_PRODUCT,
    EntityKind.DATA_CONTRACT.value: EntityKind.DATA_CONTRACT,
}


def classify_kind(record: Any) -> EntityKind:
    """Tag a raw record.

    ``kind: DataProduct`` and ``kind: DataContract`` map directly; a record
    without ``kind`` that carries the usage agreement marker field is a
    DataUsageAgreement; everything else is Unknown.
    """
    if not isinstance(record, dict):
        return EntityKind.UNKNOWN

    kind = record.get("kind")
    if kind is not None:
        if not isinstance(kind, str):
            return EntityKind.UNKNOWN
        return _DIRECT_KINDS.get(kind, EntityKind.UNKNOWN)

    if record.get(AGREEMENT_MARKER):
        return EntityKind.DATA_USAGE_AGREEMENT
    return EntityKind.UNKNOWN


def classify(record: Any, index: int) -> ClassifiedRecord:
    return ClassifiedRecord(kind=classify_kind(record), record=record, index=index)


def record_label(record: Any, index: int) -> str:
    """Display id of a record, falling back to its position."""
    if isinstance(record, dict) and record.get("id") is not None:
        return str(record["id"])
    return f"Item {index}"


def classify_registry(records: Iterable[Any]) -> tuple[list[ClassifiedRecord], list[CompileWarning]]:
    """Classify every record, splitting off Unknown ones as warnings.

    Returns:
        Known records in registry order, and one ClassificationWarning per
        skipped record.
    """
    classified: list[ClassifiedRecord] = []
    warnings: list[CompileWarning] = []

    for index, record in enumerate(records):
        item = classify(record, index)
        if item.kind is EntityKind.UNKNOWN:
            label = record_label(record, index)
            logger.warning(f"Skipping unknown item type at index {index} ({label})")
            warnings.append(
                CompileWarning(
                    type=WarningType.CLASSIFICATION,
                    id=label,
                    index=index,
                    message=f"Record at index {index} is not a DataProduct, DataContract or DataUsageAgreement",
                )
            )
            continue
        classified.append(item)

    return classified, warnings
