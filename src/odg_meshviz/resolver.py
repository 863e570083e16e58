"""Reference resolution: id lookup maps over the classified registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from pydantic import ValidationError

from odg_meshviz.classifier import record_label
from odg_meshviz.enums import EntityKind, WarningType
from odg_meshviz.models import (
    ClassifiedRecord,
    CompileWarning,
    DataContract,
    DataProduct,
    DataUsageAgreement,
    Entity,
    RecordRef,
)

logger = logging.getLogger(__name__)

_MODELS: dict[EntityKind, type[DataProduct] | type[DataContract] | type[DataUsageAgreement]] = {
    EntityKind.DATA_PRODUCT: DataProduct,
    EntityKind.DATA_CONTRACT: DataContract,
    EntityKind.DATA_USAGE_AGREEMENT: DataUsageAgreement,
}


@dataclass(frozen=True)
class AgreementLink:
    """A usage agreement whose provider and consumer both resolve."""

    id: str
    provider_id: str
    consumer_id: str
    agreement: DataUsageAgreement


@dataclass
class RegistryIndex:
    """O(1) lookup maps built from one registry load.

    Missing ids resolve to ``None``; callers treat that as an unresolved link.
    """

    products: dict[str, DataProduct] = field(default_factory=dict)
    contracts: dict[str, DataContract] = field(default_factory=dict)
    agreements: list[DataUsageAgreement] = field(default_factory=list)
    port_contracts: dict[str, str] = field(default_factory=dict)
    positions: dict[tuple[EntityKind, str], int] = field(default_factory=dict)

    def product(self, product_id: str | None) -> DataProduct | None:
        if product_id is None:
            return None
        return self.products.get(str(product_id))

    def contract(self, contract_id: str | None) -> DataContract | None:
        if contract_id is None:
            return None
        return self.contracts.get(str(contract_id))

    def contract_for_port(self, port_id: str | None) -> DataContract | None:
        if port_id is None:
            return None
        return self.contract(self.port_contracts.get(port_id))

    def agreement(self, agreement_id: str | None) -> DataUsageAgreement | None:
        for agreement in self.agreements:
            if agreement.id == agreement_id:
                return agreement
        return None

    def lookup(self, ref: RecordRef) -> Entity | None:
        """Resolve a node's back-reference to its source record."""
        if ref.kind is EntityKind.DATA_PRODUCT:
            return self.product(ref.id)
        if ref.kind is EntityKind.DATA_CONTRACT:
            return self.contract(ref.id)
        if ref.kind is EntityKind.DATA_USAGE_AGREEMENT:
            return self.agreement(ref.id)
        return None

    def position_of(self, kind: EntityKind, entity_id: str | None) -> int | None:
        """Registry index of a record, for warnings."""
        if entity_id is None:
            return None
        return self.positions.get((kind, entity_id))

    def available_domains(self) -> list[str]:
        """Sorted distinct domains of all data products."""
        return sorted({p.domain for p in self.products.values() if p.domain})

    def links(self) -> list[AgreementLink]:
        """Agreements whose endpoints are both indexed products, in registry order."""
        result = []
        for agreement in self.agreements:
            provider_id = agreement.provider_id
            consumer_id = agreement.consumer_id
            if self.product(provider_id) is None or self.product(consumer_id) is None:
                continue
            result.append(
                AgreementLink(
                    id=str(agreement.id),
                    provider_id=str(provider_id),
                    consumer_id=str(consumer_id),
                    agreement=agreement,
                )
            )
        return result


def _reference_warning(message: str, entity_id: str | None, index: int | None) -> CompileWarning:
    return CompileWarning(type=WarningType.REFERENCE, id=entity_id, index=index, message=message)


def build_index(classified: Iterable[ClassifiedRecord]) -> tuple[RegistryIndex, list[CompileWarning]]:
    """Index classified records by id.

    The first record with a given id wins; later duplicates and records
    without an id are reported and left out of the index. Records whose
    shape cannot be read at all are reported as classification warnings.
    """
    index = RegistryIndex()
    warnings: list[CompileWarning] = []

    for item in classified:
        model = _MODELS.get(item.kind)
        if model is None:
            continue

        label = record_label(item.record, item.index)
        try:
            entity = model.model_validate(item.record)
        except ValidationError as e:
            logger.warning(f"Record {label} at index {item.index} could not be read as {item.kind}: {e}")
            warnings.append(
                CompileWarning(
                    type=WarningType.CLASSIFICATION,
                    id=label,
                    index=item.index,
                    message=f"Record could not be read as {item.kind}: {e.error_count()} invalid field(s)",
                )
            )
            continue

        if isinstance(entity, DataUsageAgreement):
            if entity.id is None:
                entity.id = f"agreement-{item.index}"
            if (item.kind, entity.id) in index.positions:
                warnings.append(
                    _reference_warning(f"Duplicate {item.kind} id '{entity.id}'; record ignored", entity.id, item.index)
                )
                continue
            index.agreements.append(entity)
            index.positions[(item.kind, entity.id)] = item.index
            continue

        if entity.id is None:
            warnings.append(_reference_warning(f"{item.kind} has no id and cannot be referenced", label, item.index))
            continue

        target: dict = index.products if isinstance(entity, DataProduct) else index.contracts
        if entity.id in target:
            warnings.append(
                _reference_warning(f"Duplicate {item.kind} id '{entity.id}'; record ignored", entity.id, item.index)
            )
            continue

        target[entity.id] = entity
        index.positions[(item.kind, entity.id)] = item.index

    for product in index.products.values():
        for port in product.output_ports:
            if port.port_key and port.contract_id:
                index.port_contracts.setdefault(port.port_key, port.contract_id)

    logger.debug(
        f"Indexed {len(index.products)} products, {len(index.contracts)} contracts, "
        f"{len(index.agreements)} agreements"
    )
    return index, warnings


def reference_warnings(index: RegistryIndex) -> list[CompileWarning]:
    """Dangling output-port contracts and usage agreement endpoints.

    At most one warning is produced per agreement.
    """
    warnings: list[CompileWarning] = []

    for product in index.products.values():
        for port in product.output_ports:
            if port.contract_id and index.contract(port.contract_id) is None:
                warnings.append(
                    _reference_warning(
                        f"Output port '{port.port_key}' references unknown contract '{port.contract_id}'",
                        product.id,
                        index.position_of(EntityKind.DATA_PRODUCT, product.id),
                    )
                )

    for agreement in index.agreements:
        position = index.position_of(EntityKind.DATA_USAGE_AGREEMENT, agreement.id)
        missing = []
        if index.product(agreement.provider_id) is None:
            missing.append(f"provider '{agreement.provider_id}'")
        if index.product(agreement.consumer_id) is None:
            missing.append(f"consumer '{agreement.consumer_id}'")

        if missing:
            warnings.append(
                _reference_warning(
                    f"Usage agreement references unknown data product(s): {', '.join(missing)}",
                    agreement.id,
                    position,
                )
            )
            continue

        port_id = agreement.provider.output_port_id if agreement.provider else None
        if port_id:
            provider = index.product(agreement.provider_id)
            if provider is not None and port_id not in {p.port_key for p in provider.output_ports}:
                warnings.append(
                    _reference_warning(
                        f"Usage agreement references unknown output port '{port_id}' of '{provider.id}'",
                        agreement.id,
                        position,
                    )
                )

    return warnings
