"""Registry record and compiled graph models.

Registry records follow the Open Data Product Standard (DataProduct), the Open
Data Contract Standard (DataContract) and the Data Usage Agreement format. They
are parsed leniently: every field is optional so that a record failing its
declared schema can still be visualised. Compiled nodes and edges are frozen
derived values serialised with camelCase keys for the rendering layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic.alias_generators import to_camel

from odg_meshviz.enums import EdgeKind, EntityKind, NodeKind, ViewKind, WarningType

TIER_PROPERTY = "dataProductTier"
TECHNOLOGY_PROPERTY = "technology"
AGREEMENT_MARKER = "dataUsageAgreementSpecification"

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list[Any]:
    """A list as-is; None, scalars and mappings read as empty."""
    return value if isinstance(value, list) else []


def _as_records(value: Any) -> list[Any]:
    """Mapping entries of a list; any other entry is dropped."""
    return [item for item in _as_list(value) if isinstance(item, dict)]


class RegistryModel(BaseModel):
    """Base for registry records: camelCase keys, unknown keys kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_when_malformed(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        # A wrongly shaped field falls back to its default; the record is kept
        try:
            return handler(value)
        except ValidationError:
            logger.debug(f"Ignoring malformed {cls.__name__}.{info.field_name}: {value!r}")
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


class CustomProperty(RegistryModel):
    property: str | None = None
    value: Any = None


def _find_property(properties: list[CustomProperty], name: str) -> Any:
    for prop in properties:
        if prop.property == name:
            return prop.value
    return None


class OutputPort(RegistryModel):
    """Named, versioned interface of a data product."""

    id: str | None = None
    name: str | None = None
    version: str | None = None
    contract_id: str | None = None

    @property
    def port_key(self) -> str | None:
        """Identifier agreements use to reference this port."""
        return self.id or self.name


class DataProduct(RegistryModel):
    id: str | None = None
    kind: str | None = None
    api_version: str | None = None
    name: str | None = None
    domain: str | None = None
    status: str | None = None
    custom_properties: list[CustomProperty] = Field(default_factory=list)
    output_ports: list[OutputPort] = Field(default_factory=list)

    @field_validator("custom_properties", "output_ports", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> Any:
        return _as_records(value)

    def custom_property(self, name: str) -> Any:
        return _find_property(self.custom_properties, name)

    @property
    def tier(self) -> str | None:
        value = self.custom_property(TIER_PROPERTY)
        return None if value is None else str(value)

    @property
    def technology(self) -> str | None:
        value = self.custom_property(TECHNOLOGY_PROPERTY)
        return None if value is None else str(value)


class ForeignKeyRelationship(RegistryModel):
    """Reference from one table/column to another table/column.

    ``from_``/``to`` hold ``table.column`` strings. Table-level relationships
    pair them positionally; column-level relationships only carry ``to``.
    """

    type: str | None = None
    from_: list[str] = Field(default_factory=list, alias="from")
    to: list[str] = Field(default_factory=list)

    @field_validator("from_", "to", mode="before")
    @classmethod
    def _to_list(cls, value: Any) -> Any:
        if isinstance(value, (str, int, float)):
            return [str(value)]
        return [str(ref) for ref in _as_list(value) if isinstance(ref, (str, int, float))]

    @property
    def is_foreign_key(self) -> bool:
        # ODCS defaults an omitted relationship type to foreignKey
        return self.type is None or self.type == "foreignKey"

    @property
    def target_tables(self) -> list[str]:
        return [split_reference(ref)[0] for ref in self.to]


def split_reference(ref: str) -> tuple[str, str | None]:
    """Split ``table.column`` into its parts; a bare name has no column."""
    table, sep, column = ref.partition(".")
    return table, (column if sep else None)


class Column(RegistryModel):
    name: str | None = None
    physical_name: str | None = None
    description: str | None = None
    logical_type: str | None = None
    physical_type: str | None = None
    primary_key: bool = False
    primary_key_position: int | None = None
    examples: list[Any] = Field(default_factory=list)
    relationships: list[ForeignKeyRelationship] = Field(default_factory=list)
    quality: list[Any] = Field(default_factory=list)

    @field_validator("examples", "quality", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("relationships", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> Any:
        return _as_records(value)

    @property
    def handle_name(self) -> str | None:
        return self.physical_name or self.name


class SchemaElement(RegistryModel):
    """A table of a data contract."""

    name: str | None = None
    physical_name: str | None = None
    description: str | None = None
    properties: list[Column] | None = None
    columns: list[Column] | None = None
    relationships: list[ForeignKeyRelationship] = Field(default_factory=list)
    quality: list[Any] = Field(default_factory=list)
    custom_properties: list[CustomProperty] = Field(default_factory=list)

    @field_validator("properties", "columns", mode="before")
    @classmethod
    def _columns(cls, value: Any) -> Any:
        return _as_records(value) if isinstance(value, list) else None

    @field_validator("relationships", "custom_properties", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> Any:
        return _as_records(value)

    @field_validator("quality", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return _as_list(value)

    @property
    def table_columns(self) -> list[Column]:
        """Columns, preferring ODCS ``properties`` over legacy ``columns``."""
        if self.properties is not None:
            return self.properties
        return self.columns or []

    def column(self, name: str | None) -> Column | None:
        for col in self.table_columns:
            if col.name == name:
                return col
        return None

    @property
    def technology(self) -> str | None:
        value = _find_property(self.custom_properties, TECHNOLOGY_PROPERTY)
        return None if value is None else str(value)


class DataContract(RegistryModel):
    id: str | None = None
    kind: str | None = None
    api_version: str | None = None
    name: str | None = None
    status: str | None = None
    version: str | None = None
    tables: list[SchemaElement] = Field(default_factory=list, alias="schema")
    servers: list[Any] = Field(default_factory=list)
    roles: list[Any] = Field(default_factory=list)
    custom_properties: list[CustomProperty] = Field(default_factory=list)

    @field_validator("tables", "custom_properties", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> Any:
        return _as_records(value)

    @field_validator("servers", "roles", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return _as_list(value)

    def table(self, name: str | None) -> SchemaElement | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    @property
    def technology(self) -> str | None:
        value = _find_property(self.custom_properties, TECHNOLOGY_PROPERTY)
        return None if value is None else str(value)


class AgreementProvider(RegistryModel):
    team_id: str | None = None
    data_product_id: str | None = None
    output_port_id: str | None = None


class AgreementConsumer(RegistryModel):
    team_id: str | None = None
    data_product_id: str | None = None


class AgreementInfo(RegistryModel):
    status: str | None = None
    start_date: Any = None
    purpose: str | None = None


class DataUsageAgreement(RegistryModel):
    """Producer → consumer link between two data products."""

    id: str | None = None
    data_usage_agreement_specification: str | None = None
    provider: AgreementProvider | None = None
    consumer: AgreementConsumer | None = None
    info: AgreementInfo | None = None
    custom_properties: Any = None

    @property
    def provider_id(self) -> str | None:
        return self.provider.data_product_id if self.provider else None

    @property
    def consumer_id(self) -> str | None:
        return self.consumer.data_product_id if self.consumer else None


Entity = DataProduct | DataContract | DataUsageAgreement


@dataclass(frozen=True)
class ClassifiedRecord:
    """Raw record tagged with its entity kind and position in the registry."""

    kind: EntityKind
    record: Any
    index: int


# ── Derived graph values ────────────────────────────────────────


class DerivedModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RecordRef(DerivedModel):
    """Weak back-reference to a registry record, resolved via the index."""

    id: str
    kind: EntityKind


class Position(DerivedModel):
    x: int = 0
    y: int = 0


class GridCell(DerivedModel):
    """Layout grid coordinates of a node, consumed by the lane allocator."""

    row: int
    col: int
    total_cols: int = 1


class Node(DerivedModel):
    id: str
    kind: NodeKind
    position: Position = Field(default_factory=Position)
    data: dict[str, Any] = Field(default_factory=dict)
    grid: GridCell | None = None
    ref: RecordRef | None = None


class EdgeData(DerivedModel):
    description: str | None = None
    lane_idx: int = 0
    gap_offset: int = 0
    step_offset: int = 0
    is_long_distance: bool = False
    is_same_row: bool = False
    is_right_to_left: bool = False
    route_through_gap: bool = False
    gap_center_y: int | None = None
    gap_y: int | None = None


class Edge(DerivedModel):
    id: str
    source: str
    target: str
    kind: EdgeKind
    source_handle: str | None = None
    target_handle: str | None = None
    data: EdgeData = Field(default_factory=EdgeData)


class CompileWarning(DerivedModel):
    """Non-fatal condition found while compiling the graph."""

    type: WarningType
    message: str
    id: str | None = None
    index: int | None = None


class ValidationIssue(DerivedModel):
    """One schema validation failure of a registry record."""

    index: int
    id: str
    type: EntityKind
    path: str
    message: str
    params: dict[str, Any] = Field(default_factory=dict)
    line: int | None = None


class Filters(DerivedModel):
    domains: tuple[str, ...] = ()
    text: str = ""

    @property
    def active(self) -> bool:
        return bool(self.domains) or self.text != ""


class Selection(DerivedModel):
    id: str | None = None
    kind: EntityKind | None = None


class CompileResult(DerivedModel):
    view: ViewKind = ViewKind.MESH
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    warnings: list[CompileWarning] = Field(default_factory=list)
    validation: list[ValidationIssue] = Field(default_factory=list)
    domains: list[str] = Field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Renderer payload with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
