"""Enums shared by the registry graph compiler."""

from enum import StrEnum


class EntityKind(StrEnum):
    """Classification tag of a registry record."""

    DATA_PRODUCT = "DataProduct"
    DATA_CONTRACT = "DataContract"
    DATA_USAGE_AGREEMENT = "DataUsageAgreement"
    UNKNOWN = "Unknown"


class NodeKind(StrEnum):
    """Renderer node types."""

    DATA_PRODUCT = "dataProduct"
    DATA_PRODUCT_DETAIL = "dataProductDetail"
    DATA_CONTRACT = "dataContract"


class EdgeKind(StrEnum):
    """Relationship edge types."""

    USAGE_AGREEMENT = "usage-agreement"
    FOREIGN_KEY = "foreign-key"


class ViewKind(StrEnum):
    """Which view a compiled graph represents."""

    MESH = "mesh"
    LINEAGE = "lineage"
    CONTRACT = "contract"


class WarningType(StrEnum):
    """Non-fatal compile conditions."""

    CLASSIFICATION = "classification"
    REFERENCE = "reference"
