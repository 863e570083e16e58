"""Mesh visualisation configuration (tiers, palette, icons)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from odg_meshviz.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN_PALETTE = ["#fee2e2", "#f3e8ff", "#fef3c7", "#ffedd5", "#e0e7ff", "#dbeafe", "#dcfce7"]
DEFAULT_TIER_COLOR = "#bfdbfe"
DEFAULT_BANNER = "Data Product"
DEFAULT_BANNER_COLOR = "#93c5fd"


class TierConfig(BaseModel):
    """Layout column and banner styling of a data product tier."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    column_number: int = Field(default=1, ge=1, description="1-based layout column")
    color: str | None = None
    label: str | None = None
    banner_color: str | None = None


class MeshConfig(BaseModel):
    """Configuration consumed by the compiler.

    Mirrors ``config.yaml``::

        defaultDataMeshRegistryUrl: /registry.yaml
        tiers:
          source-aligned: {columnNumber: 1, label: Source Aligned, color: "#bbf7d0"}
          consumer-aligned: {columnNumber: 2}
        iconMap:
          dataProduct: /icons/product.svg
        domainPalette: ["#fee2e2", "#f3e8ff"]
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    tiers: dict[str, TierConfig] = Field(default_factory=dict)
    icon_map: dict[str, str] = Field(default_factory=dict)
    domain_palette: list[str] = Field(default_factory=lambda: list(DEFAULT_DOMAIN_PALETTE))
    default_data_mesh_registry_url: str | None = None

    def tier(self, name: str | None) -> TierConfig | None:
        if name is None:
            return None
        return self.tiers.get(name)

    def column_for(self, tier: str | None) -> int:
        """Layout column of a tier; unconfigured tiers go to column 1."""
        tier_config = self.tier(tier)
        return tier_config.column_number if tier_config else 1


def parse_config(raw: dict[str, Any]) -> MeshConfig:
    """Build a MeshConfig from a decoded ``config.yaml`` mapping.

    Raises:
        ConfigError: If the registry URL is missing or a field has the wrong shape.
    """
    if not raw.get("defaultDataMeshRegistryUrl"):
        msg = (
            'config.yaml is missing required field "defaultDataMeshRegistryUrl". '
            "Please add this field with the path to your registry YAML file."
        )
        raise ConfigError(msg)

    values = {key: value for key, value in raw.items() if value is not None}
    try:
        return MeshConfig.model_validate(values)
    except ValidationError as e:
        msg = f"config.yaml has invalid settings: {e}"
        raise ConfigError(msg) from e


def load_config(path: str | Path) -> MeshConfig:
    """Load mesh configuration from a YAML file.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigError: If the config file is empty, not valid YAML, or incomplete.
    """
    file_path = Path(path)
    if not file_path.exists():
        msg = f"Config file not found: {file_path}"
        raise FileNotFoundError(msg)

    text = file_path.read_text()
    if not text.strip():
        msg = "config.yaml is empty. Please add configuration settings to the file."
        raise ConfigError(msg)

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        msg = f"config.yaml contains invalid YAML syntax: {e}. Please check the file format."
        raise ConfigError(msg) from e

    if not isinstance(raw, dict):
        msg = "config.yaml must contain a valid YAML document with configuration settings."
        raise ConfigError(msg)

    config = parse_config(raw)
    logger.info(f"Loaded mesh config from {file_path} ({len(config.tiers)} tiers)")
    return config
