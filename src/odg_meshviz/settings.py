"""Layout settings via Pydantic Settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class LayoutSettings(BaseSettings):
    """Pixel constants used by the layout engine and the lane allocator."""

    model_config = SettingsConfigDict(env_prefix="MESHVIZ_")

    # Mesh view
    column_spacing: int = 450
    node_height: int = 120
    vertical_gap: int = 40

    # Contract view
    table_min_width: int = 260
    table_max_width: int = 600
    char_width: int = 8
    width_padding: int = 80
    table_base_height: int = 110
    row_height: int = 40
    table_min_height: int = 200
    grid_gap: int = 100

    # Edge lanes
    lane_count: int = 5
    lane_spacing: int = 20
    step_base: int = 30
    step_increment: int = 15

    # Lineage view
    lineage_row_step: int = 150

    @property
    def vertical_step(self) -> int:
        return self.node_height + self.vertical_gap


_settings: LayoutSettings | None = None


def get_layout_settings() -> LayoutSettings:
    """Get or create the global layout settings.

    Returns:
        LayoutSettings instance
    """
    global _settings
    if _settings is None:
        _settings = LayoutSettings()
    return _settings
