"""odg-meshviz exceptions."""

from __future__ import annotations


class MeshVizError(Exception):
    """Base exception for all mesh visualisation errors."""


class RegistryParseError(MeshVizError):
    """Registry document could not be decoded into a record list."""

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.line = line


class ConfigError(MeshVizError):
    """Mesh configuration file is missing required settings or is malformed."""
