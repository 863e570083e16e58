"""Data mesh registry graph compiler and layout engine.

Turns a flat registry of data products, data contracts and data usage
agreements into a laid-out node/edge graph:

- Classifier: tags raw records by entity kind
- Resolver: id lookup maps and dangling reference detection
- Dependency graph: stable topological order of contract tables
- Layout: tier columns (mesh) and table grids (contracts)
- Filtering: domain/text filters with one-hop neighbor expansion
- Lanes: deterministic routing lanes for relationship edges
"""

__version__ = "0.1.0"

from odg_meshviz.compiler import compile_registry, compile_registry_text
from odg_meshviz.config import MeshConfig, TierConfig, load_config
from odg_meshviz.enums import EdgeKind, EntityKind, NodeKind, ViewKind, WarningType
from odg_meshviz.events import EventBus
from odg_meshviz.exceptions import ConfigError, MeshVizError, RegistryParseError
from odg_meshviz.models import CompileResult, Edge, Filters, Node, Selection
from odg_meshviz.session import MeshSession

__all__ = [
    "CompileResult",
    "ConfigError",
    "Edge",
    "EdgeKind",
    "EntityKind",
    "EventBus",
    "Filters",
    "MeshConfig",
    "MeshSession",
    "MeshVizError",
    "Node",
    "NodeKind",
    "RegistryParseError",
    "Selection",
    "TierConfig",
    "ViewKind",
    "WarningType",
    "compile_registry",
    "compile_registry_text",
    "load_config",
]
