"""Decode registry documents into record lists."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from odg_meshviz.exceptions import RegistryParseError

logger = logging.getLogger(__name__)

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class RegistryLoader(yaml.SafeLoader):
    """SafeLoader that keeps ISO dates as plain strings."""


RegistryLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def parse_registry_text(text: str) -> list[Any]:
    """Parse registry YAML (or JSON) text into an ordered record list.

    An empty document yields ``[]`` and a single mapping (e.g. one pasted
    DataProduct) is wrapped in a list.

    Raises:
        RegistryParseError: If the text is HTML, malformed YAML, or a scalar.
    """
    stripped = text.strip()
    if stripped.startswith("<!DOCTYPE") or stripped.startswith("<html"):
        msg = "Registry file not found or invalid format. The content starts with HTML instead of YAML."
        raise RegistryParseError(msg)

    try:
        parsed = yaml.load(text, Loader=RegistryLoader)  # noqa: S506
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        raise RegistryParseError(f"Invalid YAML format: {e}", line=line) from e

    if parsed is None:
        logger.warning("Parsed registry is empty")
        return []
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        logger.info("Parsed registry is a single object, wrapping in list")
        return [parsed]

    msg = f"Registry contains invalid data. Expected YAML list or mapping, got: {type(parsed).__name__}"
    raise RegistryParseError(msg)


def load_registry(path: str | Path) -> tuple[list[Any], str]:
    """Load a registry file, returning the records and the raw text.

    Raises:
        FileNotFoundError: If the registry file does not exist.
        RegistryParseError: If the file cannot be decoded.
    """
    file_path = Path(path)
    if not file_path.exists():
        msg = f"Registry file not found: {file_path}"
        raise FileNotFoundError(msg)

    text = file_path.read_text()
    records = parse_registry_text(text)
    logger.info(f"Loaded {len(records)} registry records from {file_path}")
    return records, text


class LineIndex:
    """Maps record paths to 1-based source lines of a registry document."""

    def __init__(self, root: yaml.Node | None):
        self._root = root

    @classmethod
    def from_text(cls, text: str | None) -> LineIndex:
        if not text:
            return cls(None)
        try:
            root = yaml.compose(text, Loader=RegistryLoader)
        except yaml.YAMLError as e:
            logger.warning(f"Failed to compose YAML document for line numbers: {e}")
            root = None
        return cls(root)

    def line_for(self, index: int, path: Sequence[str | int]) -> int | None:
        """Line of ``path`` inside record ``index``; None when unknown."""
        node = self._root
        if node is None:
            return None
        if isinstance(node, yaml.SequenceNode):
            node = _child(node, index)
        elif index != 0:
            return None

        for part in path:
            if node is None:
                return None
            node = _child(node, part)

        if node is None:
            return None
        return node.start_mark.line + 1


def _child(node: yaml.Node, part: str | int) -> yaml.Node | None:
    if isinstance(node, yaml.SequenceNode):
        try:
            position = int(part)
        except ValueError:
            return None
        if 0 <= position < len(node.value):
            return node.value[position]
        return None
    if isinstance(node, yaml.MappingNode):
        for key_node, value_node in node.value:
            if key_node.value == str(part):
                return value_node
    return None
