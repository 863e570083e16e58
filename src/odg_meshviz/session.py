"""Stateful convenience wrapper around the pure compiler.

``MeshSession`` keeps the latest complete input tuple (records, config,
filters, selection), recompiles on every change and publishes the outcome
on an ``EventBus``. A result computed from inputs that changed in the
meantime is discarded and the latest inputs are compiled instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from odg_meshviz.compiler import available_domains, compile_registry
from odg_meshviz.config import MeshConfig
from odg_meshviz.enums import EntityKind
from odg_meshviz.events import EventBus, FilterChanged, GraphCompiled, RegistryReloaded, SelectionChanged
from odg_meshviz.exceptions import RegistryParseError
from odg_meshviz.loader import parse_registry_text
from odg_meshviz.models import CompileResult, Filters, Selection
from odg_meshviz.settings import LayoutSettings
from odg_meshviz.validation import SchemaValidator

logger = logging.getLogger(__name__)


class MeshSession:
    """Holds the current registry, filters and selection of one viewer."""

    def __init__(
        self,
        config: MeshConfig | None = None,
        *,
        bus: EventBus | None = None,
        validator: SchemaValidator | None = None,
        settings: LayoutSettings | None = None,
    ) -> None:
        self.bus = bus or EventBus()
        self.config = config or MeshConfig()
        self.validator = validator
        self.settings = settings
        self.records: tuple[Any, ...] = ()
        self.raw_text: str | None = None
        self.filters = Filters()
        self.selection = Selection()
        self.error: str | None = None
        self.result = CompileResult()
        self._generation = 0
        self._applied = 0
        self._compiling = False

    @property
    def generation(self) -> int:
        return self._generation

    # ── Control events ─────────────────────────────────────────

    def load_text(self, text: str) -> CompileResult:
        """Replace the registry with a parsed document.

        A parse error empties the graph and is kept on ``result.error``.
        """
        try:
            records = parse_registry_text(text)
        except RegistryParseError as e:
            logger.error(f"Error loading registry from text: {e}")
            return self._reload((), text, str(e))
        return self._reload(tuple(records), text, None)

    def load_records(self, records: Sequence[Any], raw_text: str | None = None) -> CompileResult:
        return self._reload(tuple(records), raw_text, None)

    def select(self, entity_id: str | None, kind: EntityKind | None) -> CompileResult:
        self.selection = Selection(id=entity_id, kind=kind if entity_id is not None else None)
        self.bus.publish(SelectionChanged(id=self.selection.id, kind=self.selection.kind))
        return self._invalidate()

    def clear_selection(self) -> CompileResult:
        return self.select(None, None)

    def set_filters(self, domains: Iterable[str] = (), text: str = "") -> CompileResult:
        self.filters = Filters(domains=tuple(domains), text=text)
        self.bus.publish(FilterChanged(domains=self.filters.domains, text=self.filters.text))
        return self._invalidate()

    def set_config(self, config: MeshConfig) -> CompileResult:
        self.config = config
        return self._invalidate()

    # ── Recompute ──────────────────────────────────────────────

    def _reload(self, records: tuple[Any, ...], raw_text: str | None, error: str | None) -> CompileResult:
        self.records = records
        self.raw_text = raw_text
        self.error = error
        self.selection = Selection()
        # Every available domain starts selected so the view is populated
        domains = available_domains(records)
        self.filters = Filters(domains=tuple(domains), text=self.filters.text)
        self.bus.publish(RegistryReloaded(record_count=len(records), error=error))
        return self._invalidate()

    def _compile(self) -> CompileResult:
        if self.error is not None:
            return CompileResult(error=self.error)
        return compile_registry(
            self.records,
            self.config,
            self.filters,
            self.selection,
            raw_text=self.raw_text,
            validator=self.validator,
            settings=self.settings,
        )

    def _invalidate(self) -> CompileResult:
        self._generation += 1
        if self._compiling:
            # The running loop below picks up the newer inputs
            return self.result

        self._compiling = True
        try:
            while self._applied != self._generation:
                generation = self._generation
                result = self._compile()
                if generation != self._generation:
                    logger.debug(f"Discarding stale compile result (generation {generation})")
                    continue
                self._applied = generation
                self.result = result
                self.bus.publish(GraphCompiled(generation=generation, result=result))
        finally:
            self._compiling = False
        return self.result
