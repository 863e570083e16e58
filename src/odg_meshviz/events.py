"""Typed control events and an explicit subscription interface."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from odg_meshviz.enums import EntityKind
from odg_meshviz.models import CompileResult

logger = logging.getLogger(__name__)


class BaseEvent(BaseModel):
    """Base event with common fields."""

    model_config = ConfigDict(frozen=True)

    event_type: str
    timestamp: datetime = Field(default_factory=datetime.now)


class SelectionChanged(BaseEvent):
    event_type: str = "selection_changed"
    id: str | None = None
    kind: EntityKind | None = None


class FilterChanged(BaseEvent):
    event_type: str = "filter_changed"
    domains: tuple[str, ...] = ()
    text: str = ""


class RegistryReloaded(BaseEvent):
    event_type: str = "registry_reloaded"
    record_count: int
    error: str | None = None


class GraphCompiled(BaseEvent):
    event_type: str = "graph_compiled"
    generation: int
    result: CompileResult


E = TypeVar("E", bound=BaseEvent)


class EventBus:
    """In-process publish/subscribe keyed by event class."""

    def __init__(self) -> None:
        self._handlers: dict[type[BaseEvent], list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register ``handler`` for ``event_type``.

        Returns:
            A callable that removes the subscription.
        """
        self._handlers.setdefault(event_type, []).append(handler)
        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: type[BaseEvent], handler: Callable[[Any], None]) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: BaseEvent) -> None:
        """Deliver ``event`` to its subscribers in subscription order."""
        handlers = list(self._handlers.get(type(event), []))
        logger.debug(f"Publishing {event.event_type} to {len(handlers)} handler(s)")
        for handler in handlers:
            handler(event)
