# -*- coding: utf-8 -*-
"""Simple event bus for document-level notifications (no UI dependency)."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple, Type


@dataclass(frozen=True)
class DocumentImported:
    path: str
    element_count: int
    warnings: Tuple[str, ...] = ()
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class DocumentExported:
    path: str
    mode: str
    element_count: int
    forced: bool = False
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ElementsChanged:
    reason: str
    count: int = 0
    fields: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class ProjectSaved:
    path: str


@dataclass(frozen=True)
class ProjectLoaded:
    path: str
    element_count: int


@dataclass(frozen=True)
class HistoryChanged:
    can_undo: bool
    can_redo: bool
    summary: str = ""


class EventBus:
    """Minimal in-process event bus (best-effort)."""

    def __init__(self) -> None:
        self._subs: Dict[Type[Any], List[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: Type[Any], callback: Callable[[Any], None]) -> None:
        self._subs.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: Type[Any], callback: Callable[[Any], None]) -> None:
        subs = self._subs.get(event_type) or []
        self._subs[event_type] = [cb for cb in subs if cb is not callback]

    def emit(self, event: Any) -> None:
        for cb in list(self._subs.get(type(event), []) or []):
            try:
                cb(event)
            except Exception:
                # Best-effort: a listener must never break the document operation
                logging.getLogger(__name__).debug("Event handler failed.", exc_info=True)
