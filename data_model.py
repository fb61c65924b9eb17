# -*- coding: utf-8 -*-
"""data_model.py

Live document state: the flat element collection, where it came from,
the import-time schema snapshot and the unsaved-changes flag.

Rule: this module does NOT depend on any UI toolkit.
The UI subscribes to `events` to refresh itself.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from app.dirty_tracker import DirtyTracker
from app.events import ElementsChanged, EventBus
from core.models.cost_element import CostElement
from core.types import ValidationResult
from core.validators.schema_diff import OriginalSchema
from domain.wbs import numeric_id

log = logging.getLogger(__name__)


class DataModel:
    """
    Single owner of the element collection.

    Identity of elements is object identity: the same Id may transiently
    appear on several elements while editing; the validator reports it.
    """

    def __init__(self, events: Optional[EventBus] = None):
        self.events = events or EventBus()
        self.dirty = DirtyTracker()
        self.clear()

    # ----------------- lifecycle -----------------
    def clear(self) -> None:
        self.elements: List[CostElement] = []
        self.source_path = ""      # interchange document last imported
        self.project_path = ""     # session file last saved/loaded
        self.original_schema = OriginalSchema()
        self.last_validation: Optional[ValidationResult] = None
        self.dirty.clear_dirty()

    def replace_elements(self, elements: Iterable[CostElement], *, source_path: str = "",
                         schema: Optional[OriginalSchema] = None) -> None:
        with self.dirty.suspend_tracking():
            self.elements = list(elements)
            self.source_path = str(source_path or "")
            self.original_schema = schema if schema is not None else OriginalSchema()
            self.last_validation = None
        self.dirty.clear_dirty()
        self.notify_changed("replaced")

    @property
    def is_dirty(self) -> bool:
        return self.dirty.is_dirty

    def mark_dirty(self, reason: str = "", fields: Optional[Iterable[str]] = None) -> None:
        self.dirty.mark_dirty(reason, fields)

    def notify_changed(self, reason: str, count: int = 0, fields: Optional[Sequence[str]] = None) -> None:
        self.events.emit(ElementsChanged(reason=reason, count=count or len(self.elements), fields=tuple(fields) if fields else None))

    # ----------------- collection -----------------
    def __len__(self) -> int:
        return len(self.elements)

    def index_of(self, element: CostElement) -> int:
        for i, el in enumerate(self.elements):
            if el is element:
                return i
        return -1

    def find_by_id(self, element_id: str) -> List[CostElement]:
        return [el for el in self.elements if el.id == element_id]

    def next_available_id(self) -> int:
        """max(numeric Id) + 1; non-numeric ids count as 0."""
        if not self.elements:
            return 1
        return max(numeric_id(el) for el in self.elements) + 1

    def insert(self, elements: Sequence[CostElement], index: Optional[int] = None) -> None:
        if index is None or index < 0 or index > len(self.elements):
            index = len(self.elements)
        self.elements[index:index] = list(elements)
        self.mark_dirty("add", None)
        self.notify_changed("added", len(elements))

    def remove(self, elements: Iterable[CostElement]) -> int:
        doomed = {id(el) for el in elements}
        before = len(self.elements)
        self.elements = [el for el in self.elements if id(el) not in doomed]
        removed = before - len(self.elements)
        if removed:
            self.mark_dirty("remove")
            self.notify_changed("removed", removed)
        return removed
