# -*- coding: utf-8 -*-
"""Change records used by the undo/redo engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, List, Optional

from core.models.cost_element import CostElement, PropertiesSource


@dataclass(frozen=True)
class CellChange:
    """One field edit on one element.

    `field_name` is a field registry name; values are already coerced to
    the field's declared type when the change was produced by the core.
    `old_source`/`new_source` remember the element's properties state
    around the edit.
    """

    field_name: str
    old_value: Any
    new_value: Any
    element: CostElement = field(repr=False, compare=False)
    old_source: Optional[PropertiesSource] = None
    new_source: Optional[PropertiesSource] = None


@dataclass
class ChangeSet:
    """All cell changes of one logical user action (edit, paste, clear...)."""

    description: str = "Change"
    changes: List[CellChange] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def add(self, change: CellChange) -> None:
        self.changes.append(change)

    def add_change(self, element: CostElement, field_name: str, old_value: Any, new_value: Any, *,
                   old_source: Optional[PropertiesSource] = None,
                   new_source: Optional[PropertiesSource] = None) -> CellChange:
        change = CellChange(field_name=field_name, old_value=old_value, new_value=new_value, element=element,
                            old_source=old_source, new_source=new_source)
        self.changes.append(change)
        return change

    def is_empty(self) -> bool:
        return not self.changes

    def __len__(self) -> int:
        return len(self.changes)

    def __iter__(self) -> Iterator[CellChange]:
        return iter(self.changes)
