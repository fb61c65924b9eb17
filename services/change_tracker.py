# -*- coding: utf-8 -*-
"""ChangeTracker: transactional undo/redo over field edits.

Every value is written through the field registry, so undo/redo coerce
exactly like a paste or a typed edit would. A field that cannot be coerced
is skipped (logged, collected in `last_failures`); the rest of the batch
still applies.

No UI dependency. Single-threaded by contract.
"""

from __future__ import annotations

import logging
from collections import deque
from contextlib import contextmanager
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional, Sequence, Tuple

from core import fields
from core.errors import ChangeApplicationFailure, FieldCoercionFailure
from core.models.changes import CellChange, ChangeSet
from core.models.cost_element import CostElement, PropertiesSource

log = logging.getLogger(__name__)

DEFAULT_DEPTH = 50


def _write(change: CellChange, *, use_new: bool) -> None:
    fields.set_value(change.element, change.field_name, change.new_value if use_new else change.old_value)


def _restore_sources(changes: Sequence[CellChange], *, use_new: bool) -> None:
    """Leave each element in the properties state it had before (undo) or after (redo) the change set."""
    final: Dict[int, Tuple[CostElement, PropertiesSource]] = {}
    ordered = changes if use_new else list(reversed(changes))
    for change in ordered:
        source = change.new_source if use_new else change.old_source
        if source is not None:
            final[id(change.element)] = (change.element, source)
    for element, source in final.values():
        element.properties_source = source


class ChangeBatch:
    """Edits made through one `ChangeTracker.batch()` block."""

    def __init__(self, description: str) -> None:
        self.change_set = ChangeSet(description=description)

    def set(self, element: CostElement, field_name: str, value: Any) -> Optional[CellChange]:
        """Write one field now and remember it. Unchanged values are not recorded.

        Raises FieldCoercionFailure with the element untouched.
        """
        canonical = fields.get_field(field_name).name
        old_source = element.properties_source
        old, new = fields.set_value(element, canonical, value)
        if old == new:
            element.properties_source = old_source
            return None
        # mirror and blob edits also move the properties state
        return self.change_set.add_change(element, canonical, old, new,
                                          old_source=old_source, new_source=element.properties_source)

    def add(self, change: CellChange) -> None:
        """Register a change the caller already applied."""
        self.change_set.add(change)

    def rollback(self) -> None:
        for change in reversed(self.change_set.changes):
            try:
                _write(change, use_new=False)
            except FieldCoercionFailure:
                log.warning("Rollback skipped %s on %s", change.field_name, change.element.display_id(), exc_info=True)
        _restore_sources(self.change_set.changes, use_new=False)


class ChangeTracker:
    def __init__(self, depth: int = DEFAULT_DEPTH, on_change: Optional[Callable[["ChangeTracker"], None]] = None) -> None:
        self.depth = max(1, int(depth or DEFAULT_DEPTH))
        # deque(maxlen) drops from the left, i.e. the oldest entry
        self._undo: Deque[ChangeSet] = deque(maxlen=self.depth)
        self._redo: Deque[ChangeSet] = deque(maxlen=self.depth)
        self.last_failures: List[ChangeApplicationFailure] = []
        self._on_change = on_change

    # ----------------- state -----------------
    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_count(self) -> int:
        return len(self._undo)

    @property
    def redo_count(self) -> int:
        return len(self._redo)

    def peek_undo(self) -> Optional[ChangeSet]:
        return self._undo[-1] if self._undo else None

    def peek_redo(self) -> Optional[ChangeSet]:
        return self._redo[-1] if self._redo else None

    def summary(self) -> str:
        return f"Undo: {len(self._undo)} | Redo: {len(self._redo)}"

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
        self.last_failures = []
        self._notify()

    # ----------------- recording -----------------
    def record(self, change_set: Optional[ChangeSet]) -> bool:
        """Push a non-empty change set and invalidate redo. Returns True if recorded."""
        if change_set is None or change_set.is_empty():
            return False
        self._undo.append(change_set)
        self._redo.clear()
        log.debug("Recorded '%s' (%d change(s)); %s", change_set.description, len(change_set), self.summary())
        self._notify()
        return True

    def edit(self, element: CostElement, field_name: str, value: Any, description: str = "") -> Optional[ChangeSet]:
        """Single-field edit recorded as its own change set."""
        with self.batch(description or f"Edit {fields.get_field(field_name).grid_name}") as b:
            b.set(element, field_name, value)
        return b.change_set if not b.change_set.is_empty() else None

    @contextmanager
    def batch(self, description: str = "Change") -> Iterator[ChangeBatch]:
        """Group edits into one undoable step.

        On an exception inside the block the edits are rolled back and
        nothing is recorded.
        """
        b = ChangeBatch(description)
        try:
            yield b
        except BaseException:
            b.rollback()
            raise
        self.record(b.change_set)

    # ----------------- replay -----------------
    def undo(self) -> Optional[ChangeSet]:
        if not self._undo:
            log.info("Nothing to undo")
            return None
        change_set = self._undo.pop()
        self._apply(change_set, use_new=False)
        self._redo.append(change_set)
        log.info("Undo '%s' (%d change(s))", change_set.description, len(change_set))
        self._notify()
        return change_set

    def redo(self) -> Optional[ChangeSet]:
        if not self._redo:
            log.info("Nothing to redo")
            return None
        change_set = self._redo.pop()
        self._apply(change_set, use_new=True)
        self._undo.append(change_set)
        log.info("Redo '%s' (%d change(s))", change_set.description, len(change_set))
        self._notify()
        return change_set

    def _apply(self, change_set: ChangeSet, *, use_new: bool) -> None:
        self.last_failures = []
        # both directions replay in the order the changes were added
        for change in change_set.changes:
            value = change.new_value if use_new else change.old_value
            try:
                _write(change, use_new=use_new)
            except FieldCoercionFailure as e:
                failure = ChangeApplicationFailure(change.field_name, value, e.target, str(e))
                self.last_failures.append(failure)
                log.warning("Skipped %s on %s: %s", change.field_name, change.element.display_id(), e)
        _restore_sources(change_set.changes, use_new=use_new)

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self)
        except Exception:
            log.debug("History listener failed.", exc_info=True)
