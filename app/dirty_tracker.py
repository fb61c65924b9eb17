# -*- coding: utf-8 -*-
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Optional, Set


class DirtyTracker:
    """Unsaved-changes state of the open document (UI-agnostic).

    Besides the flag it keeps the field names touched since the last save,
    so the editor can highlight edited columns.
    """

    def __init__(self, initial_dirty: bool = False) -> None:
        self.is_dirty = bool(initial_dirty)
        self._suspend_depth = 0
        self.last_change_summary = ""
        self.change_count = 0
        self.changed_fields: Set[str] = set()

    @property
    def suspended(self) -> bool:
        return self._suspend_depth > 0

    def mark_dirty(self, reason: str = "", fields: Optional[Iterable[str]] = None) -> None:
        if self.suspended:
            return
        names = sorted({str(f) for f in fields or ()})
        self.is_dirty = True
        self.change_count += 1
        self.changed_fields.update(names)
        self.last_change_summary = " | ".join(p for p in (str(reason or ""), ",".join(names)) if p)

    def clear_dirty(self) -> None:
        self.is_dirty = False
        self.change_count = 0
        self.changed_fields = set()
        self.last_change_summary = ""

    def suspend(self) -> None:
        self._suspend_depth += 1

    def resume(self) -> None:
        self._suspend_depth = max(0, self._suspend_depth - 1)

    @contextmanager
    def suspend_tracking(self):
        """Replacing the collection (import, session load) is not an edit."""
        self.suspend()
        try:
            yield
        finally:
            self.resume()
