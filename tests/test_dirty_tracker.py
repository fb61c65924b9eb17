# -*- coding: utf-8 -*-
from __future__ import annotations

from app.dirty_tracker import DirtyTracker


def test_dirty_tracker_marks_and_clears() -> None:
    tracker = DirtyTracker()
    assert tracker.is_dirty is False

    tracker.mark_dirty(reason="user_edit", fields={"qty", "up"})
    assert tracker.is_dirty is True
    assert tracker.last_change_summary == "user_edit | qty,up"
    assert tracker.change_count == 1
    assert tracker.changed_fields == {"qty", "up"}

    tracker.clear_dirty()
    assert tracker.is_dirty is False
    assert tracker.last_change_summary == ""
    assert tracker.change_count == 0
    assert tracker.changed_fields == set()


def test_dirty_tracker_suspend_context() -> None:
    tracker = DirtyTracker()
    assert tracker.is_dirty is False

    with tracker.suspend_tracking():
        tracker.mark_dirty(reason="ignored")
        assert tracker.is_dirty is False

    tracker.mark_dirty(reason="applied")
    assert tracker.is_dirty is True


def test_dirty_tracker_nested_suspend() -> None:
    tracker = DirtyTracker()
    tracker.suspend()
    tracker.suspend()
    tracker.resume()
    tracker.mark_dirty("still suspended")
    assert tracker.is_dirty is False

    tracker.resume()
    tracker.resume()  # extra resume is harmless
    tracker.mark_dirty("now")
    assert tracker.is_dirty is True
