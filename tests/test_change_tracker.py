# -*- coding: utf-8 -*-
"""Undo/redo history over typed field edits."""

from __future__ import annotations

from decimal import Decimal

import pytest

from core.errors import FieldCoercionFailure
from core.models.changes import ChangeSet
from core.models.cost_element import CostElement, PropertiesSource
from services.change_tracker import ChangeTracker


def test_undo_redo_sequence() -> None:
    el = CostElement()
    tracker = ChangeTracker()
    for value in ("10", "20", "30"):
        tracker.edit(el, "Up", value)
    assert el.up == Decimal("30")

    tracker.undo()
    assert el.up == Decimal("20")
    tracker.undo()
    assert el.up == Decimal("10")
    tracker.redo()
    assert el.up == Decimal("20")
    assert tracker.summary() == "Undo: 2 | Redo: 1"


def test_new_edit_clears_redo() -> None:
    el = CostElement()
    tracker = ChangeTracker()
    tracker.edit(el, "name", "a")
    tracker.edit(el, "name", "b")
    tracker.undo()
    assert tracker.can_redo

    tracker.edit(el, "name", "c")
    assert not tracker.can_redo
    assert tracker.redo() is None
    assert el.name == "c"


def test_unchanged_value_is_not_recorded() -> None:
    el = CostElement(up=Decimal("5"))
    tracker = ChangeTracker()
    assert tracker.edit(el, "up", "5.0") is None
    assert not tracker.can_undo


def test_depth_evicts_oldest() -> None:
    el = CostElement()
    tracker = ChangeTracker(depth=2)
    for value in ("1", "2", "3"):
        tracker.edit(el, "qty", value)
    assert tracker.undo_count == 2

    tracker.undo()
    tracker.undo()
    assert tracker.undo() is None
    # the first edit (0 -> 1) fell off the stack
    assert el.qty == Decimal("1")


def test_edit_with_bad_value_raises_and_records_nothing() -> None:
    el = CostElement(up=Decimal("5"))
    tracker = ChangeTracker()
    with pytest.raises(FieldCoercionFailure):
        tracker.edit(el, "up", "abc")
    assert el.up == Decimal("5")
    assert not tracker.can_undo


def test_batch_is_one_step_and_rolls_back_on_error() -> None:
    el = CostElement()
    tracker = ChangeTracker()
    with tracker.batch("Fill") as b:
        b.set(el, "name", "Pipe")
        b.set(el, "qty", "3")
    assert tracker.undo_count == 1
    assert tracker.peek_undo().description == "Fill"

    tracker.undo()
    assert (el.name, el.qty) == ("", Decimal(0))

    with pytest.raises(RuntimeError):
        with tracker.batch("Broken") as b:
            b.set(el, "name", "Temp")
            raise RuntimeError("stop")
    assert el.name == ""
    assert tracker.undo_count == 0


def test_replay_skips_unconvertible_field_and_applies_rest() -> None:
    el = CostElement(up=Decimal("7"), name="new")
    change_set = ChangeSet(description="Imported edit")
    change_set.add_change(el, "up", "garbage", Decimal("7"))
    change_set.add_change(el, "name", "old", "new")

    tracker = ChangeTracker()
    assert tracker.record(change_set)
    tracker.undo()

    assert el.up == Decimal("7")
    assert el.name == "old"
    assert len(tracker.last_failures) == 1
    assert tracker.last_failures[0].field_name == "up"


def test_on_change_listener_failures_are_swallowed() -> None:
    seen = []

    def listener(t):
        seen.append(t.summary())
        raise RuntimeError("listener bug")

    el = CostElement()
    tracker = ChangeTracker(on_change=listener)
    tracker.edit(el, "name", "x")
    tracker.undo()
    assert seen == ["Undo: 1 | Redo: 0", "Undo: 0 | Redo: 1"]


def test_undo_replays_old_values_in_add_order() -> None:
    el = CostElement(name="C")
    change_set = ChangeSet(description="Rename twice")
    change_set.add_change(el, "name", "A", "B")
    change_set.add_change(el, "name", "B", "C")

    tracker = ChangeTracker()
    tracker.record(change_set)
    tracker.undo()
    assert el.name == "B"
    tracker.redo()
    assert el.name == "C"


def test_undo_of_mirror_edits_restores_properties_state() -> None:
    el = CostElement()
    el.apply_properties('a:1:{s:12:"DX.SPEC_Name";s:4:"Pipe";}')
    tracker = ChangeTracker()
    with tracker.batch("Spec") as b:
        b.set(el, "spec_name", "Valve")
        b.set(el, "spec_size", "DN50")
    assert el.properties_source == PropertiesSource.MIRRORS

    tracker.undo()
    assert (el.spec_name, el.spec_size) == ("Pipe", "")
    assert el.properties_source == PropertiesSource.BLOB

    tracker.redo()
    assert (el.spec_name, el.spec_size) == ("Valve", "DN50")
    assert el.properties_source == PropertiesSource.MIRRORS


def test_rolled_back_mirror_edit_restores_properties_state() -> None:
    el = CostElement()
    tracker = ChangeTracker()
    with pytest.raises(RuntimeError):
        with tracker.batch("Broken") as b:
            b.set(el, "spec_type", "Gate")
            raise RuntimeError("stop")
    assert el.spec_type == ""
    assert el.properties_source == PropertiesSource.BLOB


def test_undo_of_blob_edit_drops_keys_the_new_blob_added() -> None:
    el = CostElement()
    el.apply_properties('a:1:{s:5:"Color";s:3:"red";}')
    tracker = ChangeTracker()
    tracker.edit(el, "properties", 'a:2:{s:5:"Color";s:4:"blue";s:6:"Weight";s:2:"10";}')
    assert el.additional_data == {"Color": "blue", "Weight": "10"}

    tracker.undo()
    assert el.additional_data == {"Color": "red"}
