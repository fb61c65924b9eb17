# -*- coding: utf-8 -*-
"""ProjectManager: the collaborator API used by the editor and the CLI."""

from __future__ import annotations

from decimal import Decimal

import pytest
from lxml import etree

from app.events import DocumentExported, DocumentImported, HistoryChanged
from core.errors import ExportBlockedError, StructuralParseError
from core.models.cost_element import CostElement, PropertiesSource
from services.project_manager import ProjectManager


@pytest.fixture()
def pm(sample_xml_path):
    manager = ProjectManager(settings={})
    manager.import_document(sample_xml_path)
    return manager


def test_import_replaces_collection_and_emits(sample_xml_path) -> None:
    manager = ProjectManager(settings={})
    seen = []
    manager.events.subscribe(DocumentImported, seen.append)

    result = manager.import_document(sample_xml_path)
    assert len(manager.elements) == 1
    assert manager.elements[0].display_number == "1"
    assert manager.original_schema
    assert manager.is_dirty is False
    assert seen[0].element_count == 1
    assert result.warnings == []


def test_failed_import_keeps_current_collection(pm, tmp_path) -> None:
    bad = tmp_path / "bad.xml"
    bad.write_text("<<<", encoding="utf-8")
    with pytest.raises(StructuralParseError):
        pm.import_document(bad)
    assert len(pm.elements) == 1


def test_sample_document_validates_clean(pm) -> None:
    result = pm.validate()
    assert result.is_valid
    assert result.warnings == []
    assert "✓ VALIDATION PASSED" in pm.validation_report(result)


def test_export_blocked_then_forced(pm, tmp_path) -> None:
    exported = []
    pm.events.subscribe(DocumentExported, exported.append)
    el = pm.elements[0]
    pm.set_value(el, "Text", "")

    target = tmp_path / "out.xml"
    with pytest.raises(ExportBlockedError) as exc:
        pm.export_document(target)
    assert exc.value.result.has_errors
    assert not target.exists()

    result = pm.export_document(target, force=True)
    assert result.has_errors
    assert target.exists()
    assert exported[-1].forced is True


def test_export_gaeb_without_validation(tmp_path, sample_xml_path) -> None:
    manager = ProjectManager(settings={"validate_before_export": False})
    manager.import_document(sample_xml_path)
    manager.elements[0].text = ""
    target = tmp_path / "gaeb.xml"

    assert manager.export_document(target, mode="gaeb") is None
    root = etree.parse(str(target)).getroot()
    assert etree.QName(root).localname == "GAEB"


def test_schema_diff_after_import(pm) -> None:
    pm.set_value(pm.elements[0], "description", "")
    codes = pm.validate().codes()
    assert "SCHEMA_MISSING_FIELDS" in codes

    no_compare = ProjectManager(settings={"compare_with_original": False})
    no_compare.dm.replace_elements(pm.elements, schema=pm.original_schema)
    assert "SCHEMA_MISSING_FIELDS" not in no_compare.validate().codes()


def test_edit_undo_redo_marks_dirty_and_emits(pm) -> None:
    history = []
    pm.events.subscribe(HistoryChanged, history.append)
    el = pm.elements[0]

    pm.set_value(el, "up", "10")
    pm.set_value(el, "up", "20")
    pm.set_value(el, "up", "30")
    assert pm.is_dirty

    pm.undo()
    pm.undo()
    pm.redo()
    assert el.up == Decimal("20")
    assert history[-1].summary == "Undo: 2 | Redo: 1"
    assert pm.can_undo and pm.can_redo


def test_recalculate_sum_is_undoable(pm) -> None:
    el = pm.elements[0]
    pm.set_value(el, "qty", "4")
    pm.recalculate_sum(el)
    assert el.sum == Decimal("10.0")
    pm.undo()
    assert el.sum == Decimal("25")


def test_regenerate_properties_and_undo(pm) -> None:
    el = pm.elements[0]
    old_blob = el.properties
    pm.set_value(el, "spec_name", "Valve")
    assert el.properties_source == PropertiesSource.MIRRORS
    assert el.properties == old_blob

    pm.regenerate_properties(el)
    assert pm.decode_properties(el.properties)["DX.SPEC_Name"] == "Valve"
    assert pm.decode_properties(el.properties)["DX.SPEC_Size"] == "DN125"

    pm.undo()
    assert el.properties == old_blob
    assert el.spec_name == "Pipe"
    assert el.properties_source == PropertiesSource.BLOB


def test_add_duplicate_remove(pm) -> None:
    src = pm.elements[0]
    clones = pm.duplicate_elements([src, src])
    assert [c.id for c in clones] == ["2", "3"]
    assert len({src.ident, clones[0].ident, clones[1].ident}) == 3
    assert clones[0].text == src.text
    assert clones[0].catalog_assignments is not src.catalog_assignments

    added = pm.add_element()
    assert added.id == "4"
    assert [e.display_number for e in pm.flat_list()] == ["1", "2", "3", "4"]

    assert pm.remove_elements([clones[0], added]) == 2
    assert [e.id for e in pm.elements] == ["1", "3"]
    assert pm.is_dirty


def test_wbs_views(pm) -> None:
    roots = pm.build_wbs_tree()
    assert roots[0].name == "Valves"
    names = [i.indented_name for i in pm.flatten("presorted_groups")]
    assert names == ["Valves", "    Gate valve", "        Steel pipe"]


def test_clipboard_through_manager(pm) -> None:
    el = pm.elements[0]
    text = pm.copy_cells([el], ["name", "qu"])
    assert text == "Steel pipe\tm"

    result = pm.paste_cells([el], ["name", "qu"], "Copper pipe\tkg")
    assert result.pasted == 2
    assert (el.name, el.qu) == ("Copper pipe", "kg")

    pm.clear_cells([(el, "qu")])
    assert el.qu == ""
    pm.undo()
    pm.undo()
    assert (el.name, el.qu) == ("Steel pipe", "m")


def test_import_template_appends_rows(pm, tmp_path) -> None:
    path = tmp_path / "rows.csv"
    path.write_text("ID,Name,Text,Qty,UnitPrice\nX-1,New,Line,2,5\n", encoding="utf-8")
    added = pm.import_template(path)
    assert len(added) == 1
    assert added[0].id == "2"
    assert added[0].id2 == "X-1"
    assert added[0].sum == Decimal("10")
    assert len(pm.elements) == 2


def test_session_save_and_load(pm, tmp_path) -> None:
    pm.set_value(pm.elements[0], "note", "edited")
    path = pm.save_project(tmp_path / "demo.novaava")
    assert pm.is_dirty is False

    other = ProjectManager(settings={})
    project = other.load_project(path)
    assert project.source_file.endswith("sample.xml")
    assert other.elements[0].note == "edited"
    assert not other.original_schema
    assert not other.can_undo


def test_encode_properties_helper() -> None:
    blob = ProjectManager.encode_properties(name="A")
    assert blob == 'a:1:{s:12:"DX.SPEC_Name";s:1:"A";}'
    assert ProjectManager.decode_properties(blob) == {"DX.SPEC_Name": "A"}


def test_settings_undo_depth_is_honoured() -> None:
    manager = ProjectManager(settings={"undo_depth": 1})
    el = manager.add_element(CostElement(name="x"))
    manager.set_value(el, "name", "a")
    manager.set_value(el, "name", "b")
    assert manager.tracker.undo_count == 1
