# -*- coding: utf-8 -*-
"""ProjectManager

Owns the live document (DataModel) and composes importer, exporter,
validation, undo/redo, WBS and session persistence behind one API for the
editor UI and the CLI.

- No UI dependency: the UI passes explicit cells / rows / columns.
- Settings are read once at construction (or injected).
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from app.events import DocumentExported, DocumentImported, EventBus, HistoryChanged, ProjectLoaded, ProjectSaved
from core import fields
from core.errors import ExportBlockedError
from core.models.changes import ChangeSet
from core.models.cost_element import CostElement
from core.serializers import properties as props
from core.types import ValidationResult
from core.validators.schema_diff import OriginalSchema
from data_model import DataModel
from domain.wbs import WbsDisplayItem, WbsNode, WbsStrategy, assign_display_numbers, build_wbs_tree, flatten_wbs
from infra import settings as user_settings
from services import clipboard
from services.change_tracker import ChangeTracker
from services.validation_service import ValidationService, render_report
from storage import csv_templates, project_io, xml_exporter, xml_importer
from storage.xml_exporter import ExportMode
from storage.xml_importer import ImportResult

log = logging.getLogger(__name__)

PathArg = Union[str, Path]


def new_ident() -> str:
    """GUID hex without dashes, as written for pasted/duplicated elements."""
    return uuid.uuid4().hex


class ProjectManager:
    def __init__(self, settings: Optional[Dict[str, Any]] = None, *, events: Optional[EventBus] = None):
        self._persist_settings = settings is None
        self.settings: Dict[str, Any] = dict(settings) if settings is not None else user_settings.load_settings()
        base = user_settings.defaults()
        for k, v in base.items():
            self.settings.setdefault(k, v)

        self.events = events or EventBus()
        self.dm = DataModel(self.events)
        self.tracker = ChangeTracker(depth=int(self.settings.get("undo_depth") or 50), on_change=self._history_changed)

    # ----------------- state -----------------
    @property
    def elements(self) -> List[CostElement]:
        return self.dm.elements

    @property
    def original_schema(self) -> OriginalSchema:
        return self.dm.original_schema

    @property
    def is_dirty(self) -> bool:
        return self.dm.is_dirty

    def _history_changed(self, tracker: ChangeTracker) -> None:
        self.events.emit(HistoryChanged(can_undo=tracker.can_undo, can_redo=tracker.can_redo, summary=tracker.summary()))

    def _remember(self, path: PathArg) -> None:
        if not self._persist_settings:
            return
        try:
            self.settings = user_settings.add_recent_file(str(path))
        except OSError:
            log.debug("Could not update recent files.", exc_info=True)

    # ----------------- interchange document -----------------
    def import_document(self, path: PathArg) -> ImportResult:
        """Replace the live collection with the document's elements.

        Raises StructuralParseError when the file is not XML; the current
        collection is left untouched in that case.
        """
        result = xml_importer.import_document(path)
        assign_display_numbers(result.elements)
        self.dm.replace_elements(result.elements, source_path=str(path), schema=result.schema)
        self.tracker.clear()
        self._remember(path)
        self.events.emit(DocumentImported(path=str(path), element_count=len(result.elements), warnings=tuple(result.warnings)))
        return result

    def export_document(self, path: PathArg, mode: Union[ExportMode, str, None] = None, force: bool = False) -> Optional[ValidationResult]:
        """Validate (unless disabled in settings) and write.

        Raises ExportBlockedError when validation reports errors and `force`
        is False; ExportError when the file cannot be written.
        """
        mode = ExportMode(mode or self.settings.get("default_export_mode") or ExportMode.AVA)
        result: Optional[ValidationResult] = None
        if self.settings.get("validate_before_export", True):
            result = self.validate()
            if result.has_errors and not force:
                log.warning("Export to %s blocked: %d validation error(s)", path, len(result.errors))
                raise ExportBlockedError(result)
            if result.has_errors:
                log.warning("Export to %s forced despite %d validation error(s)", path, len(result.errors))

        xml_exporter.export_document(self.elements, path, mode)
        self._remember(path)
        self.events.emit(DocumentExported(path=str(path), mode=mode.value, element_count=len(self.elements), forced=bool(force)))
        return result

    # ----------------- validation -----------------
    def validate(self, schema: Optional[OriginalSchema] = None) -> ValidationResult:
        service = ValidationService(self.dm, compare_with_original=bool(self.settings.get("compare_with_original", True)))
        return service.run(schema)

    def validation_report(self, result: Optional[ValidationResult] = None) -> str:
        return render_report(result or self.dm.last_validation or self.validate())

    # ----------------- edits / history -----------------
    def set_value(self, element: CostElement, field_name: str, value: Any, description: str = "") -> Optional[ChangeSet]:
        """Typed edit of one cell, recorded for undo. Raises FieldCoercionFailure."""
        change_set = self.tracker.edit(element, field_name, value, description)
        if change_set is not None:
            self.dm.mark_dirty(change_set.description, [c.field_name for c in change_set])
            self.dm.notify_changed("edited", 1, [c.field_name for c in change_set])
        return change_set

    def record(self, change_set: ChangeSet) -> bool:
        """Record edits the caller already applied (e.g. a form dialog)."""
        recorded = self.tracker.record(change_set)
        if recorded:
            self.dm.mark_dirty(change_set.description, [c.field_name for c in change_set])
        return recorded

    def undo(self) -> Optional[ChangeSet]:
        change_set = self.tracker.undo()
        if change_set is not None:
            self.dm.mark_dirty("undo")
            self.dm.notify_changed("undo", len(change_set))
        return change_set

    def redo(self) -> Optional[ChangeSet]:
        change_set = self.tracker.redo()
        if change_set is not None:
            self.dm.mark_dirty("redo")
            self.dm.notify_changed("redo", len(change_set))
        return change_set

    @property
    def can_undo(self) -> bool:
        return self.tracker.can_undo

    @property
    def can_redo(self) -> bool:
        return self.tracker.can_redo

    def recalculate_sum(self, element: CostElement) -> Optional[ChangeSet]:
        """Sum = Qty * Up, as one undoable edit."""
        return self.set_value(element, "sum", element.qty * element.up, "Recalculate sum")

    # ----------------- properties blob -----------------
    @staticmethod
    def encode_properties(**values: str) -> str:
        return props.encode_properties(**values)

    @staticmethod
    def decode_properties(text: str) -> Dict[str, str]:
        return props.decode_properties(text)

    def regenerate_properties(self, element: CostElement) -> Optional[ChangeSet]:
        """Rewrite `properties` from the SPEC mirrors (state becomes MIRRORS).

        Recorded as one change of `properties`; undoing it restores the
        previous blob (and with it the mirrors it encodes).
        """
        old = element.properties
        new = element.regenerate_properties()
        if old == new:
            return None
        change_set = ChangeSet(description="Generate properties")
        change_set.add_change(element, "properties", old, new)
        self.record(change_set)
        self.dm.notify_changed("properties", 1, ["properties"])
        return change_set

    # ----------------- WBS / numbering -----------------
    def build_wbs_tree(self, strategy: Union[WbsStrategy, str] = WbsStrategy.SORTED_ROOTS) -> List[WbsNode]:
        return build_wbs_tree(self.elements, WbsStrategy(strategy))

    def flatten(self, strategy: Union[WbsStrategy, str] = WbsStrategy.SORTED_ROOTS) -> List[WbsDisplayItem]:
        return flatten_wbs(self.build_wbs_tree(strategy))

    def flat_list(self) -> List[CostElement]:
        """Flat view in display order ("1", "1.1", ...)."""
        return assign_display_numbers(self.elements)

    # ----------------- collection -----------------
    def add_element(self, element: Optional[CostElement] = None, index: Optional[int] = None) -> CostElement:
        el = element or CostElement()
        if not el.id:
            el.id = str(self.dm.next_available_id())
        if not el.ident:
            el.ident = new_ident()
        self.dm.insert([el], index)
        assign_display_numbers(self.elements)
        return el

    def duplicate_elements(self, elements: Sequence[CostElement], index: Optional[int] = None) -> List[CostElement]:
        """Clones with a fresh Id (max + 1, increasing) and a fresh Ident."""
        next_id = self.dm.next_available_id()
        clones: List[CostElement] = []
        for src in elements:
            c = src.clone()
            c.id = str(next_id)
            c.ident = new_ident()
            next_id += 1
            clones.append(c)
        if clones:
            self.dm.insert(clones, index)
            assign_display_numbers(self.elements)
        return clones

    def remove_elements(self, elements: Iterable[CostElement]) -> int:
        removed = self.dm.remove(list(elements))
        if removed:
            assign_display_numbers(self.elements)
        return removed

    def import_template(self, path: PathArg) -> List[CostElement]:
        """Append the rows of a filled data-entry CSV as new elements."""
        added = csv_templates.convert_template(path)
        next_id = self.dm.next_available_id()
        for el in added:
            el.id = str(next_id)
            el.ident = new_ident()
            next_id += 1
        if added:
            self.dm.insert(added)
            assign_display_numbers(self.elements)
        return added

    # ----------------- clipboard -----------------
    def copy_cells(self, rows: Sequence[CostElement], columns: Sequence[str]) -> str:
        return clipboard.copy_cells(rows, columns)

    def paste_cells(self, rows: Sequence[CostElement], columns: Sequence[str], text: str,
                    start_row: int = 0, start_col: int = 0) -> clipboard.PasteResult:
        result = clipboard.paste_cells(self.tracker, rows, columns, text, start_row=start_row, start_col=start_col)
        if result.change_set is not None:
            names = sorted({c.field_name for c in result.change_set})
            self.dm.mark_dirty("paste", names)
            self.dm.notify_changed("paste", result.pasted, names)
        return result

    def clear_cells(self, cells: Iterable[clipboard.Cell]) -> Optional[ChangeSet]:
        change_set = clipboard.clear_cells(self.tracker, cells)
        if change_set is not None:
            names = sorted({c.field_name for c in change_set})
            self.dm.mark_dirty("clear", names)
            self.dm.notify_changed("clear", len(change_set), names)
        return change_set

    # ----------------- session -----------------
    def save_project(self, path: Optional[PathArg] = None) -> Path:
        target = path or self.dm.project_path
        saved = project_io.save_project(self.elements, target, self.dm.source_path)
        self.dm.project_path = str(saved)
        self.dm.dirty.clear_dirty()
        self._remember(saved)
        self.events.emit(ProjectSaved(path=str(saved)))
        return saved

    def load_project(self, path: PathArg) -> project_io.ProjectData:
        project = project_io.load_project(path)
        assign_display_numbers(project.elements)
        # The import-time snapshot is not persisted; a loaded session has no baseline.
        self.dm.replace_elements(project.elements, source_path=project.source_file)
        self.dm.project_path = str(path)
        self.tracker.clear()
        self._remember(path)
        self.events.emit(ProjectLoaded(path=str(path), element_count=len(project.elements)))
        return project

    # ----------------- field helpers for collaborators -----------------
    @staticmethod
    def field_names(editable_only: bool = False) -> List[str]:
        return fields.field_names(editable_only=editable_only)
