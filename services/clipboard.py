# -*- coding: utf-8 -*-
"""Cell clipboard operations (copy / paste / clear) without a UI toolkit.

The caller describes the visible grid as a list of row elements plus a list
of column field names, or as explicit (element, field) cells. Paste and
clear are each recorded as ONE undoable change set.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from core import fields
from core.errors import FieldCoercionFailure, UnknownFieldError
from core.models.changes import ChangeSet
from core.models.cost_element import CostElement
from domain.parse import format_datetime, format_plain
from services.change_tracker import ChangeTracker

log = logging.getLogger(__name__)

_ROW_SPLIT = re.compile(r"\r\n|\n")

Cell = Tuple[CostElement, str]


@dataclass
class PasteResult:
    pasted: int = 0
    skipped: int = 0
    failures: List[FieldCoercionFailure] = field(default_factory=list)
    change_set: Optional[ChangeSet] = None


def parse_tsv(text: str) -> List[List[str]]:
    """Rows split on CRLF or LF, cells on TAB. A trailing empty line is dropped."""
    if not text:
        return []
    rows = _ROW_SPLIT.split(text)
    if rows and rows[-1] == "":
        rows = rows[:-1]
    return [r.split("\t") for r in rows]


def cell_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format_plain(value)
    if isinstance(value, datetime):
        return format_datetime(value)
    return "" if value is None else str(value)


def _editable(name: str) -> Optional[str]:
    try:
        spec = fields.get_field(name)
    except UnknownFieldError:
        return None
    return spec.name if spec.editable else None


def copy_cells(rows: Sequence[CostElement], columns: Sequence[str]) -> str:
    """TSV text of the given block (derived fields included)."""
    lines = []
    for el in rows:
        lines.append("\t".join(cell_text(fields.get_value(el, c)) for c in columns))
    return "\r\n".join(lines)


def paste_cells(
    tracker: ChangeTracker,
    rows: Sequence[CostElement],
    columns: Sequence[str],
    text: str,
    *,
    start_row: int = 0,
    start_col: int = 0,
) -> PasteResult:
    """Paste a TSV block with its top-left cell at (start_row, start_col).

    Cells falling outside the grid stop that row/column. Read-only,
    unknown and unchanged cells are skipped, as are values that cannot be
    converted to the column type.
    """
    result = PasteResult()
    block = parse_tsv(text)
    if not block:
        return result

    with tracker.batch("Paste cells") as batch:
        for i, values in enumerate(block):
            r = start_row + i
            if r >= len(rows):
                break
            el = rows[r]
            for j, raw in enumerate(values):
                c = start_col + j
                if c >= len(columns):
                    break
                name = _editable(columns[c])
                if name is None:
                    result.skipped += 1
                    continue
                try:
                    change = batch.set(el, name, raw)
                except FieldCoercionFailure as e:
                    log.warning("Paste skipped %s on %s: %s", name, el.display_id(), e)
                    result.failures.append(e)
                    result.skipped += 1
                    continue
                if change is None:
                    result.skipped += 1
                else:
                    result.pasted += 1

    result.change_set = batch.change_set if result.pasted else None
    log.info("Pasted %d cell(s), skipped %d", result.pasted, result.skipped)
    return result


def clear_cells(tracker: ChangeTracker, cells: Iterable[Cell]) -> Optional[ChangeSet]:
    """Reset each editable cell to its type default. Never fails."""
    with tracker.batch("Clear cells") as batch:
        for el, name in cells:
            canonical = _editable(name)
            if canonical is None:
                continue
            batch.set(el, canonical, fields.get_field(canonical).default())
    return batch.change_set if not batch.change_set.is_empty() else None


def grid_cells(rows: Sequence[CostElement], columns: Sequence[str]) -> List[Cell]:
    return [(el, c) for el in rows for c in columns]
