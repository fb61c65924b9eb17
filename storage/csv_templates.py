# -*- coding: utf-8 -*-
"""CSV data-entry templates.

Two templates are offered: a data-entry sheet (one row per future cost
element) and an IFC mapping reference. A filled data-entry sheet converts
into CostElements; unknown columns are ignored.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Union

from core.models.cost_element import CostElement
from domain.parse import to_decimal

log = logging.getLogger(__name__)

DATA_ENTRY_HEADERS = (
    "ID", "Name", "Type", "Text", "LongText", "Qty", "Unit", "UnitPrice",
    "BIMKey", "Description", "Label", "Status", "Notes", "IfcType",
    "Material", "Dimension", "SegmentType", "Color",
)

DATA_ENTRY_SAMPLE = (
    "CAST_Pipe_DIN10216-2_DN125", "C-Stahl Rohr DIN EN 10216-2 P235HTC1 DN125", "Pipe",
    "C-Stahl Rohr DN125", "C-Stahl Rohr DIN EN 10216-2 P235HTC1 DN125", "37.09", "m", "0.11",
    "PIPE_001", "Steel pipe for construction", "DN125 Pipe", "Active", "Sample pipe element",
    "IFCPIPESEGMENT", "P235HTC1", "DN125", "DX_CarbonSteel_1.0345 - DIN EN 10216-2", "#3498DB",
)

IFC_MAPPING_HEADERS = (
    "IfcElementType", "DefaultCode", "DefaultText", "DefaultLongText",
    "DefaultUnit", "TypicalQty", "UnitPriceRange", "DefaultMaterial",
    "DefaultDimension", "DefaultSegmentType",
)

IFC_MAPPING_SAMPLES = (
    ("IFCPIPESEGMENT", "PIPE_STD", "Standard Pipe", "Standard steel pipe segment", "m", "1.0", "50-200", "Steel", "DN100", "Standard"),
    ("IFCWALL", "WALL_STD", "Standard Wall", "Standard concrete wall", "m2", "10.0", "100-300", "Concrete", "200mm", "LoadBearing"),
    ("IFCBEAM", "BEAM_STD", "Standard Beam", "Standard steel beam", "m", "2.0", "200-500", "Steel", "IPE200", "Structural"),
    ("IFCSLAB", "SLAB_STD", "Standard Slab", "Standard concrete slab", "m2", "20.0", "80-150", "Concrete", "200mm", "Floor"),
    ("IFCDOOR", "DOOR_STD", "Standard Door", "Standard interior door", "pcs", "1.0", "200-800", "Wood", "800x2000", "Interior"),
)


def _set_unit(el: CostElement, value: str) -> None:
    el.qu = value
    el.proc_unit = value


def _set_id(el: CostElement, value: str) -> None:
    if value:
        el.id2 = value


# lower-cased header -> setter
_COLUMNS: Dict[str, Callable[[CostElement, str], None]] = {
    "id": _set_id,
    "name": lambda el, v: setattr(el, "name", v),
    "type": lambda el, v: setattr(el, "type", v),
    "text": lambda el, v: setattr(el, "text", v),
    "longtext": lambda el, v: setattr(el, "long_text", v),
    "qty": lambda el, v: setattr(el, "qty", to_decimal(v)),
    "unit": _set_unit,
    "unitprice": lambda el, v: setattr(el, "up", to_decimal(v)),
    "bimkey": lambda el, v: setattr(el, "bim_key", v),
    "description": lambda el, v: setattr(el, "description", v),
    "label": lambda el, v: setattr(el, "label", v),
    "notes": lambda el, v: setattr(el, "note", v),
    "ifctype": lambda el, v: setattr(el, "ifc_type", v),
    "material": lambda el, v: setattr(el, "material", v),
    "dimension": lambda el, v: setattr(el, "dimension", v),
    "segmenttype": lambda el, v: setattr(el, "segment_type", v),
    "color": lambda el, v: setattr(el, "color", v),
}


def _write_csv(path: Union[str, Path], headers: Sequence[str], rows: Sequence[Sequence[str]]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(headers)
        writer.writerows(rows)
    log.info("Template written: %s", p)
    return p


def create_data_entry_template(path: Union[str, Path]) -> Path:
    return _write_csv(path, DATA_ENTRY_HEADERS, [DATA_ENTRY_SAMPLE])


def create_ifc_mapping_template(path: Union[str, Path]) -> Path:
    return _write_csv(path, IFC_MAPPING_HEADERS, IFC_MAPPING_SAMPLES)


def row_to_element(row: Dict[str, str]) -> CostElement:
    el = CostElement()
    for header, value in row.items():
        setter = _COLUMNS.get(str(header or "").strip().lower())
        if setter is None:
            continue
        setter(el, (value or "").strip())
    el.recalculate_sum()
    return el


def convert_template(path: Union[str, Path]) -> List[CostElement]:
    """Filled data-entry sheet -> new elements (ids are left to the caller)."""
    p = Path(path)
    with open(p, "r", encoding="utf-8-sig", newline="") as fh:
        rows = [r for r in csv.DictReader(fh) if any((v or "").strip() for v in r.values() if isinstance(v, str))]
    elements = [row_to_element(r) for r in rows]
    log.info("Converted %d template row(s) from %s", len(elements), p)
    return elements
