# -*- coding: utf-8 -*-
from __future__ import annotations

import csv
from decimal import Decimal

from storage import csv_templates


def _read(path):
    with open(path, "r", encoding="utf-8", newline="") as fh:
        return list(csv.reader(fh))


def test_data_entry_template_has_headers_and_sample(tmp_path) -> None:
    path = csv_templates.create_data_entry_template(tmp_path / "templates" / "entry.csv")
    rows = _read(path)
    assert rows[0] == list(csv_templates.DATA_ENTRY_HEADERS)
    assert rows[1] == list(csv_templates.DATA_ENTRY_SAMPLE)


def test_ifc_mapping_template(tmp_path) -> None:
    rows = _read(csv_templates.create_ifc_mapping_template(tmp_path / "ifc.csv"))
    assert rows[0] == list(csv_templates.IFC_MAPPING_HEADERS)
    assert len(rows) == 1 + len(csv_templates.IFC_MAPPING_SAMPLES)
    assert rows[1][0] == "IFCPIPESEGMENT"


def test_convert_filled_template(tmp_path) -> None:
    path = csv_templates.create_data_entry_template(tmp_path / "entry.csv")
    elements = csv_templates.convert_template(path)
    assert len(elements) == 1

    el = elements[0]
    assert el.id2 == "CAST_Pipe_DIN10216-2_DN125"
    assert el.id == ""
    assert el.qu == el.proc_unit == "m"
    assert el.up == Decimal("0.11")
    assert el.qty == Decimal("37.09")
    assert el.sum == Decimal("37.09") * Decimal("0.11")
    assert el.note == "Sample pipe element"
    assert el.ifc_type == "IFCPIPESEGMENT"


def test_convert_ignores_unknown_columns_and_blank_rows(tmp_path) -> None:
    path = tmp_path / "custom.csv"
    path.write_text("\ufeffName,Qty,UnitPrice,Whatever\nA,2,3,zzz\n,,,\n", encoding="utf-8")
    elements = csv_templates.convert_template(path)
    assert len(elements) == 1
    assert elements[0].name == "A"
    assert elements[0].sum == Decimal("6")
    assert elements[0].id2 == ""
