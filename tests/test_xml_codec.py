# -*- coding: utf-8 -*-
"""Interchange XML: fan-out import, fan-in export, GAEB export."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from lxml import etree

from conftest import GUID_A, SAMPLE_PROPERTIES
from core.errors import ExportError, StructuralParseError
from core.keys import GaebTags
from core.models.cost_element import CostElement
from storage import xml_exporter, xml_importer
from storage.xml_exporter import ExportMode


TWO_CALCS = b"""<?xml version="1.0" encoding="UTF-8"?>
<cefexport version="2">
  <costelements>
    <costelement id="7">
      <type>Valve</type>
      <name>Gate</name>
      <legacy_flag>yes</legacy_flag>
      <cecalculations>
        <cecalculation>
          <id>101</id><parent>0</parent><order>1</order><ident>G-1</ident>
          <text>Root</text><qty>1</qty><qty_result>1</qty_result><up>5</up><sum>5</sum>
        </cecalculation>
        <cecalculation>
          <id>102</id><parent>101</parent><order>2</order><ident>G-2</ident>
          <text>Child</text><qty>2</qty><qty_result>2</qty_result><up>3</up><sum>6</sum>
          <custom_calc>abc</custom_calc>
        </cecalculation>
      </cecalculations>
    </costelement>
  </costelements>
</cefexport>
"""


def _make(**kw) -> CostElement:
    base = dict(id="1", id2="C-1", name="Name", text="Text", ident=GUID_A)
    base.update(kw)
    return CostElement(**base)


def test_import_sample_document(sample_xml_path) -> None:
    result = xml_importer.import_document(sample_xml_path)
    assert result.warnings == []
    assert result.cost_element_count == 1
    assert result.calculation_count == 1

    el = result.elements[0]
    assert el.id == "1"
    assert el.ident == GUID_A
    assert el.id2 == "P-001"
    assert el.text == "Pipe DN125"
    assert el.qty_result == Decimal("10")
    assert el.up == Decimal("2.5")
    assert el.created == datetime(2024, 1, 2, 3, 4, 5)

    # properties decoded into the mirrors
    assert el.properties == SAMPLE_PROPERTIES
    assert el.spec_name == "Pipe"
    assert el.spec_size == "DN125"

    # assignment[0] denormalized
    assert el.catalog_type == "Valves"
    assert el.catalog_number == "V100"
    assert el.catalog_item_name == "Gate valve"
    assert len(el.catalog_assignments) == 1

    assert result.schema
    assert result.schema.source_path == str(sample_xml_path)


def test_two_calculation_group_fans_out() -> None:
    result = xml_importer.parse_bytes(TWO_CALCS)
    assert len(result.elements) == 2
    first, second = result.elements

    assert first.id == second.id == "7"
    assert first.name == second.name == "Gate"
    assert first.is_parent_node is True
    assert second.is_parent_node is False
    assert (first.tree_level, second.tree_level) == (0, 1)
    assert second.parent_calc_id == 101
    assert second.calculation_id == 102

    # calculations do not share state
    assert first.catalog_assignments is not second.catalog_assignments
    assert first.additional_data is not second.additional_data


def test_unknown_nodes_land_in_additional_data() -> None:
    first, second = xml_importer.parse_bytes(TWO_CALCS).elements
    assert first.additional_data == {"legacy_flag": "yes"}
    assert second.additional_data == {"legacy_flag": "yes", "custom_calc": "abc"}


def test_unknown_nodes_are_written_back_where_they_were_read() -> None:
    elements = xml_importer.parse_bytes(TWO_CALCS).elements
    data = xml_exporter.render(elements)

    ce = etree.fromstring(data).find("costelements/costelement")
    assert ce.findtext("legacy_flag") == "yes"
    root_calc, child_calc = ce.findall("cecalculations/cecalculation")
    assert root_calc.find("custom_calc") is None
    assert root_calc.find("legacy_flag") is None
    assert child_calc.findtext("custom_calc") == "abc"

    again = xml_importer.parse_bytes(data).elements
    assert again[0].additional_data == {"legacy_flag": "yes"}
    assert again[1].additional_data == {"legacy_flag": "yes", "custom_calc": "abc"}


def test_properties_keys_are_not_written_as_nodes() -> None:
    el = _make(properties='a:1:{s:5:"Color";s:3:"red";}')
    el.apply_properties(el.properties)
    assert el.additional_data == {"Color": "red"}

    ce = etree.fromstring(xml_exporter.render([el])).find(".//costelement")
    assert ce.find("Color") is None


def test_created3_is_only_exported_when_the_document_had_it(sample_xml_path) -> None:
    el = xml_importer.import_document(sample_xml_path).elements[0]
    assert el.created3 is None
    ce = etree.fromstring(xml_exporter.render([el])).find(".//costelement")
    assert ce.findtext("created") == "2024-01-02T03:04:05"
    assert ce.find("created3") is None

    doc = sample_xml_path.read_bytes().replace(
        b"<created>2024-01-02T03:04:05</created>",
        b"<created>2024-01-02T03:04:05</created><created3>2024-01-02T03:04:05</created3>",
    )
    el = xml_importer.parse_bytes(doc).elements[0]
    assert el.created3 == datetime(2024, 1, 2, 3, 4, 5)
    ce = etree.fromstring(xml_exporter.render([el])).find(".//costelement")
    assert ce.findtext("created3") == "2024-01-02T03:04:05"


def test_import_numbers_accept_comma_and_default_to_zero() -> None:
    doc = b"""<cefexport><costelements><costelement id="1"><cecalculations><cecalculation>
      <qty>abc</qty><qty_result>1.5</qty_result><up>2,5</up><sum></sum>
    </cecalculation></cecalculations></costelement></costelements></cefexport>"""
    el = xml_importer.parse_bytes(doc).elements[0]
    assert el.up == Decimal("2.5")
    assert el.qty_result == Decimal("1.5")
    assert el.qty == Decimal(0)
    assert el.sum == Decimal(0)


def test_not_xml_raises_structural_parse_error(tmp_path) -> None:
    p = tmp_path / "broken.xml"
    p.write_text("<cefexport><costelements>", encoding="utf-8")
    with pytest.raises(StructuralParseError) as exc:
        xml_importer.import_document(p)
    assert str(p) in str(exc.value)


def test_missing_file_raises_structural_parse_error(tmp_path) -> None:
    with pytest.raises(StructuralParseError):
        xml_importer.import_document(tmp_path / "missing.xml")


def test_recoverable_problems_are_warnings() -> None:
    result = xml_importer.parse_bytes(b"<other><costelement><name>x</name></costelement></other>")
    assert len(result.elements) == 1
    assert any("Unexpected root" in w for w in result.warnings)
    assert any("has no id" in w for w in result.warnings)

    empty = xml_importer.parse_bytes(b"<cefexport/>")
    assert empty.elements == []
    assert "No costelement nodes found" in empty.warnings


def test_import_does_not_expand_entities() -> None:
    doc = b"""<?xml version="1.0"?>
<!DOCTYPE cefexport [<!ENTITY boom "EXPANDED">]>
<cefexport><costelements><costelement id="1"><name>&boom;</name></costelement></costelements></cefexport>
"""
    el = xml_importer.parse_bytes(doc).elements[0]
    assert "EXPANDED" not in el.name


def test_roundtrip_preserves_core_values(sample_xml_path) -> None:
    first = xml_importer.import_document(sample_xml_path)
    data = xml_exporter.render(first.elements, ExportMode.AVA)
    second = xml_importer.parse_bytes(data)

    assert len(second.elements) == len(first.elements) == 1
    a, b = first.elements[0], second.elements[0]
    assert b.id == a.id
    assert b.text == a.text
    assert b.qty_result == a.qty_result
    assert b.up == a.up
    assert b.properties == a.properties
    assert b.catalog_number == a.catalog_number


def test_export_groups_by_id_and_orders_calculations() -> None:
    root = _make(id="5", order=1, text="root")
    child_b = _make(id="5", order=3, parent_calc_id=1, text="third")
    child_a = _make(id="5", order=2, parent_calc_id=1, text="second")
    other = _make(id="6", text="other")

    tree = etree.fromstring(xml_exporter.render([child_b, other, root, child_a]))
    ces = tree.findall("costelements/costelement")
    assert [ce.get("id") for ce in ces] == ["5", "6"]
    texts = [c.findtext("text") for c in ces[0].findall("cecalculations/cecalculation")]
    assert texts == ["root", "second", "third"]


def test_export_number_formats_and_cdata() -> None:
    el = _make(qty=Decimal("12.5"), up=Decimal("2"), vat=Decimal("19"), sum=Decimal("25"), long_text="Long & text")
    data = xml_exporter.render([el])
    assert b"<![CDATA[Text]]>" in data
    assert b"<![CDATA[Long & text]]>" in data

    calc = etree.fromstring(data).find("costelements/costelement/cecalculations/cecalculation")
    assert calc.findtext("qty") == "12.5"
    assert calc.findtext("up") == "2.000"
    assert calc.findtext("vat") == "19.00"
    assert calc.findtext("sum") == "25.000"
    assert calc.findtext("marked") == "0"


def test_vob_formula_exports_quantity_token() -> None:
    el = _make(vob="L*B", qty=Decimal("3"))
    calc = etree.fromstring(xml_exporter.render([el])).find(".//cecalculation")
    assert calc.findtext("qty") == "DXQuantity"


def test_optional_header_nodes_only_when_set() -> None:
    bare = _make()
    plain = etree.fromstring(xml_exporter.render([bare])).find(".//costelement")
    assert plain.find("ifc_type") is None
    assert plain.find("created3") is None
    assert plain.find("cecatalogassigns") is None

    el = _make(ifc_type="IFCPIPESEGMENT", catalog_number="V1", catalog_type="Valves")
    el.created3 = datetime(2020, 1, 1)
    ce = etree.fromstring(xml_exporter.render([el])).find(".//costelement")
    assert ce.findtext("ifc_type") == "IFCPIPESEGMENT"
    assert ce.findtext("created3") == "2020-01-01T00:00:00"
    assert ce.findtext("cecatalogassigns/cecatalogassign/number") == "V1"


def test_gaeb_export_is_flat() -> None:
    els = [
        _make(id="1", qty=Decimal("2"), up=Decimal("3"), sum=Decimal("6"), qu="m", properties="a:0:{}"),
        _make(id="1", qty=Decimal("1"), up=Decimal("1"), sum=Decimal("1"), parent_calc_id=9),
    ]
    tree = xml_exporter.build_gaeb_tree(els, now=datetime(2024, 3, 4, 5, 6, 7))
    root = tree.getroot()
    ns = {"g": GaebTags.NAMESPACE}

    assert root.get("version") == "3.2"
    assert root.findtext("g:GAEBInfo/g:Date", namespaces=ns) == "2024-03-04"
    items = root.findall("g:Award/g:BoQ/g:Item", namespaces=ns)
    assert len(items) == 2
    assert items[0].get("RNoPart") == "1"
    assert items[0].findtext("g:Qty", namespaces=ns) == "2.000"
    assert items[0].findtext("g:Total", namespaces=ns) == "6.000"
    assert items[0].findtext("g:Unit", namespaces=ns) == "m"
    assert items[0].findtext("g:Properties", namespaces=ns) == "a:0:{}"
    assert items[1].find("g:Properties", namespaces=ns) is None


def test_export_document_writes_file(tmp_path) -> None:
    target = tmp_path / "out" / "doc.xml"
    written = xml_exporter.export_document([_make()], target, "ava")
    assert written == target
    assert etree.parse(str(target)).getroot().tag == "cefexport"
    # no temp files left behind
    assert [p.name for p in target.parent.iterdir()] == ["doc.xml"]


def test_export_rejects_control_characters(tmp_path) -> None:
    with pytest.raises(ExportError):
        xml_exporter.export_document([_make(note="bad\x01char")], tmp_path / "x.xml")
