# -*- coding: utf-8 -*-
"""Flat CostElement list -> interchange XML.

Two grammars:
- ExportMode.AVA:  grouped `cefexport/costelements/costelement/cecalculations`
- ExportMode.GAEB: flat `GAEB/Award/BoQ/Item`, one item per element

Writes are atomic (temp file + replace); I/O failures raise ExportError.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from lxml import etree

from core.errors import ExportError
from core.keys import (
    CALCULATION_FIELDS,
    CDATA_TAGS,
    HEADER_FIELDS,
    OPTIONAL_CALCULATION_FIELDS,
    OPTIONAL_HEADER_FIELDS,
    PERCENT_TAGS,
    AvaTags,
    GaebTags,
)
from core.models.cost_element import CostElement, DataOrigin
from domain.parse import format_datetime, format_fixed, format_plain
from domain.wbs import group_calculations
from infra.perf import span
from storage.project_paths import write_atomic

log = logging.getLogger(__name__)


class ExportMode(str, Enum):
    AVA = "ava"
    GAEB = "gaeb"


def format_number(tag: str, value) -> str:
    return format_fixed(value, 2 if tag in PERCENT_TAGS else 3)


def _format(tag: str, kind: str, value) -> str:
    if kind == "decimal":
        return format_number(tag, value)
    if kind == "int":
        return str(int(value or 0))
    if kind == "bool":
        return "1" if value else "0"
    if kind == "datetime":
        return format_datetime(value)
    return "" if value is None else str(value)


def _sub(parent, tag: str, text: str):
    node = etree.SubElement(parent, tag)
    if text:
        node.text = etree.CDATA(text) if tag in CDATA_TAGS else text
    return node


def _qty_text(el: CostElement) -> str:
    if (el.vob or "").strip():
        return AvaTags.VOB_QTY_TOKEN
    return format_plain(el.qty)


def _write_header(ce, header: CostElement) -> None:
    for tag, attr, kind in HEADER_FIELDS:
        _sub(ce, tag, _format(tag, kind, getattr(header, attr)))
    for tag, attr, kind in OPTIONAL_HEADER_FIELDS:
        value = getattr(header, attr)
        if kind == "datetime":
            if value is not None:
                _sub(ce, tag, format_datetime(value))
            continue
        if str(value or "").strip():
            _sub(ce, tag, _format(tag, kind, value))
    _write_extras(ce, header, DataOrigin.HEADER)


def _write_extras(parent, el: CostElement, origin: DataOrigin) -> None:
    """Unknown nodes kept by the importer go back where they were read."""
    for key in el.extra_keys(origin):
        try:
            _sub(parent, key, el.additional_data[key])
        except ValueError:
            log.warning("Skipped additional data %r on %s: not an XML name", key, el.display_id())


def _write_catalog(ce, header: CostElement) -> None:
    # Only assignment[0] survives export; the others live in the session file.
    # Open question: whether the target system accepts several cecatalogassign.
    values = (
        (AvaTags.CATALOG_NAME, header.catalog_name),
        (AvaTags.CATALOG_TYPE, header.catalog_type),
        (AvaTags.CATALOG_ITEM_NAME, header.catalog_item_name),
        (AvaTags.CATALOG_NUMBER, header.catalog_number),
        (AvaTags.CATALOG_REFERENCE, header.catalog_reference),
    )
    if not any(v for _t, v in values):
        return
    assign = etree.SubElement(etree.SubElement(ce, AvaTags.CATALOG_ASSIGNS), AvaTags.CATALOG_ASSIGN)
    for tag, value in values:
        _sub(assign, tag, value or "")


def _write_calculation(parent, el: CostElement) -> None:
    calc = etree.SubElement(parent, AvaTags.CALCULATION)
    for tag, attr, kind in CALCULATION_FIELDS:
        if tag == AvaTags.QTY:
            _sub(calc, tag, _qty_text(el))
            continue
        _sub(calc, tag, _format(tag, kind, getattr(el, attr)))
    for tag, attr, kind in OPTIONAL_CALCULATION_FIELDS:
        value = getattr(el, attr)
        if str(value or "").strip():
            _sub(calc, tag, _format(tag, kind, value))
    _write_extras(calc, el, DataOrigin.CALCULATION)


def build_ava_tree(elements: Iterable[CostElement]):
    """Fan-in by Id (first-appearance order); calculations ordered by `order`."""
    elements = list(elements)
    position = {id(el): i for i, el in enumerate(elements)}

    root = etree.Element(AvaTags.ROOT, version=AvaTags.ROOT_VERSION)
    container = etree.SubElement(root, AvaTags.ELEMENTS)
    for group in group_calculations(elements):
        header = group.root
        ce = etree.SubElement(container, AvaTags.ELEMENT, id=group.id or "")
        _write_header(ce, header)
        _write_catalog(ce, header)
        calcs = etree.SubElement(ce, AvaTags.CALCULATIONS)
        for el in sorted(group.members(), key=lambda m: (m.order, position[id(m)])):
            _write_calculation(calcs, el)
    return etree.ElementTree(root)


def build_gaeb_tree(elements: Iterable[CostElement], *, now: Optional[datetime] = None):
    now = now or datetime.now()
    ns = GaebTags.NAMESPACE

    def q(tag: str) -> str:
        return f"{{{ns}}}{tag}"

    root = etree.Element(q(GaebTags.ROOT), nsmap={None: ns}, version=GaebTags.VERSION)
    info = etree.SubElement(root, q(GaebTags.INFO))
    etree.SubElement(info, q("Version")).text = GaebTags.VERSION
    etree.SubElement(info, q("Date")).text = now.strftime("%Y-%m-%d")
    etree.SubElement(info, q("Time")).text = now.strftime("%H:%M:%S")

    boq = etree.SubElement(etree.SubElement(root, q(GaebTags.AWARD)), q(GaebTags.BOQ))
    for el in elements:
        item = etree.SubElement(boq, q(GaebTags.ITEM), {GaebTags.ITEM_NUMBER_ATTR: el.id or ""})
        etree.SubElement(item, q("Description")).text = el.text or ""
        etree.SubElement(item, q("LongText")).text = el.long_text or ""
        etree.SubElement(item, q("Unit")).text = el.qu or ""
        etree.SubElement(item, q("Qty")).text = format_fixed(el.qty)
        etree.SubElement(item, q("UP")).text = format_fixed(el.up)
        etree.SubElement(item, q("Total")).text = format_fixed(el.sum)
        if el.properties:
            etree.SubElement(item, q("Properties")).text = el.properties
    return etree.ElementTree(root)


def to_bytes(tree) -> bytes:
    return etree.tostring(tree, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def render(elements: Sequence[CostElement], mode: Union[ExportMode, str] = ExportMode.AVA) -> bytes:
    mode = ExportMode(mode)
    tree = build_gaeb_tree(elements) if mode == ExportMode.GAEB else build_ava_tree(elements)
    return to_bytes(tree)


def export_document(elements: Sequence[CostElement], path: Union[str, Path], mode: Union[ExportMode, str] = ExportMode.AVA) -> Path:
    """Serialize and write atomically. Raises ExportError on any write failure."""
    mode = ExportMode(mode)
    target = Path(path)
    elements = list(elements)
    with span(f"export[{mode.value}:{target.name}]", items=len(elements)):
        try:
            data = render(elements, mode)
        except ValueError as e:
            # lxml rejects control characters that XML 1.0 cannot carry
            raise ExportError(f"Cannot serialize document: {e}") from e
        try:
            write_atomic(target, data)
        except OSError as e:
            raise ExportError(f"Cannot write '{target}': {e}") from e
    log.info("Exported %d element(s) to %s (%s, %d bytes)", len(elements), target, mode.value, len(data))
    return target


