# -*- coding: utf-8 -*-
"""AVA interchange XML -> flat CostElement list.

Fan-out: every `cecalculation` becomes one CostElement carrying a copy of
its `costelement` header. Only a document that is not XML at all is fatal
(StructuralParseError); everything else defaults silently or is reported
as a warning on the ImportResult.

Parsing is hardened: no entity expansion, no network access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from lxml import etree

from core import fields
from core.errors import FieldCoercionFailure, StructuralParseError
from core.keys import (
    CALCULATION_FIELDS,
    HEADER_FIELDS,
    OPTIONAL_CALCULATION_FIELDS,
    OPTIONAL_HEADER_FIELDS,
    AvaTags,
)
from core.models.cost_element import CatalogAssignment, CostElement, DataOrigin
from core.validators.schema_diff import OriginalSchema, capture_schema
from domain.parse import to_bool, to_datetime, to_decimal, to_int
from infra.perf import span

log = logging.getLogger(__name__)

_CONVERTERS: Dict[str, Callable[[str], object]] = {
    "str": lambda s: s,
    "decimal": to_decimal,
    "int": to_int,
    "bool": to_bool,
    "datetime": to_datetime,
}

# Derived on the model; present on the wire but never read back.
_IGNORED_CALC_TAGS = frozenset({"up_result"})

_HEADER_MAP: Dict[str, Tuple[str, str]] = {tag: (attr, kind) for tag, attr, kind in HEADER_FIELDS + OPTIONAL_HEADER_FIELDS}
_CALC_MAP: Dict[str, Tuple[str, str]] = {tag: (attr, kind) for tag, attr, kind in CALCULATION_FIELDS + OPTIONAL_CALCULATION_FIELDS}

_STRUCTURE_TAGS = frozenset({AvaTags.CATALOG_ASSIGNS, AvaTags.CALCULATIONS})


@dataclass
class ImportResult:
    elements: List[CostElement] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    schema: OriginalSchema = field(default_factory=OriginalSchema)
    source_path: str = ""
    cost_element_count: int = 0

    @property
    def calculation_count(self) -> int:
        return len(self.elements)


def make_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        remove_comments=True,
        remove_pis=True,
        strip_cdata=True,
    )


def _local(node) -> str:
    return etree.QName(node).localname.lower()


def _children(node):
    # lxml yields comments/PIs with a non-str tag
    return [c for c in node if isinstance(c.tag, str)]


def _text(node) -> str:
    return (node.text or "").strip()


def _assign(el: CostElement, attr: str, kind: str, raw: str) -> None:
    spec = fields.FIELD_REGISTRY.get(attr)
    if spec is not None and spec.optional:
        try:
            setattr(el, attr, spec.coerce(raw))
        except FieldCoercionFailure:
            log.debug("Unreadable %s %r left unset", attr, raw)
            setattr(el, attr, None)
        return
    setattr(el, attr, _CONVERTERS[kind](raw))


def _count_ids(csv_text: str) -> int:
    return len([p for p in (csv_text or "").split(",") if p.strip()])


def _parse_catalog_assigns(node) -> List[CatalogAssignment]:
    out: List[CatalogAssignment] = []
    for a in _children(node):
        if _local(a) != AvaTags.CATALOG_ASSIGN:
            continue
        values = {_local(c): _text(c) for c in _children(a)}
        out.append(CatalogAssignment(
            catalog_name=values.get(AvaTags.CATALOG_NAME, ""),
            catalog_type=values.get(AvaTags.CATALOG_TYPE, ""),
            name=values.get(AvaTags.CATALOG_ITEM_NAME, ""),
            number=values.get(AvaTags.CATALOG_NUMBER, ""),
            reference=values.get(AvaTags.CATALOG_REFERENCE, ""),
        ))
    return out


def _parse_header(node) -> Tuple[CostElement, list]:
    """Header template plus the raw calculation nodes."""
    header = CostElement()
    header.id = (node.get("id") or "").strip()
    calculations: list = []
    properties = ""

    for child in _children(node):
        tag = _local(child)
        if tag == AvaTags.CATALOG_ASSIGNS:
            header.catalog_assignments.extend(_parse_catalog_assigns(child))
        elif tag == AvaTags.CALCULATIONS:
            calculations.extend(c for c in _children(child) if _local(c) == AvaTags.CALCULATION)
        elif tag == "properties":
            properties = _text(child)
        elif tag in _HEADER_MAP:
            attr, kind = _HEADER_MAP[tag]
            _assign(header, attr, kind, _text(child))
        else:
            header.set_extra(tag, _text(child), DataOrigin.HEADER)

    header.children_count = _count_ids(header.children)
    header.openings_count = _count_ids(header.openings)
    header.sync_catalog_fields()
    if properties:
        header.apply_properties(properties)
    return header, calculations


def _parse_calculation(header: CostElement, node) -> CostElement:
    el = header.clone()
    for child in _children(node):
        tag = _local(child)
        if tag in _IGNORED_CALC_TAGS:
            continue
        mapped = _CALC_MAP.get(tag)
        if mapped is None:
            el.set_extra(tag, _text(child), DataOrigin.CALCULATION)
            continue
        attr, kind = mapped
        raw = _text(child)
        _assign(el, attr, kind, raw)
        if tag == "id":
            el.calculation_id = to_int(raw)
    return el


def parse_tree(root, source_path: str = "") -> ImportResult:
    result = ImportResult(source_path=source_path)
    if _local(root) != AvaTags.ROOT:
        result.warnings.append(f"Unexpected root element <{_local(root)}>; expected <{AvaTags.ROOT}>")

    for ce in root.iter():
        if not isinstance(ce.tag, str) or _local(ce) != AvaTags.ELEMENT:
            continue
        result.cost_element_count += 1
        header, calculations = _parse_header(ce)
        if not header.id:
            result.warnings.append(f"costelement #{result.cost_element_count} has no id")
        if not calculations:
            result.elements.append(header)
            continue
        for calc in calculations:
            result.elements.append(_parse_calculation(header, calc))

    if not result.cost_element_count:
        result.warnings.append("No costelement nodes found")

    result.schema = capture_schema(result.elements, source_path)
    return result


def parse_bytes(data: bytes, source_path: str = "<memory>") -> ImportResult:
    try:
        root = etree.fromstring(data, make_parser())
    except etree.XMLSyntaxError as e:
        raise StructuralParseError(source_path, e) from e
    return parse_tree(root, source_path)


def import_document(path: Union[str, Path]) -> ImportResult:
    """Read and fan out one interchange document."""
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise StructuralParseError(str(p), e) from e

    with span(f"import[{p.name}]"):
        result = parse_bytes(data, str(p))

    log.info(
        "Imported %s: %d cost element(s), %d calculation(s), %d warning(s)",
        p, result.cost_element_count, result.calculation_count, len(result.warnings),
    )
    for w in result.warnings:
        log.warning("Import %s: %s", p.name, w)
    return result
