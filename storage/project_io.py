# -*- coding: utf-8 -*-
"""Session (.novaava) file I/O.

A session keeps everything the interchange format cannot: every catalog
assignment, the AdditionalData bag, the properties source tag and the
path of the document it came from.

Layout:
    <NovaAvaProject version="1" saved="...">
      <SourceFile>...</SourceFile>
      <Elements>
        <Element>
          <Id>..</Id> <QtyResult>..</QtyResult> ...   (one tag per registry field)
          <PropertiesSource>blob|mirrors</PropertiesSource>
          <CatalogAssignments><CatalogAssignment>...</CatalogAssignment></CatalogAssignments>
          <AdditionalData><Entry key=".." origin="header|calculation|properties">..</Entry></AdditionalData>
        </Element>
      </Elements>
    </NovaAvaProject>

Errors are wrapped in ProjectFileError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from lxml import etree

from core import fields
from core.errors import FieldCoercionFailure, ProjectFileError
from core.keys import ProjectTags as T
from core.models.cost_element import CatalogAssignment, CostElement, DataOrigin, PropertiesSource
from domain.parse import format_datetime
from storage.project_paths import write_atomic
from storage.xml_importer import make_parser

log = logging.getLogger(__name__)

_ORIGINS = frozenset(o.value for o in DataOrigin)

_ASSIGNMENT_TAGS = (
    ("CatalogName", "catalog_name"),
    ("CatalogType", "catalog_type"),
    ("Name", "name"),
    ("Number", "number"),
    ("Reference", "reference"),
)


@dataclass
class ProjectData:
    elements: List[CostElement] = field(default_factory=list)
    source_file: str = ""
    saved: str = ""
    version: str = T.VERSION


def _persisted_fields() -> List[fields.FieldSpec]:
    return [spec for spec in fields.FIELD_REGISTRY.values() if spec.editable]


def _to_text(spec: fields.FieldSpec, value: Any) -> str:
    if spec.kind == fields.DECIMAL:
        return f"{Decimal(value):f}"
    if spec.kind == fields.BOOL:
        return "true" if value else "false"
    if spec.kind == fields.DATETIME:
        return "" if value is None else format_datetime(value)
    return "" if value is None else str(value)


def _element_node(parent, el: CostElement) -> None:
    node = etree.SubElement(parent, T.ELEMENT)
    for spec in _persisted_fields():
        etree.SubElement(node, spec.grid_name).text = _to_text(spec, spec.getter(el))
    etree.SubElement(node, T.PROPERTIES_SOURCE).text = el.properties_source.value

    assigns = etree.SubElement(node, T.CATALOG_ASSIGNMENTS)
    for a in el.catalog_assignments:
        a_node = etree.SubElement(assigns, T.CATALOG_ASSIGNMENT)
        for tag, attr in _ASSIGNMENT_TAGS:
            etree.SubElement(a_node, tag).text = getattr(a, attr)

    extra = etree.SubElement(node, T.ADDITIONAL_DATA)
    for key, value in el.additional_data.items():
        entry = etree.SubElement(extra, T.ENTRY, key=str(key))
        origin = el.additional_origin.get(key)
        if origin is not None:
            entry.set("origin", origin.value)
        entry.text = "" if value is None else str(value)


def to_bytes(elements: Iterable[CostElement], source_file: str = "", *, saved: Optional[datetime] = None) -> bytes:
    saved = saved or datetime.now().replace(microsecond=0)
    root = etree.Element(T.ROOT, version=T.VERSION, saved=format_datetime(saved))
    etree.SubElement(root, T.SOURCE_FILE).text = str(source_file or "")
    container = etree.SubElement(root, T.ELEMENTS)
    for el in elements:
        _element_node(container, el)
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def save_project(elements: Iterable[CostElement], file_path: Union[str, Path], source_file: str = "") -> Path:
    if not str(file_path or "").strip():
        raise ProjectFileError("Session file not defined. Choose a folder and a name first.")
    elements = list(elements)
    try:
        data = to_bytes(elements, source_file)
        target = write_atomic(file_path, data)
    except (OSError, ValueError) as e:
        raise ProjectFileError(f"Error saving session '{file_path}': {e}") from e
    log.info("Saved session %s (%d element(s), %d bytes)", target, len(elements), len(data))
    return target


def _read_element(node) -> CostElement:
    el = CostElement()
    values = {child.tag: (child.text or "") for child in node if isinstance(child.tag, str)}
    for spec in _persisted_fields():
        if spec.grid_name not in values:
            continue
        try:
            value = spec.coerce(values[spec.grid_name])
        except FieldCoercionFailure as e:
            log.warning("Session field %s ignored: %s", spec.grid_name, e)
            continue
        # raw assignment: the stored blob and mirrors are restored as saved
        setattr(el, spec.name, value)

    source = values.get(T.PROPERTIES_SOURCE, "").strip().lower()
    el.properties_source = PropertiesSource(source) if source in {s.value for s in PropertiesSource} else PropertiesSource.BLOB

    assigns = node.find(T.CATALOG_ASSIGNMENTS)
    if assigns is not None:
        for a_node in assigns.findall(T.CATALOG_ASSIGNMENT):
            a = CatalogAssignment()
            for tag, attr in _ASSIGNMENT_TAGS:
                setattr(a, attr, (a_node.findtext(tag) or "").strip())
            el.catalog_assignments.append(a)

    extra = node.find(T.ADDITIONAL_DATA)
    if extra is not None:
        for entry in extra.findall(T.ENTRY):
            key = entry.get("key")
            if not key:
                continue
            el.additional_data[key] = entry.text or ""
            origin = entry.get("origin", "")
            if origin in _ORIGINS:
                el.additional_origin[key] = DataOrigin(origin)
    return el


def from_bytes(data: bytes, source: str = "<memory>") -> ProjectData:
    try:
        root = etree.fromstring(data, make_parser())
    except etree.XMLSyntaxError as e:
        raise ProjectFileError(f"Error loading session '{source}': {e}") from e
    if root.tag != T.ROOT:
        raise ProjectFileError(f"'{source}' is not a session file (root <{root.tag}>)")

    project = ProjectData(
        source_file=(root.findtext(T.SOURCE_FILE) or "").strip(),
        saved=root.get("saved", ""),
        version=root.get("version", T.VERSION),
    )
    container = root.find(T.ELEMENTS)
    if container is not None:
        project.elements = [_read_element(n) for n in container.findall(T.ELEMENT)]
    return project


def load_project(file_path: Union[str, Path]) -> ProjectData:
    p = Path(file_path)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise ProjectFileError(f"Error loading session '{p}': {e}") from e
    project = from_bytes(data, str(p))
    log.info("Loaded session %s (%d element(s))", p, len(project.elements))
    return project
