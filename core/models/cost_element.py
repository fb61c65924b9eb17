# -*- coding: utf-8 -*-
"""Cost element: one calculation line merged with its cost-element header.

Rule: this module does NOT depend on storage, services or any UI toolkit.
Values are plain Python types (str, int, bool, Decimal, datetime); the
field registry (core.fields) is the only place that converts text to them.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field, fields as dc_fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from core.serializers.properties import (
    SPEC_KEYS,
    decode_properties,
    encode_mirrors,
    split_decoded,
)


SPEC_MIRRORS = tuple(attr for _key, attr in SPEC_KEYS)

ZERO = Decimal(0)


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


class PropertiesSource(str, Enum):
    """Which side of the properties/mirror pair currently holds the truth."""

    BLOB = "blob"        # `properties` decoded into the mirrors (import, blob edit)
    MIRRORS = "mirrors"  # mirrors edited; `properties` only rewritten on regeneration


class DataOrigin(str, Enum):
    """Where an `additional_data` entry was read from."""

    HEADER = "header"            # unknown child of <costelement>
    CALCULATION = "calculation"  # unknown child of <cecalculation>
    PROPERTIES = "properties"    # unrecognized key of the properties blob


@dataclass
class CatalogAssignment:
    catalog_name: str = ""
    catalog_type: str = ""
    name: str = ""
    number: str = ""
    reference: str = ""


@dataclass(eq=False)
class CostElement:
    # Display only (flat list numbering), never exported.
    display_number: str = ""

    # Identity. Taken from the document, never auto-generated on import.
    version: str = ""
    id: str = ""
    calculation_id: int = 0
    id2: str = ""
    ident: str = ""
    id5: str = ""
    id6: str = ""

    # Hierarchy
    parent_calc_id: int = 0  # 0 = root calculation of its group
    order: int = 0
    element_id: int = 0
    element_type: int = 1

    # Basic info
    title: str = ""
    label: str = ""
    type: str = ""
    name: str = ""
    description: str = ""
    bim_key: str = ""

    # Texts
    text: str = ""
    long_text: str = ""
    text_sys: str = ""
    text_key: str = ""
    stl_no: str = ""
    outline_text_free: str = ""

    # Quantities and pricing
    qty: Decimal = ZERO
    qty_result: Decimal = ZERO
    qu: str = ""
    up: Decimal = ZERO
    up_bkdn: Decimal = ZERO
    up_comp1: Decimal = ZERO
    up_comp2: Decimal = ZERO
    up_comp3: Decimal = ZERO
    up_comp4: Decimal = ZERO
    up_comp5: Decimal = ZERO
    up_comp6: Decimal = ZERO
    time_qu: str = ""
    it: Decimal = ZERO
    vat: Decimal = ZERO
    vat_value: Decimal = ZERO
    tax: Decimal = ZERO
    tax_value: Decimal = ZERO
    it_gross: Decimal = ZERO
    sum: Decimal = ZERO

    # VOB (formula) fields
    vob: str = ""
    vob_formula: str = ""
    vob_condition: str = ""
    vob_type: str = ""
    vob_factor: Decimal = ZERO

    # Misc calculation fields
    on: str = ""
    perc_total: Decimal = ZERO
    marked: bool = False
    perc_marked: Decimal = ZERO
    proc_unit: str = ""
    color: str = ""
    note: str = ""
    additional: str = ""

    # Properties blob and criteria
    properties: str = ""
    criteria: str = ""

    # Relationships
    parent: str = ""
    children: str = ""
    openings: str = ""
    children_count: int = 0
    openings_count: int = 0

    # Catalog (assignment[0] denormalized)
    catalog_name: str = ""
    catalog_type: str = ""
    catalog_item_name: str = ""
    catalog_number: str = ""
    catalog_reference: str = ""
    filter_value: int = 0

    # File references
    file_path: str = ""
    file_name: str = ""
    data: str = ""

    # IFC
    ifc_type: str = ""
    material: str = ""
    dimension: str = ""
    segment_type: str = ""

    # Dates
    created: datetime = field(default_factory=_now)
    created3: Optional[datetime] = None  # only when the document carries one

    # Extra header fields
    label4: str = ""
    name7: str = ""
    number: str = ""
    reference: str = ""
    filter: str = ""

    # SPEC mirrors of `properties`
    spec_filter: str = ""
    spec_name: str = ""
    spec_size: str = ""
    spec_type: str = ""
    spec_manufacturer: str = ""
    spec_material: str = ""

    catalog_assignments: List[CatalogAssignment] = field(default_factory=list)
    additional_data: Dict[str, str] = field(default_factory=dict)
    additional_origin: Dict[str, DataOrigin] = field(default_factory=dict)
    properties_source: PropertiesSource = PropertiesSource.BLOB

    # ----------------- derived -----------------
    @property
    def up_result(self) -> Decimal:
        return self.qty_result * self.up

    @property
    def is_parent_node(self) -> bool:
        return self.parent_calc_id == 0

    @property
    def tree_level(self) -> int:
        return 0 if self.is_parent_node else 1

    def recalculate_sum(self) -> Decimal:
        """Sum = Qty * Up, used when the user edits quantity or price."""
        self.sum = self.qty * self.up
        return self.sum

    # ----------------- properties / mirrors -----------------
    def spec_mirrors(self) -> Dict[str, str]:
        return {attr: getattr(self, attr) for attr in SPEC_MIRRORS}

    def apply_properties(self, blob: str) -> Dict[str, str]:
        """Make `blob` authoritative: store it and re-derive the mirrors.

        Unrecognized keys are kept in `additional_data`, replacing those the
        previous blob contributed. Returns the decoded map.
        """
        self.properties = blob or ""
        decoded = decode_properties(self.properties)
        mirrors, extra = split_decoded(decoded)
        for attr, value in mirrors.items():
            setattr(self, attr, value)
        for key in self.extra_keys(DataOrigin.PROPERTIES):
            del self.additional_data[key]
            del self.additional_origin[key]
        for key, value in extra.items():
            self.set_extra(key, value, DataOrigin.PROPERTIES)
        self.properties_source = PropertiesSource.BLOB
        return decoded

    def set_extra(self, key: str, value: str, origin: DataOrigin = DataOrigin.HEADER) -> None:
        self.additional_data[key] = value
        self.additional_origin[key] = origin

    def extra_keys(self, origin: DataOrigin) -> List[str]:
        """Keys of `additional_data` read from `origin`; entries without a recorded origin count as header."""
        return [k for k in self.additional_data if self.additional_origin.get(k, DataOrigin.HEADER) == origin]

    def set_spec(self, attr: str, value: str) -> None:
        if attr not in SPEC_MIRRORS:
            raise KeyError(attr)
        setattr(self, attr, "" if value is None else str(value))
        self.properties_source = PropertiesSource.MIRRORS

    def regenerate_properties(self) -> str:
        """Editor-driven regeneration: rebuild `properties` from the mirrors."""
        self.properties = encode_mirrors(self.spec_mirrors())
        self.properties_source = PropertiesSource.MIRRORS
        return self.properties

    # ----------------- catalogs -----------------
    def sync_catalog_fields(self) -> None:
        """Denormalize assignment[0] onto the flat catalog fields."""
        first = self.catalog_assignments[0] if self.catalog_assignments else CatalogAssignment()
        self.catalog_name = first.catalog_name
        self.catalog_type = first.catalog_type
        self.catalog_item_name = first.name
        self.catalog_number = first.number
        self.catalog_reference = first.reference

    # ----------------- copy -----------------
    def clone(self) -> "CostElement":
        other = CostElement()
        for f in dc_fields(self):
            setattr(other, f.name, deepcopy(getattr(self, f.name)))
        return other

    def display_id(self) -> str:
        return f"Element {self.id} ({self.id2})"


__all__ = ["CostElement", "CatalogAssignment", "DataOrigin", "PropertiesSource", "SPEC_MIRRORS"]
