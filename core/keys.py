# -*- coding: utf-8 -*-
"""Single source of truth for interchange-document tag names.

Why:
- Avoid typos scattered across importer and exporter.
- Keep both directions of the codec reading the same table.

These are *wire names* of the AVA interchange XML. Keep them stable.
"""

from __future__ import annotations

from typing import Tuple


class AvaTags:
    ROOT = "cefexport"
    ROOT_VERSION = "2"
    ELEMENTS = "costelements"
    ELEMENT = "costelement"
    CATALOG_ASSIGNS = "cecatalogassigns"
    CATALOG_ASSIGN = "cecatalogassign"
    CALCULATIONS = "cecalculations"
    CALCULATION = "cecalculation"

    # catalog assignment children
    CATALOG_NAME = "catalogname"
    CATALOG_TYPE = "catalogtype"
    CATALOG_ITEM_NAME = "name"
    CATALOG_NUMBER = "number"
    CATALOG_REFERENCE = "reference"

    QTY = "qty"
    VOB_QTY_TOKEN = "DXQuantity"


# (tag, attribute, kind); kind is one of the field registry kinds.
# Header fields shared by every calculation of a cost element, in wire order.
HEADER_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("type", "type", "str"),
    ("name", "name", "str"),
    ("description", "description", "str"),
    ("properties", "properties", "str"),
    ("filter", "filter", "str"),
    ("children", "children", "str"),
    ("openings", "openings", "str"),
    ("created", "created", "datetime"),
)

# Header fields emitted only when non-empty.
OPTIONAL_HEADER_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("title", "title", "str"),
    ("label", "label", "str"),
    ("criteria", "criteria", "str"),
    ("created3", "created3", "datetime"),
    ("label4", "label4", "str"),
    ("id5", "id5", "str"),
    ("id6", "id6", "str"),
    ("parent", "parent", "str"),
    ("filepath", "file_path", "str"),
    ("filename", "file_name", "str"),
    ("data", "data", "str"),
    ("name7", "name7", "str"),
    ("ifc_type", "ifc_type", "str"),
    ("material", "material", "str"),
    ("dimension", "dimension", "str"),
    ("segment_type", "segment_type", "str"),
)

# Calculation fields, in wire order. `qty` and `up_result` are special-cased
# by the exporter (formula token / derived value).
CALCULATION_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("id", "ident", "str"),
    ("parent", "parent_calc_id", "int"),
    ("order", "order", "int"),
    ("ident", "id2", "str"),
    ("bimkey", "bim_key", "str"),
    ("text", "text", "str"),
    ("longtext", "long_text", "str"),
    ("qty", "qty", "decimal"),
    ("qty_result", "qty_result", "decimal"),
    ("qu", "qu", "str"),
    ("up", "up", "decimal"),
    ("up_result", "up_result", "decimal"),
    ("upbkdn", "up_bkdn", "decimal"),
    ("upcomp1", "up_comp1", "decimal"),
    ("upcomp2", "up_comp2", "decimal"),
    ("upcomp3", "up_comp3", "decimal"),
    ("upcomp4", "up_comp4", "decimal"),
    ("upcomp5", "up_comp5", "decimal"),
    ("upcomp6", "up_comp6", "decimal"),
    ("timequ", "time_qu", "str"),
    ("it", "it", "decimal"),
    ("vat", "vat", "decimal"),
    ("vatvalue", "vat_value", "decimal"),
    ("tax", "tax", "decimal"),
    ("taxvalue", "tax_value", "decimal"),
    ("itgross", "it_gross", "decimal"),
    ("sum", "sum", "decimal"),
    ("vob", "vob", "str"),
    ("vob_formula", "vob_formula", "str"),
    ("vob_condition", "vob_condition", "str"),
    ("vob_type", "vob_type", "str"),
    ("vob_factor", "vob_factor", "decimal"),
    ("on", "on", "str"),
    ("additional", "additional", "str"),
    ("perctotal", "perc_total", "decimal"),
    ("marked", "marked", "bool"),
    ("percmarked", "perc_marked", "decimal"),
    ("procunit", "proc_unit", "str"),
    ("color", "color", "str"),
    ("note", "note", "str"),
)

OPTIONAL_CALCULATION_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("text_sys", "text_sys", "str"),
    ("text_key", "text_key", "str"),
    ("stlno", "stl_no", "str"),
    ("outlinetext_free", "outline_text_free", "str"),
)

# Tags written as CDATA when non-empty.
CDATA_TAGS = frozenset({"text", "longtext", "additional", "properties"})

# Decimal tags formatted with 2 places instead of 3.
PERCENT_TAGS = frozenset({"vat", "tax", "perctotal", "percmarked"})


class GaebTags:
    NAMESPACE = "http://www.gaeb.de/GAEB_XML"
    VERSION = "3.2"
    ROOT = "GAEB"
    INFO = "GAEBInfo"
    AWARD = "Award"
    BOQ = "BoQ"
    ITEM = "Item"
    ITEM_NUMBER_ATTR = "RNoPart"


class ProjectTags:
    """Session file (.novaava) tags."""

    ROOT = "NovaAvaProject"
    VERSION = "1"
    SOURCE_FILE = "SourceFile"
    ELEMENTS = "Elements"
    ELEMENT = "Element"
    CATALOG_ASSIGNMENTS = "CatalogAssignments"
    CATALOG_ASSIGNMENT = "CatalogAssignment"
    ADDITIONAL_DATA = "AdditionalData"
    ENTRY = "Entry"
    PROPERTIES_SOURCE = "PropertiesSource"
