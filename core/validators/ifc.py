# -*- coding: utf-8 -*-
"""IFC data plausibility (advisory only)."""

from __future__ import annotations

import re
from typing import List

from core.models.cost_element import CostElement
from core.types import Issue, Severity

_DIMENSION_RE = re.compile(r"^(DN\d+|IPE\d+|\d+mm|\d+x\d+)$", re.IGNORECASE)


def validate_ifc(el: CostElement) -> List[Issue]:
    ifc_type = (el.ifc_type or "").strip()
    if not ifc_type:
        return []

    ctx = el.display_id()
    issues: List[Issue] = []

    if not ifc_type.upper().startswith("IFC"):
        issues.append(Issue(code="IFC_TYPE_PREFIX", message="IFC type should start with 'IFC'", severity=Severity.WARNING, context=ctx))

    if not (el.material or "").strip():
        issues.append(Issue(code="IFC_MATERIAL_MISSING", message="IFC type specified but material is missing", severity=Severity.WARNING, context=ctx))

    dimension = (el.dimension or "").strip()
    if not dimension:
        issues.append(Issue(code="IFC_DIMENSION_MISSING", message="IFC type specified but dimension is missing", severity=Severity.WARNING, context=ctx))
    elif not _DIMENSION_RE.match(dimension):
        issues.append(Issue(
            code="IFC_DIMENSION_FORMAT",
            message=f"Dimension format may be non-standard: {dimension}",
            severity=Severity.WARNING,
            context=ctx,
        ))

    if not (el.properties or "").strip():
        issues.append(Issue(code="IFC_PROPERTIES_EMPTY", message="IFC type specified but properties are empty", severity=Severity.WARNING, context=ctx))

    return issues
