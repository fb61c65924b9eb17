# -*- coding: utf-8 -*-
"""Per-element validations: required fields, lengths, amounts, id formats."""

from __future__ import annotations

import re
import uuid
from decimal import Decimal
from typing import List

from core.models.cost_element import CostElement
from core.types import Issue, Severity

TEXT_MAX = 255
SUM_TOLERANCE = Decimal("0.01")

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")

_REQUIRED = (
    ("id", "ID"),
    ("id2", "Code (ID2)"),
    ("name", "Name"),
    ("text", "Text"),
)

_NON_NEGATIVE = (
    ("qty", "Quantity"),
    ("qty_result", "Quantity result"),
    ("up", "Unit price"),
)

_GUID_FIELDS = (
    ("id5", "ID5"),
    ("id6", "ID6"),
    ("ident", "Ident"),
)


def is_guid(value: str) -> bool:
    try:
        uuid.UUID(str(value).strip())
    except (ValueError, AttributeError):
        return False
    return True


def validate_element(el: CostElement) -> List[Issue]:
    ctx = el.display_id()
    issues: List[Issue] = []

    for attr, label in _REQUIRED:
        if not str(getattr(el, attr) or "").strip():
            issues.append(Issue(code="ELEM_REQUIRED", message=f"{label} is required", severity=Severity.ERROR, context=ctx))

    if len(el.text or "") > TEXT_MAX:
        issues.append(Issue(
            code="ELEM_TEXT_TOO_LONG",
            message=f"Text exceeds maximum length of {TEXT_MAX} characters (current: {len(el.text)})",
            severity=Severity.ERROR,
            context=ctx,
        ))

    for attr, label in _NON_NEGATIVE:
        if getattr(el, attr) < 0:
            issues.append(Issue(code="ELEM_NEGATIVE", message=f"{label} cannot be negative", severity=Severity.ERROR, context=ctx))

    expected = el.qty * el.up
    if abs(el.sum - expected) > SUM_TOLERANCE:
        issues.append(Issue(
            code="ELEM_SUM_MISMATCH",
            message=f"Sum mismatch. Expected {expected:.2f}, got {el.sum:.2f}",
            severity=Severity.WARNING,
            context=ctx,
        ))

    if el.qty > 0 and not (el.qu or "").strip():
        issues.append(Issue(code="ELEM_UNIT_MISSING", message="Quantity specified but unit is missing", severity=Severity.WARNING, context=ctx))

    for attr, label in _GUID_FIELDS:
        val = str(getattr(el, attr) or "").strip()
        if val and not is_guid(val):
            issues.append(Issue(code="ELEM_GUID_FORMAT", message=f"{label} should be a valid GUID", severity=Severity.WARNING, context=ctx))

    color = (el.color or "").strip()
    if color and not _COLOR_RE.match(color):
        issues.append(Issue(code="ELEM_COLOR_FORMAT", message=f"Color format may be invalid: {color}", severity=Severity.WARNING, context=ctx))

    return issues
