# -*- coding: utf-8 -*-
"""Cross-element validations (duplicates, references, totals)."""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import List, Sequence

from core.models.cost_element import CostElement
from core.types import Issue, Severity


def _duplicates(values: Sequence[str]) -> List[str]:
    """Values occurring more than once, in first-appearance order."""
    counts = Counter(values)
    seen = set()
    out: List[str] = []
    for v in values:
        if counts[v] > 1 and v not in seen:
            seen.add(v)
            out.append(v)
    return out


def validate_consistency(elements: Sequence[CostElement]) -> List[Issue]:
    issues: List[Issue] = []

    for dup in _duplicates([el.id for el in elements]):
        issues.append(Issue(code="DUPLICATE_ID", message=f"Duplicate ID found: {dup}", severity=Severity.ERROR, context=dup))

    for dup in _duplicates([el.id2 for el in elements]):
        issues.append(Issue(code="DUPLICATE_CODE", message=f"Duplicate code found: {dup}", severity=Severity.WARNING, context=dup))

    known = {el.id for el in elements}
    for el in elements:
        parent = (el.parent or "").strip()
        if parent and parent not in known:
            issues.append(Issue(
                code="PARENT_NOT_FOUND",
                message=f"Parent ID '{parent}' not found",
                severity=Severity.WARNING,
                context=el.display_id(),
            ))
        if (el.children or "").strip():
            for child in (c.strip() for c in el.children.split(",")):
                if child not in known:
                    issues.append(Issue(
                        code="CHILD_NOT_FOUND",
                        message=f"Child ID '{child}' not found",
                        severity=Severity.WARNING,
                        context=el.display_id(),
                    ))

    total = sum((el.sum for el in elements), Decimal(0))
    if total == 0 and any(el.qty > 0 for el in elements):
        issues.append(Issue(code="TOTAL_ZERO", message="Total project value is zero despite having quantities", severity=Severity.WARNING))

    return issues
