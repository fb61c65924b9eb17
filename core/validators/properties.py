# -*- coding: utf-8 -*-
"""Structural checks on the serialized `properties` blob.

Every finding here is a serialization-format violation and therefore an
error: a malformed blob would be exported verbatim.
"""

from __future__ import annotations

from typing import List

from core.models.cost_element import CostElement
from core.serializers.properties import count_pairs, declared_count, has_wrapper_shape
from core.types import Issue, Severity

SERIALIZATION_FORMAT_CODES = frozenset({"PROPS_FORMAT", "PROPS_BRACES", "PROPS_COUNT"})


def validate_properties(el: CostElement) -> List[Issue]:
    blob = (el.properties or "").strip()
    if not blob:
        return []

    ctx = el.display_id()
    issues: List[Issue] = []

    if not has_wrapper_shape(blob):
        issues.append(Issue(
            code="PROPS_FORMAT",
            message="Properties format is invalid (expected a:<n>:{...})",
            severity=Severity.ERROR,
            context=ctx,
        ))

    if blob.count("{") != blob.count("}"):
        issues.append(Issue(code="PROPS_BRACES", message="Properties have unbalanced braces", severity=Severity.ERROR, context=ctx))

    declared = declared_count(blob)
    if declared is not None:
        actual = count_pairs(blob)
        if declared != actual:
            issues.append(Issue(
                code="PROPS_COUNT",
                message=f"Properties array count mismatch (declared: {declared}, actual: {actual})",
                severity=Severity.ERROR,
                context=ctx,
            ))

    return issues
