# -*- coding: utf-8 -*-
"""Compare the current elements with the field set seen at import time.

The snapshot is a plain value returned by the importer and handed back to
`validate`; nothing is stored globally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

from core.fields import non_default_fields
from core.models.cost_element import CostElement
from core.types import Issue, Severity


def schema_key(el: CostElement) -> str:
    return f"{el.id}:{el.ident}"


@dataclass(frozen=True)
class OriginalSchema:
    fields: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    source_path: str = ""

    def __bool__(self) -> bool:
        return bool(self.fields)

    def fields_for(self, el: CostElement) -> Optional[FrozenSet[str]]:
        return self.fields.get(schema_key(el))


def capture_schema(elements: Iterable[CostElement], source_path: str = "") -> OriginalSchema:
    snapshot: Dict[str, FrozenSet[str]] = {}
    for el in elements:
        snapshot[schema_key(el)] = frozenset(non_default_fields(el))
    return OriginalSchema(fields=snapshot, source_path=str(source_path or ""))


def validate_schema_diff(elements: Iterable[CostElement], schema: Optional[OriginalSchema]) -> List[Issue]:
    if not schema:
        return []
    issues: List[Issue] = []
    for el in elements:
        original = schema.fields_for(el)
        if original is None:
            # added after import
            continue
        missing = sorted(original - non_default_fields(el))
        if missing:
            issues.append(Issue(
                code="SCHEMA_MISSING_FIELDS",
                message=f"Missing fields from original schema: {', '.join(missing)}",
                severity=Severity.WARNING,
                context=el.display_id(),
            ))
    return issues
