# -*- coding: utf-8 -*-
"""ValidationService

Runs the pure validators over an element collection and returns a fresh
ValidationResult.

- No UI dependency.
- Validators return core.types.Issue dataclass instances.
- Order: per-element issues (input order), cross-element issues, then
  schema-diff issues.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from core.models.cost_element import CostElement
from core.types import Issue, Severity, ValidationResult
from core.validators.consistency import validate_consistency
from core.validators.elements import validate_element
from core.validators.ifc import validate_ifc
from core.validators.longtext import validate_longtext
from core.validators.properties import validate_properties
from core.validators.schema_diff import OriginalSchema, validate_schema_diff
from infra.perf import span

log = logging.getLogger(__name__)

ElementValidator = Callable[[CostElement], List[Issue]]

_ELEMENT_VALIDATORS: Sequence[ElementValidator] = (
    validate_element,
    validate_longtext,
    validate_properties,
    validate_ifc,
)

_RULE = "═" * 55
_THIN_RULE = "─" * 55


def _run_element_validator(fn: ElementValidator, el: CostElement) -> List[Issue]:
    try:
        return fn(el) or []
    except Exception:
        log.debug("validator %s failed on %s", fn.__name__, el.display_id(), exc_info=True)
        return [Issue(
            code="VALIDATOR_CRASH",
            message=f"Validator '{fn.__name__}' failed (see logs).",
            severity=Severity.WARNING,
            context=el.display_id(),
        )]


def validate(elements: Sequence[CostElement], original_schema: Optional[OriginalSchema] = None) -> ValidationResult:
    """Evaluate every rule; never raises for data problems."""
    result = ValidationResult()
    elements = list(elements or [])
    with span("validate", items=len(elements)):
        for el in elements:
            for fn in _ELEMENT_VALIDATORS:
                result.extend(_run_element_validator(fn, el))
        result.extend(validate_consistency(elements))
        result.extend(validate_schema_diff(elements, original_schema))
    log.info(
        "Validated %d element(s): %d error(s), %d warning(s)",
        len(elements), len(result.errors), len(result.warnings),
    )
    return result


def render_report(result: ValidationResult, *, now: Optional[datetime] = None) -> str:
    """Plain-text report: header, verdict, numbered errors then warnings."""
    lines: List[str] = [_RULE, "     NOVA AVA EXPORT VALIDATION REPORT", _RULE, ""]

    if result.is_valid:
        lines += ["✓ VALIDATION PASSED", "", "All critical validations passed. The data is ready for export."]
    else:
        lines += ["✗ VALIDATION FAILED", "", f"Found {len(result.errors)} critical error(s) that MUST be fixed."]
    if result.has_warnings:
        lines.append(f"Found {len(result.warnings)} warning(s) that should be reviewed.")
    lines += ["", _RULE]

    if result.has_errors:
        lines += ["", "CRITICAL ERRORS (Must Fix):", _THIN_RULE]
        lines += [f"{i}. {msg}" for i, msg in enumerate(result.error_messages, start=1)]

    if result.has_warnings:
        lines += ["", "WARNINGS (Should Review):", _THIN_RULE]
        lines += [f"{i}. {msg}" for i, msg in enumerate(result.warning_messages, start=1)]

    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines += ["", _RULE, f"Report generated: {stamp}", ""]
    return "\n".join(lines)


class ValidationService:
    """Binds `validate` to a data model holding elements and the import snapshot."""

    def __init__(self, data_model, *, compare_with_original: bool = True):
        self.dm = data_model
        self.compare_with_original = compare_with_original

    def run(self, schema: Optional[OriginalSchema] = None) -> ValidationResult:
        if schema is None and self.compare_with_original:
            schema = getattr(self.dm, "original_schema", None)
        result = validate(self.dm.elements, schema)
        self.dm.last_validation = result
        return result
