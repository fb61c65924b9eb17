# -*- coding: utf-8 -*-
"""LongText checks: length, XML-safe characters and typing heuristics."""

from __future__ import annotations

import re
from typing import List

from core.models.cost_element import CostElement
from core.types import Issue, Severity

LONGTEXT_MAX = 2000

_DANGLING_NORM_RE = re.compile(r"DN\s*$|DIN\s*$|EN\s*$", re.IGNORECASE)
_INCOMPLETE_DIM_RE = re.compile(r"\d+\s*[x/](?!\s*\d)", re.IGNORECASE)
_TRAILING_PUNCT_RE = re.compile(r"[,;\-]\s*$")
_UNIT_RUN_ON_RE = re.compile(r"\d+(?:mm|cm|m|kg|g)[^\W\d_]", re.IGNORECASE)


def has_invalid_xml_chars(text: str) -> bool:
    return any(ord(c) < 0x20 and c not in "\t\n\r" for c in text)


def syntax_findings(text: str) -> List[str]:
    """Heuristic findings for one LongText, in a fixed order."""
    out: List[str] = []
    if text.count("(") != text.count(")"):
        out.append("Unbalanced parentheses")
    if text.count("[") != text.count("]"):
        out.append("Unbalanced square brackets")
    if _DANGLING_NORM_RE.search(text):
        out.append("Incomplete technical specification (DN/DIN/EN without number)")
    if _INCOMPLETE_DIM_RE.search(text):
        out.append("Incomplete dimension specification")
    if _TRAILING_PUNCT_RE.search(text):
        out.append("Trailing punctuation")
    if "  " in text:
        out.append("Contains multiple consecutive spaces")
    if _UNIT_RUN_ON_RE.search(text):
        out.append("Unit appears to be concatenated with following text")
    return out


def validate_longtext(el: CostElement) -> List[Issue]:
    text = el.long_text or ""
    if not text.strip():
        return []

    ctx = el.display_id()
    issues: List[Issue] = []

    if len(text) > LONGTEXT_MAX:
        issues.append(Issue(
            code="LONGTEXT_TOO_LONG",
            message=f"LongText exceeds maximum length of {LONGTEXT_MAX} characters (current: {len(text)})",
            severity=Severity.ERROR,
            context=ctx,
        ))

    for finding in syntax_findings(text):
        issues.append(Issue(code="LONGTEXT_SYNTAX", message=f"LongText syntax issue - {finding}", severity=Severity.WARNING, context=ctx))

    if has_invalid_xml_chars(text):
        issues.append(Issue(code="LONGTEXT_INVALID_CHARS", message="LongText contains invalid XML characters", severity=Severity.ERROR, context=ctx))

    return issues
