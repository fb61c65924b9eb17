# -*- coding: utf-8 -*-
"""Shared domain types (pure, test-friendly)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Issue:
    code: str
    message: str
    severity: Severity = Severity.WARNING
    context: Optional[str] = None

    def __str__(self) -> str:
        if self.context:
            return f"{self.context}: {self.message}"
        return self.message


@dataclass
class ValidationResult:
    """Errors block export (unless forced); warnings never do. Fresh per run."""

    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)

    def add(self, issue: Issue) -> None:
        if issue.severity == Severity.ERROR:
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def extend(self, issues) -> None:
        for it in issues or []:
            self.add(it)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_messages(self) -> List[str]:
        return [str(it) for it in self.errors]

    @property
    def warning_messages(self) -> List[str]:
        return [str(it) for it in self.warnings]

    def codes(self) -> List[str]:
        return [it.code for it in self.errors + self.warnings]
