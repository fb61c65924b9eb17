# -*- coding: utf-8 -*-
"""Exceptions shared by the document engine (no UI dependency).

Validation problems are NOT exceptions: they are `core.types.Issue` values
collected in a `ValidationResult`. Only conditions that must unwind the call
are modelled here.
"""

from __future__ import annotations

from typing import Any, Optional


class NovaAvaError(Exception):
    """Base class for engine errors."""

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.code = code or self.__class__.__name__


class StructuralParseError(NovaAvaError):
    """The document could not be parsed as XML at all. Aborts the import."""

    def __init__(self, path: str, cause: BaseException):
        detail = str(cause) or cause.__class__.__name__
        super().__init__(f"Cannot parse '{path}': {detail}")
        self.path = path
        self.cause = cause


class FieldCoercionFailure(NovaAvaError):
    """A single value could not be converted to its field's declared type."""

    def __init__(self, field_name: str, value: Any, target: str, reason: str = ""):
        msg = f"Cannot convert {value!r} to {target} for field '{field_name}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.field_name = field_name
        self.value = value
        self.target = target


class ChangeApplicationFailure(FieldCoercionFailure):
    """Coercion failure while replaying one field during undo/redo."""


class UnknownFieldError(NovaAvaError, KeyError):
    """No field registry entry under that name."""

    def __init__(self, field_name: str):
        super().__init__(f"Unknown field '{field_name}'")
        self.field_name = field_name

    def __str__(self) -> str:
        return self.args[0]


class ReadOnlyFieldError(NovaAvaError):
    """Attempt to write a derived field (e.g. UpResult)."""

    def __init__(self, field_name: str):
        super().__init__(f"Field '{field_name}' is derived and cannot be set")
        self.field_name = field_name


class ExportError(NovaAvaError):
    """The export document could not be written."""


class ExportBlockedError(ExportError):
    """Validation reported errors and the export was not forced."""

    def __init__(self, result: Any):
        count = len(getattr(result, "errors", []) or [])
        super().__init__(f"Export blocked by {count} validation error(s)")
        self.result = result


class ProjectFileError(NovaAvaError):
    """A session (.novaava) file could not be read or written."""
