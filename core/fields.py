# -*- coding: utf-8 -*-
"""Field registry: one table for every string-keyed access to a CostElement.

Paste, clear, edit tracking, undo/redo and the session file all go through
here, so per-field dispatch lives in exactly one place.

Names:
- canonical name = the dataclass attribute ("qty_result")
- grid name      = PascalCase ("QtyResult")
Lookup accepts either, case-insensitively.
"""

from __future__ import annotations

from dataclasses import dataclass, fields as dc_fields
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from core.errors import FieldCoercionFailure, ReadOnlyFieldError, UnknownFieldError
from core.models.cost_element import SPEC_MIRRORS, CostElement
from domain.parse import parse_bool, parse_datetime, parse_decimal, parse_int

STR = "str"
DECIMAL = "decimal"
INT = "int"
BOOL = "bool"
DATETIME = "datetime"

_KIND_BY_ANNOTATION = {
    "str": STR,
    "Decimal": DECIMAL,
    "int": INT,
    "bool": BOOL,
    "datetime": DATETIME,
    "Optional[datetime]": DATETIME,
}

# Non-scalar or bookkeeping attributes; not reachable by name.
_NOT_FIELDS = {"catalog_assignments", "additional_data", "additional_origin", "properties_source"}

_DERIVED = ("up_result", "is_parent_node", "tree_level")
_DERIVED_KINDS = {"up_result": DECIMAL, "is_parent_node": BOOL, "tree_level": INT}


def grid_name(attr: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in attr.split("_"))


def _lookup_key(name: str) -> str:
    return str(name or "").replace("_", "").replace(" ", "").lower()


@dataclass(frozen=True)
class FieldSpec:
    name: str
    grid_name: str
    kind: str
    getter: Callable[[CostElement], Any]
    setter: Optional[Callable[[CostElement, Any], None]]
    optional: bool = False  # blank means absent (None), not the type default

    @property
    def editable(self) -> bool:
        return self.setter is not None

    def default(self) -> Any:
        if self.kind == STR:
            return ""
        if self.kind == DECIMAL:
            return Decimal(0)
        if self.kind == INT:
            return 0
        if self.kind == BOOL:
            return False
        if self.optional:
            return None
        return datetime.now().replace(microsecond=0)

    def coerce(self, value: Any) -> Any:
        """Best-effort conversion to the declared type.

        Blank input maps to the type default. Raises FieldCoercionFailure.
        """
        if self.kind == STR:
            return "" if value is None else str(value)
        try:
            if self.kind == DECIMAL:
                d = parse_decimal(value)
                return Decimal(0) if d is None else d
            if self.kind == INT:
                i = parse_int(value)
                return 0 if i is None else i
            if self.kind == BOOL:
                return parse_bool(value)
            dt = parse_datetime(value)
            return self.default() if dt is None else dt
        except (ValueError, TypeError) as e:
            raise FieldCoercionFailure(self.name, value, self.kind, str(e)) from e

    def is_default(self, value: Any) -> bool:
        if self.kind == STR:
            return not str(value or "").strip()
        if self.kind in (DECIMAL, INT):
            return value == 0
        if self.kind == BOOL:
            return value is False
        return value is None


def _plain_getter(attr: str) -> Callable[[CostElement], Any]:
    return lambda el: getattr(el, attr)


def _plain_setter(attr: str) -> Callable[[CostElement, Any], None]:
    def _set(el: CostElement, value: Any) -> None:
        setattr(el, attr, value)
    return _set


def _spec_setter(attr: str) -> Callable[[CostElement, Any], None]:
    def _set(el: CostElement, value: Any) -> None:
        el.set_spec(attr, value)
    return _set


def _properties_setter(el: CostElement, value: Any) -> None:
    el.apply_properties(value)


def _build_registry() -> Dict[str, FieldSpec]:
    registry: Dict[str, FieldSpec] = {}
    for f in dc_fields(CostElement):
        if f.name in _NOT_FIELDS:
            continue
        kind = _KIND_BY_ANNOTATION.get(str(f.type))
        if kind is None:
            continue
        if f.name == "properties":
            setter = _properties_setter
        elif f.name in SPEC_MIRRORS:
            setter = _spec_setter(f.name)
        else:
            setter = _plain_setter(f.name)
        optional = str(f.type).startswith("Optional[")
        registry[f.name] = FieldSpec(f.name, grid_name(f.name), kind, _plain_getter(f.name), setter, optional)
    for attr in _DERIVED:
        registry[attr] = FieldSpec(attr, grid_name(attr), _DERIVED_KINDS[attr], _plain_getter(attr), None)
    return registry


FIELD_REGISTRY: Dict[str, FieldSpec] = _build_registry()
_ALIASES: Dict[str, str] = {_lookup_key(spec.name): spec.name for spec in FIELD_REGISTRY.values()}


def get_field(name: str) -> FieldSpec:
    spec = FIELD_REGISTRY.get(name)
    if spec is not None:
        return spec
    canonical = _ALIASES.get(_lookup_key(name))
    if canonical is None:
        raise UnknownFieldError(name)
    return FIELD_REGISTRY[canonical]


def has_field(name: str) -> bool:
    try:
        get_field(name)
    except UnknownFieldError:
        return False
    return True


def field_names(*, editable_only: bool = False) -> List[str]:
    return [n for n, spec in FIELD_REGISTRY.items() if spec.editable or not editable_only]


def get_value(element: CostElement, name: str) -> Any:
    return get_field(name).getter(element)


def coerce_value(name: str, value: Any) -> Any:
    return get_field(name).coerce(value)


def set_value(element: CostElement, name: str, value: Any) -> Tuple[Any, Any]:
    """Coerce and write one field. Returns (old, new) in declared types.

    Raises FieldCoercionFailure (element untouched) or ReadOnlyFieldError.
    """
    spec = get_field(name)
    if not spec.editable:
        raise ReadOnlyFieldError(spec.name)
    new_value = spec.coerce(value)
    old_value = spec.getter(element)
    spec.setter(element, new_value)
    return old_value, new_value


def clear_value(element: CostElement, name: str) -> Tuple[Any, Any]:
    spec = get_field(name)
    if not spec.editable:
        raise ReadOnlyFieldError(spec.name)
    return set_value(element, spec.name, spec.default())


def non_default_fields(element: CostElement, names: Optional[Iterable[str]] = None) -> Set[str]:
    """Names of fields whose current value differs from the type default."""
    out: Set[str] = set()
    for n in (names if names is not None else FIELD_REGISTRY.keys()):
        spec = FIELD_REGISTRY[n]
        if not spec.editable:
            continue
        if not spec.is_default(spec.getter(element)):
            out.add(spec.name)
    return out
