# -*- coding: utf-8 -*-
"""
domain/parse.py

Single home for tolerant parsing and invariant formatting of the values that
travel through the AVA documents and the grid.
Goal:
- Avoid duplicated safe_decimal/_as_int helpers across importer, exporter,
  field registry and CSV templates.
- Accept both decimal separators: "1234,56" and "1234.56", and thousands
  grouping like "1.234,56" or "1,234.56".
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional


DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

_CURRENCY_TOKENS = ("€", "$", "£")
_TRUE_TOKENS = {"true", "1", "yes", "y", "x", "ja", "wahr"}
_FALSE_TOKENS = {"false", "0", "no", "n", "nein", "falsch", ""}


def is_blank(val: Any) -> bool:
    """True if the value must be treated as 'empty'."""
    if val is None:
        return True
    # Note: bool is a subclass of int; not blank here.
    if isinstance(val, (int, float, Decimal)):
        return False
    return str(val).strip() == ""


def _normalize_number_text(s: str) -> str:
    s = s.strip().replace(" ", "").replace(" ", "")
    for token in _CURRENCY_TOKENS:
        s = s.replace(token, "")

    # Thousands/decimal normalization
    if "," in s and "." in s:
        # The decimal separator is usually the last one to appear.
        if s.rfind(",") > s.rfind("."):
            # "1.234,56" -> "1234.56"
            s = s.replace(".", "").replace(",", ".")
        else:
            # "1,234.56" -> "1234.56"
            s = s.replace(",", "")
    else:
        s = s.replace(",", ".")
    return s


def parse_decimal(val: Any) -> Optional[Decimal]:
    """Strict-ish conversion to Decimal.

    Returns None for blank input and raises ValueError for text that is not a
    number. Callers that must never fail use `to_decimal`.
    """
    if is_blank(val):
        return None
    if isinstance(val, bool):
        raise ValueError(f"boolean is not a number: {val!r}")
    if isinstance(val, Decimal):
        return val
    if isinstance(val, int):
        return Decimal(val)
    if isinstance(val, float):
        return Decimal(repr(val))

    s = _normalize_number_text(str(val))
    try:
        d = Decimal(s)
    except InvalidOperation:
        raise ValueError(f"not a number: {val!r}") from None
    if not d.is_finite():
        raise ValueError(f"not a finite number: {val!r}")
    return d


def to_decimal(val: Any, default: Decimal = Decimal(0)) -> Decimal:
    """Tolerant conversion to Decimal; never raises."""
    try:
        d = parse_decimal(val)
    except ValueError:
        return default
    return default if d is None else d


def parse_int(val: Any) -> Optional[int]:
    """Integer conversion accepting integral decimals ("3", "3.0", "3,0")."""
    if is_blank(val):
        return None
    if isinstance(val, bool):
        raise ValueError(f"boolean is not an integer: {val!r}")
    if isinstance(val, int):
        return val
    d = parse_decimal(val)
    if d is None:
        return None
    if d != d.to_integral_value():
        raise ValueError(f"not an integer: {val!r}")
    return int(d)


def to_int(val: Any, default: int = 0) -> int:
    try:
        i = parse_int(val)
    except ValueError:
        return default
    return default if i is None else i


def parse_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    if val is None:
        return False
    if isinstance(val, (int, Decimal)):
        return val != 0
    s = str(val).strip().lower()
    if s in _TRUE_TOKENS:
        return True
    if s in _FALSE_TOKENS:
        return False
    raise ValueError(f"not a boolean: {val!r}")


def to_bool(val: Any, default: bool = False) -> bool:
    try:
        return parse_bool(val)
    except ValueError:
        return default


def parse_datetime(val: Any) -> Optional[datetime]:
    if isinstance(val, datetime):
        return val
    if is_blank(val):
        return None
    s = str(val).strip()
    for fmt in (DATETIME_FORMAT, "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        raise ValueError(f"not a date: {val!r}") from None


def to_datetime(val: Any, default: Optional[datetime] = None) -> datetime:
    try:
        dt = parse_datetime(val)
    except ValueError:
        dt = None
    if dt is None:
        return default if default is not None else datetime.now().replace(microsecond=0)
    return dt


# ----------------- invariant formatting -----------------

def format_fixed(val: Any, places: int = 3) -> str:
    """Fixed-point, locale-invariant text ("1234.500").

    Unparsable input falls back to zero with the same number of places.
    """
    d = to_decimal(val)
    quantum = Decimal(1).scaleb(-places)
    try:
        d = d.quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        d = Decimal(0).quantize(quantum)
    return f"{d:f}"


def format_plain(val: Any) -> str:
    """Invariant plain text of a number without forcing decimals ("12.5", "3")."""
    d = to_decimal(val)
    if d == d.to_integral_value():
        return str(int(d))
    return f"{d.normalize():f}"


def format_datetime(val: Any) -> str:
    if isinstance(val, datetime):
        return val.strftime(DATETIME_FORMAT)
    return to_datetime(val).strftime(DATETIME_FORMAT)
