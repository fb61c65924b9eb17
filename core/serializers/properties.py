# -*- coding: utf-8 -*-
"""SPEC parameters <-> PHP-array style "properties" blob.

Wire shape (one line, no whitespace):

    a:<N>:{s:<len>:"<key>";s:<len>:"<value>"; ...}

`<len>` is the UTF-8 byte length of the quoted text, not the character count.
A literal double quote inside a value cannot be represented; such values
produce a blob the decoder will not fully recover.

Pure module: no I/O, no logging, never raises on decode.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping, Optional, Tuple

KEY_NAME = "DX.SPEC_Name"
KEY_SIZE = "DX.SPEC_Size"
KEY_TYPE = "DX.SPEC_Type"
KEY_FILTER = "DX.SPEC_filter"
KEY_MANUFACTURER = "DX.SPEC_Manufacturer"
KEY_MATERIAL = "DX.SPEC_Material"

# (blob key, mirror attribute) in emission order.
SPEC_KEYS: Tuple[Tuple[str, str], ...] = (
    (KEY_NAME, "spec_name"),
    (KEY_SIZE, "spec_size"),
    (KEY_TYPE, "spec_type"),
    (KEY_FILTER, "spec_filter"),
    (KEY_MANUFACTURER, "spec_manufacturer"),
    (KEY_MATERIAL, "spec_material"),
)

_MIRROR_BY_KEY = {key.lower(): attr for key, attr in SPEC_KEYS}

_PAIR_RE = re.compile(r's:(\d+):"([^"]*)";s:(\d+):"([^"]*)";')
_HEADER_RE = re.compile(r"^a:(\d+):\{")
_WRAPPER_RE = re.compile(r"^a:(\d+):\{.*\}$", re.DOTALL)


def byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _serialize_string(text: str) -> str:
    return f's:{byte_len(text)}:"{text}";'


def encode_properties(
    name: str = "",
    size: str = "",
    type: str = "",
    filter: str = "",
    manufacturer: str = "",
    material: str = "",
) -> str:
    """Serialize the six SPEC parameters.

    Empty parameters are omitted; when all are empty the result is "".
    Emission order is fixed (name, size, type, filter, manufacturer,
    material) whatever order the caller passes them in.
    """
    values = (name, size, type, filter, manufacturer, material)
    parts = []
    for (key, _attr), value in zip(SPEC_KEYS, values):
        value = "" if value is None else str(value)
        if not value:
            continue
        parts.append(_serialize_string(key) + _serialize_string(value))
    if not parts:
        return ""
    return f"a:{len(parts)}:{{{''.join(parts)}}}"


def encode_mirrors(mirrors: Mapping[str, str]) -> str:
    """Same as `encode_properties` but fed from a {mirror attribute: value} map."""
    return encode_properties(
        name=mirrors.get("spec_name", ""),
        size=mirrors.get("spec_size", ""),
        type=mirrors.get("spec_type", ""),
        filter=mirrors.get("spec_filter", ""),
        manufacturer=mirrors.get("spec_manufacturer", ""),
        material=mirrors.get("spec_material", ""),
    )


def decode_properties(text: Optional[str]) -> Dict[str, str]:
    """Recover every key/value pair found in the blob, in order of appearance.

    The scan ignores the wrapper: pairs are found wherever they occur. The
    declared byte lengths are not trusted. Anything that does not match
    yields an empty dict.
    """
    if not text:
        return {}
    out: Dict[str, str] = {}
    for m in _PAIR_RE.finditer(text):
        out[m.group(2)] = m.group(4)
    return out


def split_decoded(decoded: Mapping[str, str]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Split a decoded map into (mirror values, unrecognized keys).

    Mirror values are keyed by mirror attribute and always contain all six
    attributes ("" when absent). Known keys are matched case-insensitively.
    """
    mirrors = {attr: "" for _key, attr in SPEC_KEYS}
    extra: Dict[str, str] = {}
    for key, value in decoded.items():
        attr = _MIRROR_BY_KEY.get(key.lower())
        if attr is None:
            extra[key] = value
        else:
            mirrors[attr] = value
    return mirrors, extra


def count_pairs(text: Optional[str]) -> int:
    if not text:
        return 0
    return len(_PAIR_RE.findall(text))


def declared_count(text: Optional[str]) -> Optional[int]:
    """The `<N>` of the `a:<N>:{` header, or None when the header is absent."""
    if not text:
        return None
    m = _HEADER_RE.match(text)
    return int(m.group(1)) if m else None


def has_wrapper_shape(text: Optional[str]) -> bool:
    return bool(text) and _WRAPPER_RE.match(text) is not None
