# -*- coding: utf-8 -*-
"""NovaAva version.

Source checkouts read ``version.json`` at the repository root; installed
copies fall back to the distribution metadata.
"""

from __future__ import annotations

import json
from importlib import metadata
from pathlib import Path

DIST_NAME = "novaava"
UNKNOWN_VERSION = "0.0.0"

VERSION_FILE = Path(__file__).resolve().parents[1] / "version.json"


def _from_version_file() -> str:
    try:
        data = json.loads(VERSION_FILE.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return ""
    if not isinstance(data, dict):
        return ""
    return str(data.get("semver") or data.get("version") or "")


def _from_metadata() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return ""


def get_version() -> str:
    return _from_version_file() or _from_metadata() or UNKNOWN_VERSION


__version__ = get_version()
