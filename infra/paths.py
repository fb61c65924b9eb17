# -*- coding: utf-8 -*-
"""
Centralized path resolver for per-user writable data (settings, logs,
CSV templates). No admin rights required.
"""
from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "NovaAva"


def user_data_dir() -> Path:
    """
    Per-user writable directory. NOVAAVA_HOME wins (tests, portable runs);
    otherwise prefer LOCALAPPDATA (non-roaming).
    """
    override = os.getenv("NOVAAVA_HOME")
    if override:
        p = Path(override).expanduser()
    else:
        base = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or str(Path.home())
        p = Path(base) / APP_NAME
    p.mkdir(parents=True, exist_ok=True)
    return p


def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def logs_dir() -> Path:
    return ensure_dir(user_data_dir() / "logs")


def templates_dir() -> Path:
    return ensure_dir(user_data_dir() / "templates")
