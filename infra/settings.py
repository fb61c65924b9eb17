# -*- coding: utf-8 -*-
"""
User settings stored in a per-user writable folder (no admin).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from infra.paths import user_data_dir

SETTINGS_FILENAME = "novaava_settings.json"
MAX_RECENT_FILES = 10

log = logging.getLogger(__name__)


def settings_file() -> Path:
    return user_data_dir() / SETTINGS_FILENAME


def defaults() -> Dict[str, Any]:
    return {
        "undo_depth": 50,
        "default_export_mode": "ava",
        "validate_before_export": True,
        "compare_with_original": True,
        "recent_files": [],
        "log_filename": "novaava.log",
    }


def load_settings() -> Dict[str, Any]:
    base = defaults()
    path = settings_file()
    if not path.exists():
        save_settings(base.copy())
        return base.copy()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        merged = base.copy()
        if isinstance(data, dict):
            merged.update({k: v for k, v in data.items() if v is not None})
        return merged
    except (OSError, ValueError):
        # Recover from corruption gracefully
        log.warning("Settings file %s unreadable; resetting to defaults", path, exc_info=True)
        save_settings(base.copy())
        return base.copy()


def save_settings(data: Dict[str, Any]) -> None:
    path = settings_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def add_recent_file(path: str) -> Dict[str, Any]:
    """Move `path` to the front of the recent-files list (deduplicated, capped)."""
    s = load_settings()
    p = str(Path(path))
    recent = [r for r in (s.get("recent_files") or []) if r != p]
    recent.insert(0, p)
    s["recent_files"] = recent[:MAX_RECENT_FILES]
    save_settings(s)
    return s
