# -*- coding: utf-8 -*-
"""storage/project_paths.py

Path helpers for session files and export targets, plus the atomic write
used by every writer in this package.

This module does NOT depend on any UI toolkit.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

PROJECT_EXT = ".novaava"
XML_EXT = ".xml"
CSV_EXT = ".csv"

PathLike = Union[str, "os.PathLike[str]"]


def norm_project_path(folder: str, filename: str, ext: str = PROJECT_EXT) -> str:
    """Build a normalized session path.

    - `filename` may come with or without the extension.
    - Defaults to `.novaava` (session file of this app).
    """
    folder = (folder or "").strip()
    filename = (filename or "").strip()
    if not folder or not filename:
        return ""

    ext = ext if ext.startswith(".") else f".{ext}"
    base, fext = os.path.splitext(filename)
    if fext.lower() == ext.lower():
        filename = base
    return os.path.join(folder, f"{filename}{ext}")


def unique_output_path(directory: PathLike, base_name: str, ext: str = XML_EXT, *, now: Optional[datetime] = None) -> Path:
    """`<directory>/<base_name>_<yyyyMMdd_HHmmss><ext>` for export targets."""
    ext = ext if ext.startswith(".") else f".{ext}"
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(directory) / f"{base_name}_{stamp}{ext}"


def write_atomic(path: PathLike, data: bytes) -> Path:
    """Write to a temp file beside `path`, then replace it in one step.

    The target is never left half-written; OSError propagates to the caller.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, target)  # atomic on same FS
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
    return target
