# -*- coding: utf-8 -*-
"""Timing of the document pipeline (import, validation, export).

Large estimates carry tens of thousands of calculations; this shows where
the time goes without a profiler.

Switch on with the env var ``NOVAAVA_PERF=1`` (read on every span, so a
running session or a test can toggle it). Timings go to logger
``novaava.perf``; see infra.logging_setup.init_perf_logging for a file.

Constraints
-----------
- Never raises into the operation being timed.
- Standard library only.
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Iterator, Optional

PERF_LOGGER = "novaava.perf"
PERF_ENV = "NOVAAVA_PERF"

_TRUE = ("1", "true", "yes", "on")

log = logging.getLogger(PERF_LOGGER)


def is_enabled() -> bool:
    return os.environ.get(PERF_ENV, "").strip().lower() in _TRUE


@contextmanager
def span(label: str, *, items: Optional[int] = None, threshold_ms: float = 50.0) -> Iterator[None]:
    """Log the block duration when at least `threshold_ms`.

    `items` (elements handled) adds a per-item figure to the line.
    """
    if not is_enabled():
        yield
        return
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt_ms = (time.perf_counter() - t0) * 1000.0
        if dt_ms >= float(threshold_ms or 0.0):
            if items:
                log.info("PERF %s %.1fms (%d items, %.3fms/item)", label, dt_ms, items, dt_ms / items)
            else:
                log.info("PERF %s %.1fms", label, dt_ms)
