"""NovaAva cost-estimate document engine.

This lightweight package provides a stable module entrypoint (python -m novaava)
while keeping the top-level packages (core/, storage/, services/, etc.)
as they are.
"""

from novaava.version import __version__  # single source of truth

__all__ = ["__version__"]
