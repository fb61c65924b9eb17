"""Architecture boundary checks.

Runs a lightweight static import scan to prevent layer inversions:
the document core (core/, domain/) never reaches up into persistence,
orchestration or the app shell, and infra/ stays self-contained.

Usage:
    python tools/check_architecture.py

Exit code:
    0 = OK
    1 = violations found
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

_UPPER = {"storage", "services", "app", "data_model", "main", "novaava"}

LAYER_RULES = {
    "core": {"forbidden": _UPPER},
    "domain": {"forbidden": _UPPER},
    "infra": {"forbidden": _UPPER | {"core", "domain"}},
    "storage": {"forbidden": {"services", "app", "data_model", "main", "novaava"}},
    "services": {"forbidden": {"main", "novaava"}},
}

SKIP_DIRS = {"__pycache__", "tests", "tools", ".git", ".venv", "build"}


def python_files(root: Path = ROOT) -> list[Path]:
    return [p for p in root.rglob("*.py") if not (SKIP_DIRS & set(p.relative_to(root).parts))]


def top_package(modname: str) -> str | None:
    if not modname:
        return None
    return modname.split(".")[0]


def file_layer(path: Path, root: Path = ROOT) -> str | None:
    # layer is the first directory under root (core/storage/...)
    try:
        rel = path.relative_to(root)
    except ValueError:
        return None
    if len(rel.parts) < 2:
        return None
    return rel.parts[0]


def scan_file(path: Path) -> list[tuple[str, str]]:
    """Return list of (imported_top_pkg, detail)"""
    try:
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except (SyntaxError, UnicodeDecodeError):
        # Ignore parse failures (should not happen in committed code)
        return []

    imports: list[tuple[str, str]] = []

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                pkg = top_package(alias.name)
                if pkg:
                    imports.append((pkg, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module and not node.level:
                pkg = top_package(node.module)
                if pkg:
                    imports.append((pkg, node.module))

    return imports


def find_violations(root: Path = ROOT) -> list[str]:
    violations: list[str] = []
    for f in python_files(root):
        layer = file_layer(f, root)
        if layer not in LAYER_RULES:
            continue
        forbidden = LAYER_RULES[layer]["forbidden"]
        for pkg, detail in scan_file(f):
            if pkg in forbidden:
                violations.append(f"{f.relative_to(root)} imports forbidden '{detail}' (layer={layer})")
    return violations


def main() -> int:
    violations = find_violations()

    if violations:
        print("Architecture violations found:\n")
        for v in violations:
            print(" -", v)
        print("\nFix: move logic to lower layers or pass the collaborator in from the service layer.")
        return 1

    print("OK: no architecture boundary violations.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
