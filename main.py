# -*- coding: utf-8 -*-
"""NovaAva command-line entrypoint.

Intentionally minimal:
- logging setup (user space)
- one subcommand per document operation
- exit code 1 when the document cannot be read or validation blocks
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    from novaava.version import __version__
    from domain.wbs import WbsStrategy
    from storage.xml_exporter import ExportMode

    parser = argparse.ArgumentParser(prog="novaava", description="AVA cost-estimate document tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("validate", help="validate an interchange document and print the report")
    p.add_argument("file")

    p = sub.add_parser("convert", help="re-export an interchange document")
    p.add_argument("file")
    p.add_argument("output")
    p.add_argument("--mode", choices=[m.value for m in ExportMode], default=None)
    p.add_argument("--force", action="store_true", help="export even when validation reports errors")

    p = sub.add_parser("wbs", help="print the work-breakdown tree of a document")
    p.add_argument("file")
    p.add_argument("--strategy", choices=[s.value for s in WbsStrategy], default=WbsStrategy.SORTED_ROOTS.value)

    p = sub.add_parser("template", help="write a CSV template")
    p.add_argument("output")
    p.add_argument("--kind", choices=["data", "ifc"], default="data")
    return parser


def _cmd_validate(pm, args) -> int:
    pm.import_document(args.file)
    result = pm.validate()
    print(pm.validation_report(result))
    return 1 if result.has_errors else 0


def _cmd_convert(pm, args) -> int:
    from core.errors import ExportBlockedError

    pm.import_document(args.file)
    try:
        result = pm.export_document(args.output, mode=args.mode, force=args.force)
    except ExportBlockedError as e:
        print(pm.validation_report(e.result))
        print(f"{e} (use --force to export anyway)", file=sys.stderr)
        return 1
    if result is not None and (result.has_errors or result.has_warnings):
        print(pm.validation_report(result))
    print(f"Wrote {args.output}")
    return 0


def _cmd_wbs(pm, args) -> int:
    pm.import_document(args.file)
    for item in pm.flatten(args.strategy):
        print(item.indented_name)
    return 0


def _cmd_template(pm, args) -> int:
    from storage import csv_templates

    if args.kind == "ifc":
        path = csv_templates.create_ifc_mapping_template(args.output)
    else:
        path = csv_templates.create_data_entry_template(args.output)
    print(f"Wrote {path}")
    return 0


_COMMANDS = {
    "validate": _cmd_validate,
    "convert": _cmd_convert,
    "wbs": _cmd_wbs,
    "template": _cmd_template,
}


def main(argv: Optional[List[str]] = None) -> int:
    from core.errors import NovaAvaError, StructuralParseError
    from infra.logging_setup import init_logging
    from infra.settings import load_settings
    from services.project_manager import ProjectManager

    args = _build_parser().parse_args(argv)
    settings = load_settings()
    init_logging(settings.get("log_filename") or "novaava.log", logging.DEBUG if args.verbose else logging.INFO)

    pm = ProjectManager(settings=settings)
    try:
        return _COMMANDS[args.command](pm, args)
    except StructuralParseError as e:
        print(str(e), file=sys.stderr)
        return 1
    except NovaAvaError as e:
        log.error("%s failed: %s", args.command, e)
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
