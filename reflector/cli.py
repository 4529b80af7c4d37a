"""Command-line entry point: ``reflector FILE [--ir-only] [--json] ...``."""

from __future__ import annotations

import argparse
import logging
import sys

from .api import dump_ir, transform_source
from .config import TransformConfig
from . import constants


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rewrite reflectable TypeScript functions into IR construction code"
    )
    parser.add_argument("file", help="TypeScript source file to transform")
    parser.add_argument("--ir-only", action="store_true",
                        help="Only print the IR of each lowered construct")
    parser.add_argument("--json", action="store_true",
                        help="Print IR as JSON (implies --ir-only)")
    parser.add_argument("--exclude", action="append", default=[], metavar="GLOB",
                        help="Leave files matching GLOB untouched (repeatable)")
    parser.add_argument("--module", "-m", default=constants.DEFAULT_RUNTIME_MODULE,
                        help="Module the IR classes are imported from "
                             f"(default: {constants.DEFAULT_RUNTIME_MODULE})")
    parser.add_argument("--language", "-l", default="",
                        choices=["", *constants.SUPPORTED_LANGUAGES],
                        help="Grammar to parse with (default: from file extension)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log matched constructs and lowering failures")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with open(args.file, encoding="utf-8") as f:
        source = f.read()

    config = TransformConfig(
        exclude=tuple(args.exclude),
        module=args.module,
        language=args.language,
    )

    if args.ir_only or args.json:
        print(dump_ir(source, args.file, config, as_json=args.json))
        return 0

    result = transform_source(source, args.file, config)
    sys.stdout.write(result.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
