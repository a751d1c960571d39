from __future__ import annotations

import argparse
import json
import sys
from dataclasses import fields
from pathlib import Path
from typing import Sequence

import officeparser
from officeparser.config import OPTION_ALIASES, OfficeParserConfig
from officeparser.exceptions import ExtensionUnsupportedError
from officeparser.extractors.serialization import serialize_ast

# options that cannot be given as a plain string on the command line
_NON_CLI_OPTIONS = {"zip_bomb_limits"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="officeparser",
        usage="officeparser [--option=value]... <filePath>",
        description="Parse an office file and print its text to stdout (or the document tree with --json).",
        epilog=(
            "Options: --ignoreNotes, --newlineDelimiter, --putNotesAtLast, "
            "--outputErrorToConsole, --extractAttachments, --ocr, --ocrLanguage, "
            "--includeRawContent (snake_case names work too)."
        ),
        allow_abbrev=False,
    )
    parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        help="Path to the file to parse.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the document tree as JSON instead of plain text.",
    )
    return parser


def _coerce(value: str) -> bool | str:
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def _parse_options(arguments: list[str]) -> tuple[dict, list[str]]:
    """Split ``--name=value`` arguments into config options and unknown arguments."""
    known = {item.name for item in fields(OfficeParserConfig)} - _NON_CLI_OPTIONS
    options: dict = {}
    unknown: list[str] = []
    for argument in arguments:
        if not argument.startswith("--"):
            unknown.append(argument)
            continue
        name, separator, value = argument[2:].partition("=")
        name = OPTION_ALIASES.get(name, name)
        if name not in known:
            unknown.append(argument)
            continue
        options[name] = _coerce(value) if separator else True
    return options, unknown


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args, extra = parser.parse_known_args(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        return code

    options, unknown = _parse_options(extra)
    if unknown:
        unknown_str = " ".join(unknown)
        print(
            f"officeparser: warning: unsupported arguments: {unknown_str}",
            file=sys.stderr,
        )
        return 1

    if args.path is None:
        parser.print_usage(sys.stderr)
        return 1

    try:
        ast = officeparser.parse_office(args.path, **options)
        if args.json:
            json.dump(serialize_ast(ast), sys.stdout)
        else:
            sys.stdout.write(ast.to_text())
        sys.stdout.write("\n")
        return 0
    except ExtensionUnsupportedError as exc:
        parser.print_usage(sys.stderr)
        print(f"officeparser: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        print(f"officeparser: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
