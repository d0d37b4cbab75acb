"""Command line interface for converting workbooks to text formats."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from .config import AppConfig, load_config
from .converter import OutputFormat, convert_workbook, list_sheet_names
from .errors import ConversionError
from .reporting import convert_files, default_output_path, write_output

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = object()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xlconvert",
        description="Convert spreadsheet workbooks to Markdown, CSV, JSON or HTML",
    )
    parser.add_argument("inputs", nargs="*", type=Path, help="Workbook files to convert")
    parser.add_argument("--config", type=Path, help="Path to YAML configuration")
    parser.add_argument(
        "--format",
        "-f",
        dest="output_format",
        help="Output format (markdown, csv, json, html)",
    )
    parser.add_argument("--sheet", help="Convert only this sheet (default: whole workbook)")
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--output",
        "-o",
        nargs="?",
        const=DEFAULT_OUTPUT,
        type=Path,
        help="Write the result of a single input to this file (default: converted<ext> next to the input)",
    )
    target.add_argument("--output-dir", type=Path, help="Write one file per input into this directory")
    parser.add_argument("--list-sheets", action="store_true", help="Print sheet names and exit")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING)")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else AppConfig()
        _apply_overrides(config, args)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load configuration: %s", exc)
        return 1

    if not config.inputs:
        parser.print_usage(sys.stderr)
        logger.error("No input workbooks given")
        return 2

    if args.list_sheets:
        return _list_sheets(config)

    fmt = config.conversion.format
    sheet = config.conversion.sheet

    if config.output.directory is not None or len(config.inputs) > 1:
        if config.output.directory is None:
            logger.error("Converting several workbooks requires --output-dir")
            return 2
        try:
            result = convert_files(config.inputs, config.output.directory, sheet, fmt)
        except OSError as exc:
            logger.error("%s", exc)
            return 1
        print(result.summary())
        return 0 if result.failure_count == 0 else 1

    source = config.inputs[0]
    try:
        content = convert_workbook(source, sheet, fmt)
        if config.output.file is not None:
            write_output(content, config.output.file)
        else:
            print(content)
    except (ConversionError, OSError) as exc:
        logger.error("Failed to convert %s: %s", source, exc)
        return 1
    return 0


def _list_sheets(config: AppConfig) -> int:
    exit_code = 0
    for source in config.inputs:
        try:
            names = list_sheet_names(source)
        except ConversionError as exc:
            logger.error("Failed to read sheet names from %s: %s", source, exc)
            exit_code = 1
            continue
        if len(config.inputs) > 1:
            print(f"{source}:")
        for name in names:
            print(name)
    return exit_code


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    if args.inputs:
        config.inputs = [_resolve_override_path(path) for path in args.inputs]

    if args.output_format:
        config.conversion.format = OutputFormat.parse(args.output_format)

    if args.sheet is not None:
        config.conversion.sheet = args.sheet

    if args.output is DEFAULT_OUTPUT:
        if config.inputs:
            config.output.file = default_output_path(config.inputs[0], config.conversion.format)
        config.output.directory = None
    elif args.output:
        config.output.file = _resolve_override_path(args.output)
        config.output.directory = None

    if args.output_dir:
        config.output.directory = _resolve_override_path(args.output_dir)
        config.output.file = None


def _resolve_override_path(path: Path) -> Path:
    path = Path(path).expanduser()
    if path.is_absolute():
        return path
    return (Path.cwd() / path).resolve()


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    raise SystemExit(main())
