"""Conversion entry points: resolve the requested scope and dispatch to an encoder."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from . import encoders
from .workbook import Sheet, UsedRange, Workbook, read_sheet_names, read_workbook, resolve_used_range, workbook_from_frames

logger = logging.getLogger(__name__)

SLOW_CONVERSION_SECONDS = 10.0


class OutputFormat(Enum):
    MARKDOWN = "markdown"
    CSV = "csv"
    JSON = "json"
    HTML = "html"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @classmethod
    def parse(cls, value: Union[str, "OutputFormat"]) -> "OutputFormat":
        """Resolve a format from its name or a common alias, ignoring case."""

        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().lstrip(".")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown output format '{value}' (expected one of: {choices})") from None


_EXTENSIONS: Dict[OutputFormat, str] = {
    OutputFormat.MARKDOWN: ".md",
    OutputFormat.CSV: ".csv",
    OutputFormat.JSON: ".json",
    OutputFormat.HTML: ".html",
}
_ALIASES = {"md": "markdown", "htm": "html"}

SheetEncoder = Callable[[Sheet, Optional[UsedRange]], str]
WorkbookEncoder = Callable[[Iterable[Sheet]], str]

SHEET_ENCODERS: Dict[OutputFormat, SheetEncoder] = {
    OutputFormat.MARKDOWN: encoders.sheet_to_markdown,
    OutputFormat.CSV: encoders.sheet_to_csv,
    OutputFormat.JSON: encoders.sheet_to_json,
    OutputFormat.HTML: encoders.sheet_to_html,
}
WORKBOOK_ENCODERS: Dict[OutputFormat, WorkbookEncoder] = {
    OutputFormat.MARKDOWN: encoders.workbook_to_markdown,
    OutputFormat.CSV: encoders.workbook_to_csv,
    OutputFormat.JSON: encoders.workbook_to_json,
    OutputFormat.HTML: encoders.workbook_to_html,
}


@dataclass
class ConversionRequest:
    """A single conversion: source path, optional sheet and target format."""

    path: Path
    sheet: Optional[str] = None
    output_format: OutputFormat = OutputFormat.MARKDOWN

    def run(self) -> str:
        return convert_workbook(self.path, self.sheet, self.output_format)


def convert_sheets(
    workbook: Workbook,
    sheet: Optional[str] = None,
    output_format: Union[str, OutputFormat] = OutputFormat.MARKDOWN,
) -> str:
    """Convert an already loaded workbook.

    With ``sheet`` set, only that sheet is encoded and a missing name raises
    :class:`~xlconvert.errors.SheetNotFoundError`. Without it every sheet is
    encoded using the whole workbook layout of the chosen format.
    """

    fmt = OutputFormat.parse(output_format)
    if sheet is not None:
        target = workbook.find_sheet(sheet)
        used_range = resolve_used_range(target)
        logger.debug("Converting sheet '%s' (used range %s) to %s", target.name, used_range, fmt.value)
        output = SHEET_ENCODERS[fmt](target, used_range)
    else:
        logger.debug("Converting %d sheet(s) to %s", len(workbook.sheets), fmt.value)
        output = WORKBOOK_ENCODERS[fmt](workbook.sheets)
    return output.rstrip()


def convert_workbook(
    path: Union[str, Path],
    sheet: Optional[str] = None,
    output_format: Union[str, OutputFormat] = OutputFormat.MARKDOWN,
) -> str:
    """Convert the workbook at ``path`` and return the resulting text."""

    fmt = OutputFormat.parse(output_format)
    started = time.perf_counter()
    workbook = read_workbook(path)
    output = convert_sheets(workbook, sheet, fmt)
    elapsed = time.perf_counter() - started
    if elapsed > SLOW_CONVERSION_SECONDS:
        logger.warning("Converting %s took %.1fs (threshold %.0fs)", path, elapsed, SLOW_CONVERSION_SECONDS)
    else:
        logger.debug("Converted %s to %s in %.3fs", path, fmt.value, elapsed)
    return output


def convert_frames(
    frames: Mapping[str, pd.DataFrame],
    sheet: Optional[str] = None,
    output_format: Union[str, OutputFormat] = OutputFormat.MARKDOWN,
) -> str:
    """Convert in-memory data frames, using their column labels as row 1."""

    return convert_sheets(workbook_from_frames(frames), sheet, output_format)


def list_sheet_names(path: Union[str, Path]) -> List[str]:
    return read_sheet_names(path)


__all__ = [
    "ConversionRequest",
    "OutputFormat",
    "SLOW_CONVERSION_SECONDS",
    "convert_frames",
    "convert_sheets",
    "convert_workbook",
    "list_sheet_names",
]
