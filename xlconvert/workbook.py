"""Workbook loading, cell classification and used-range resolution."""

from __future__ import annotations

import csv
import logging
import math
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import openpyxl
import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .errors import SheetNotFoundError, WorkbookNotFoundError, WorkbookParseError

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xltx", ".xltm"}
DELIMITED_SUFFIXES: Dict[str, str] = {".csv": ",", ".tsv": "\t", ".txt": ","}
DELIMITED_SHEET_NAME = "Sheet1"

JSON_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"
DISPLAY_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class CellType(Enum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    STRING = "string"
    EMPTY = "empty"


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if pd.api.types.is_scalar(value):
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False
    return False


def classify_value(value: Any) -> CellType:
    """Reduce a raw cell value to a :class:`CellType`.

    Booleans are checked before numbers because ``bool`` is an ``int``
    subclass. Time-of-day and duration values are not date-times and fall
    through to ``STRING``.
    """

    if _is_missing(value):
        return CellType.EMPTY
    if isinstance(value, (bool, np.bool_)):
        return CellType.BOOLEAN
    if isinstance(value, (int, float, np.integer, np.floating)):
        if math.isfinite(float(value)):
            return CellType.NUMBER
        return CellType.STRING
    if isinstance(value, (datetime, date)):
        return CellType.DATETIME
    return CellType.STRING


def _format_number(value: Any) -> str:
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    number = float(value)
    if number.is_integer() and abs(number) < 1e16:
        return str(int(number))
    return repr(number)


def _format_datetime(value: date, pattern: str) -> str:
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return value.strftime(pattern)


def display_string(value: Any, cell_type: Optional[CellType] = None) -> str:
    """Return the human readable text used by every output format."""

    kind = cell_type or classify_value(value)
    if kind is CellType.EMPTY:
        return ""
    if kind is CellType.BOOLEAN:
        return "TRUE" if value else "FALSE"
    if kind is CellType.NUMBER:
        return _format_number(value)
    if kind is CellType.DATETIME:
        if isinstance(value, datetime):
            return _format_datetime(value, DISPLAY_DATETIME_FORMAT)
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class Cell:
    """A classified cell. ``display`` is computed once at read time."""

    value: Any
    cell_type: CellType
    display: str

    @classmethod
    def from_value(cls, value: Any) -> "Cell":
        kind = classify_value(value)
        if kind is CellType.EMPTY:
            return EMPTY_CELL
        return cls(value=value, cell_type=kind, display=display_string(value, kind))

    def json_value(self) -> Any:
        """Return the JSON-ready representation of the cell."""

        if self.cell_type is CellType.NUMBER:
            if isinstance(self.value, (int, np.integer)):
                return int(self.value)
            number = float(self.value)
            if number.is_integer() and abs(number) < 1e16:
                return int(number)
            return number
        if self.cell_type is CellType.BOOLEAN:
            return bool(self.value)
        if self.cell_type is CellType.DATETIME:
            return _format_datetime(self.value, JSON_DATETIME_FORMAT)
        return self.display


EMPTY_CELL = Cell(value=None, cell_type=CellType.EMPTY, display="")


class UsedRange(NamedTuple):
    """Rectangle from (1, 1) to (last_row, last_col), both 1-based."""

    last_row: int
    last_col: int


@dataclass(frozen=True)
class Sheet:
    """Sparse, read-only grid of non-empty cells addressed by (row, col)."""

    name: str
    cells: Mapping[Tuple[int, int], Cell] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", MappingProxyType(dict(self.cells)))

    @classmethod
    def from_rows(cls, name: str, rows: Iterable[Sequence[Any]]) -> "Sheet":
        """Build a sheet from a 2-D iterable of raw values, starting at A1."""

        cells: Dict[Tuple[int, int], Cell] = {}
        for row_idx, row in enumerate(rows, start=1):
            for col_idx, value in enumerate(row, start=1):
                cell = Cell.from_value(value)
                if cell.cell_type is not CellType.EMPTY:
                    cells[(row_idx, col_idx)] = cell
        return cls(name=name, cells=cells)

    def cell(self, row: int, col: int) -> Cell:
        return self.cells.get((row, col), EMPTY_CELL)

    def iter_rows(self, used_range: UsedRange) -> Iterator[List[Cell]]:
        """Yield rows 1..last_row, each padded to last_col cells."""

        for row in range(1, used_range.last_row + 1):
            yield [self.cell(row, col) for col in range(1, used_range.last_col + 1)]


def resolve_used_range(sheet: Sheet) -> Optional[UsedRange]:
    """Return the bounding box of the non-empty cells, or ``None`` if there are none."""

    last_row = 0
    last_col = 0
    for (row, col), cell in sheet.cells.items():
        if cell.cell_type is CellType.EMPTY:
            continue
        last_row = max(last_row, row)
        last_col = max(last_col, col)
    if last_row == 0:
        return None
    return UsedRange(last_row=last_row, last_col=last_col)


@dataclass(frozen=True)
class Workbook:
    """Ordered, read-only collection of sheets."""

    source: str
    sheets: Tuple[Sheet, ...] = ()

    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self.sheets]

    def find_sheet(self, name: str) -> Sheet:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        raise SheetNotFoundError(name, self.source)


def _resolve_source(path: str | Path) -> Path:
    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise WorkbookNotFoundError(file_path)
    return file_path


@contextmanager
def _open_excel(file_path: Path, read_only: bool = False) -> Iterator[Any]:
    try:
        book = openpyxl.load_workbook(file_path, read_only=read_only, data_only=True)
    except OSError as exc:
        raise WorkbookNotFoundError(file_path, str(exc)) from exc
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, SyntaxError) as exc:
        raise WorkbookParseError(f"Workbook '{file_path}' is not a valid spreadsheet: {exc}") from exc
    try:
        yield book
    finally:
        book.close()


def _read_worksheet(worksheet: Any) -> Sheet:
    cells: Dict[Tuple[int, int], Cell] = {}
    for row in worksheet.iter_rows():
        for source_cell in row:
            cell = Cell.from_value(source_cell.value)
            if cell.cell_type is CellType.EMPTY:
                continue
            cells[(source_cell.row, source_cell.column)] = cell
    return Sheet(name=worksheet.title, cells=cells)


def _delimited_width(file_path: Path, separator: str) -> int:
    with file_path.open("r", encoding="utf-8", newline="") as handle:
        return max((len(row) for row in csv.reader(handle, delimiter=separator)), default=0)


def _read_delimited(file_path: Path) -> pd.DataFrame:
    """Read delimited text, padding rows that are narrower than the widest one."""

    separator = DELIMITED_SUFFIXES[file_path.suffix.lower()]
    try:
        width = _delimited_width(file_path, separator)
        if width == 0:
            return pd.DataFrame()
        return pd.read_csv(
            file_path,
            header=None,
            names=range(width),
            dtype=object,
            sep=separator,
            encoding="utf-8",
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except PermissionError as exc:
        raise WorkbookNotFoundError(file_path, str(exc)) from exc
    except (pd.errors.ParserError, csv.Error, UnicodeDecodeError) as exc:
        raise WorkbookParseError(f"File '{file_path}' is not valid delimited text: {exc}") from exc


def _check_suffix(file_path: Path) -> str:
    suffix = file_path.suffix.lower()
    if suffix not in EXCEL_SUFFIXES and suffix not in DELIMITED_SUFFIXES:
        raise WorkbookParseError(f"Unsupported file extension '{suffix}' for workbook '{file_path}'")
    return suffix


def read_workbook(path: str | Path) -> Workbook:
    """Load every sheet of ``path`` into an immutable :class:`Workbook`.

    Excel files are read with openpyxl using cached formula values. Delimited
    text files are read with pandas and exposed as a single sheet named
    ``Sheet1``. The openpyxl handle is closed before this function returns,
    whether or not reading succeeded.
    """

    file_path = _resolve_source(path)
    suffix = _check_suffix(file_path)

    if suffix in DELIMITED_SUFFIXES:
        logger.debug("Reading delimited text %s", file_path)
        frame = _read_delimited(file_path)
        sheet = sheet_from_frame(DELIMITED_SHEET_NAME, frame, include_header=False)
        return Workbook(source=str(file_path), sheets=(sheet,))

    logger.debug("Reading workbook %s", file_path)
    with _open_excel(file_path) as book:
        sheets = tuple(_read_worksheet(worksheet) for worksheet in book.worksheets)
    logger.debug("Read %d sheet(s) from %s", len(sheets), file_path)
    return Workbook(source=str(file_path), sheets=sheets)


def read_sheet_names(path: str | Path) -> List[str]:
    """Return the sheet names of ``path`` in storage order."""

    file_path = _resolve_source(path)
    suffix = _check_suffix(file_path)
    if suffix in DELIMITED_SUFFIXES:
        return [DELIMITED_SHEET_NAME]
    with _open_excel(file_path, read_only=True) as book:
        return [worksheet.title for worksheet in book.worksheets]


def sheet_from_frame(name: str, frame: pd.DataFrame, include_header: bool = True) -> Sheet:
    """Convert a data frame into a :class:`Sheet`.

    With ``include_header`` the column labels become row 1. Integer labels
    produced by ``header=None`` reads should be excluded.
    """

    rows: List[Sequence[Any]] = []
    if include_header:
        rows.append(["" if label is None else str(label) for label in frame.columns])
    rows.extend(frame.itertuples(index=False, name=None))
    return Sheet.from_rows(name, rows)


def workbook_from_frames(frames: Mapping[str, pd.DataFrame], source: str = "<frames>") -> Workbook:
    """Build a workbook from named data frames, preserving mapping order."""

    sheets = tuple(sheet_from_frame(name, frame) for name, frame in frames.items())
    return Workbook(source=source, sheets=sheets)


__all__ = [
    "Cell",
    "CellType",
    "EMPTY_CELL",
    "Sheet",
    "UsedRange",
    "Workbook",
    "classify_value",
    "display_string",
    "read_sheet_names",
    "read_workbook",
    "resolve_used_range",
    "sheet_from_frame",
    "workbook_from_frames",
]
