"""Exception types raised by the conversion pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ConversionError(Exception):
    """Base class for every error raised while converting a workbook."""


class WorkbookNotFoundError(ConversionError, FileNotFoundError):
    """The workbook file does not exist or cannot be opened."""

    def __init__(self, path: Path, reason: Optional[str] = None) -> None:
        message = f"Workbook '{path}' does not exist"
        if reason:
            message = f"Workbook '{path}' cannot be opened: {reason}"
        super().__init__(message)
        self.path = Path(path)


class SheetNotFoundError(ConversionError, ValueError):
    """The requested sheet is not part of the workbook."""

    def __init__(self, sheet: str, source: Optional[str] = None) -> None:
        message = f"Sheet '{sheet}' was not found"
        if source:
            message += f" in workbook '{source}'"
        super().__init__(message)
        self.sheet = sheet
        self.source = source


class WorkbookParseError(ConversionError, ValueError):
    """The file is not a readable spreadsheet."""


__all__ = [
    "ConversionError",
    "SheetNotFoundError",
    "WorkbookNotFoundError",
    "WorkbookParseError",
]
