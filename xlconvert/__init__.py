"""xlconvert package.

Converts spreadsheet workbooks into Markdown tables, CSV, JSON records or
self-contained HTML documents, either for one named sheet or for the whole
workbook. The conversion core is a set of pure functions; the command line
interface and batch helpers build on top of it.
"""

from .config import AppConfig, ConversionConfig, OutputConfig, load_config
from .converter import (
    ConversionRequest,
    OutputFormat,
    convert_frames,
    convert_sheets,
    convert_workbook,
    list_sheet_names,
)
from .errors import (
    ConversionError,
    SheetNotFoundError,
    WorkbookNotFoundError,
    WorkbookParseError,
)
from .reporting import BatchResult, convert_files, default_output_path, write_output
from .workbook import (
    Cell,
    CellType,
    Sheet,
    UsedRange,
    Workbook,
    classify_value,
    read_workbook,
    resolve_used_range,
)

__all__ = [
    "AppConfig",
    "BatchResult",
    "Cell",
    "CellType",
    "ConversionConfig",
    "ConversionError",
    "ConversionRequest",
    "OutputConfig",
    "OutputFormat",
    "Sheet",
    "SheetNotFoundError",
    "UsedRange",
    "Workbook",
    "WorkbookNotFoundError",
    "WorkbookParseError",
    "classify_value",
    "convert_files",
    "convert_frames",
    "convert_sheets",
    "convert_workbook",
    "default_output_path",
    "list_sheet_names",
    "load_config",
    "read_workbook",
    "resolve_used_range",
    "write_output",
]
