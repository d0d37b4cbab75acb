"""Per-format text encoders for sheets and workbooks.

Every encoder is a pure function of a :class:`~xlconvert.workbook.Sheet` and
its used range. The used range is resolved by the caller so that the whole
workbook encoders and the single sheet encoders share one code path.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from .workbook import Sheet, UsedRange, resolve_used_range

EMPTY_SHEET_TEXT = "(empty sheet)"
WORKBOOK_TITLE = "Excel Workbook"
LINE_END = "\n"

_HTML_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)

_SHEET_STYLE = (
    "        table { border-collapse: collapse; width: 100%; }",
    "        th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }",
    "        th { background-color: #f2f2f2; }",
)
_WORKBOOK_STYLE = (
    "        table { border-collapse: collapse; width: 100%; margin-bottom: 20px; }",
    "        th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }",
    "        th { background-color: #f2f2f2; }",
    "        h2 { color: #333; }",
)


# ---------------------------------------------------------------- markdown


def escape_markdown(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ").replace("\r", "")


def sheet_to_markdown(sheet: Sheet, used_range: Optional[UsedRange]) -> str:
    """Render a pipe table. Row 1 is always the header row."""

    if used_range is None:
        return EMPTY_SHEET_TEXT

    lines: List[str] = []
    for row_number, row in enumerate(sheet.iter_rows(used_range), start=1):
        lines.append("|" + "".join(f" {escape_markdown(cell.display)} |" for cell in row))
        if row_number == 1:
            lines.append("|" + " --- |" * used_range.last_col)
    return LINE_END.join(lines) + LINE_END


def workbook_to_markdown(sheets: Iterable[Sheet]) -> str:
    sections: List[str] = []
    for sheet in sheets:
        body = sheet_to_markdown(sheet, resolve_used_range(sheet))
        sections.append(f"# {sheet.name}{LINE_END}{LINE_END}{body}{LINE_END}{LINE_END}")
    return "".join(sections).strip()


# --------------------------------------------------------------------- csv


def escape_csv(text: str) -> str:
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def sheet_to_csv(sheet: Sheet, used_range: Optional[UsedRange]) -> str:
    """Transcribe the used range literally. An empty sheet yields ``""``."""

    if used_range is None:
        return ""
    lines = [",".join(escape_csv(cell.display) for cell in row) for row in sheet.iter_rows(used_range)]
    return LINE_END.join(lines) + LINE_END


def workbook_to_csv(sheets: Iterable[Sheet]) -> str:
    sections = [sheet_to_csv(sheet, resolve_used_range(sheet)) + LINE_END + LINE_END for sheet in sheets]
    return "".join(sections).strip()


# -------------------------------------------------------------------- json


def header_names(sheet: Sheet, used_range: UsedRange) -> List[str]:
    """Field names from row 1; blank headers become ``Column_<n>``."""

    names: List[str] = []
    for col in range(1, used_range.last_col + 1):
        header = sheet.cell(1, col).display
        names.append(header if header else f"Column_{col}")
    return names


def sheet_records(sheet: Sheet, used_range: Optional[UsedRange]) -> List[Dict[str, Any]]:
    """Return one mapping per data row.

    Header names are not deduplicated: when two columns share a name the
    right-most value is kept.
    """

    if used_range is None or used_range.last_row < 2:
        return []

    headers = header_names(sheet, used_range)
    records: List[Dict[str, Any]] = []
    for row in range(2, used_range.last_row + 1):
        record: Dict[str, Any] = {}
        for col, header in enumerate(headers, start=1):
            record[header] = sheet.cell(row, col).json_value()
        records.append(record)
    return records


def _dump_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def sheet_to_json(sheet: Sheet, used_range: Optional[UsedRange]) -> str:
    return _dump_json(sheet_records(sheet, used_range))


def workbook_to_json(sheets: Iterable[Sheet]) -> str:
    payload: Dict[str, Any] = {}
    for sheet in sheets:
        payload[sheet.name] = json.loads(sheet_to_json(sheet, resolve_used_range(sheet)))
    return _dump_json(payload)


# -------------------------------------------------------------------- html


def escape_html(text: str) -> str:
    return text.translate(_HTML_ESCAPES)


def _html_head(title: str, style: Iterable[str]) -> List[str]:
    return [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '    <meta charset="UTF-8">',
        f"    <title>{escape_html(title)}</title>",
        "    <style>",
        *style,
        "    </style>",
        "</head>",
        "<body>",
    ]


def _html_table(sheet: Sheet, used_range: Optional[UsedRange]) -> List[str]:
    if used_range is None:
        return [f"    <p>{EMPTY_SHEET_TEXT}</p>"]

    lines = ["    <table>"]
    for row_number, row in enumerate(sheet.iter_rows(used_range), start=1):
        tag = "th" if row_number == 1 else "td"
        lines.append("        <tr>")
        lines.extend(f"            <{tag}>{escape_html(cell.display)}</{tag}>" for cell in row)
        lines.append("        </tr>")
    lines.append("    </table>")
    return lines


def sheet_to_html(sheet: Sheet, used_range: Optional[UsedRange]) -> str:
    lines = _html_head(sheet.name, _SHEET_STYLE)
    lines.append(f"    <h1>{escape_html(sheet.name)}</h1>")
    lines.extend(_html_table(sheet, used_range))
    lines.extend(["</body>", "</html>"])
    return LINE_END.join(lines) + LINE_END


def workbook_to_html(sheets: Iterable[Sheet]) -> str:
    lines = _html_head(WORKBOOK_TITLE, _WORKBOOK_STYLE)
    lines.append(f"    <h1>{WORKBOOK_TITLE}</h1>")
    for sheet in sheets:
        lines.append(f"    <h2>{escape_html(sheet.name)}</h2>")
        lines.extend(_html_table(sheet, resolve_used_range(sheet)))
    lines.extend(["</body>", "</html>"])
    return LINE_END.join(lines) + LINE_END


__all__ = [
    "EMPTY_SHEET_TEXT",
    "escape_csv",
    "escape_html",
    "escape_markdown",
    "header_names",
    "sheet_records",
    "sheet_to_csv",
    "sheet_to_html",
    "sheet_to_json",
    "sheet_to_markdown",
    "workbook_to_csv",
    "workbook_to_html",
    "workbook_to_json",
    "workbook_to_markdown",
]
