from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence
import sys

import pytest
from openpyxl import Workbook as OpenpyxlWorkbook

# Ensure project root is on sys.path for absolute imports
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))


def write_workbook(path: Path, sheets: Dict[str, List[Sequence[Any]]]) -> Path:
    """Create an ``.xlsx`` file with one sheet per mapping entry."""

    book = OpenpyxlWorkbook()
    book.remove(book.active)
    for name, rows in sheets.items():
        worksheet = book.create_sheet(title=name)
        for row in rows:
            worksheet.append(list(row))
    book.save(path)
    return path


@pytest.fixture
def people_rows() -> List[Sequence[Any]]:
    return [
        ["Name", "", "Age", "Joined", "Active"],
        ["Alice", "x", 30, datetime(2024, 1, 2), True],
        ["Bob|Builder", 'He said, "hi"', 41.5, None, False],
    ]


@pytest.fixture
def sample_workbook(tmp_path: Path, people_rows) -> Path:
    return write_workbook(
        tmp_path / "sample.xlsx",
        {
            "People": people_rows,
            "Empty": [],
            "Notes": [["<b>&\"'"]],
        },
    )


@pytest.fixture
def workbook_factory():
    return write_workbook
