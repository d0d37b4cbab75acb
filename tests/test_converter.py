import io
import json
import logging

import numpy as np
import pandas as pd
import pytest

from xlconvert import converter
from xlconvert.converter import (
    ConversionRequest,
    OutputFormat,
    convert_frames,
    convert_workbook,
    list_sheet_names,
)
from xlconvert.errors import SheetNotFoundError, WorkbookNotFoundError


def test_output_format_parse_and_extensions():
    assert OutputFormat.parse("Markdown") is OutputFormat.MARKDOWN
    assert OutputFormat.parse("md") is OutputFormat.MARKDOWN
    assert OutputFormat.parse(".HTM") is OutputFormat.HTML
    assert OutputFormat.parse(OutputFormat.CSV) is OutputFormat.CSV
    assert [fmt.extension for fmt in OutputFormat] == [".md", ".csv", ".json", ".html"]
    with pytest.raises(ValueError, match="Unknown output format 'xml'"):
        OutputFormat.parse("xml")


def test_single_sheet_markdown(sample_workbook):
    output = convert_workbook(sample_workbook, "People", OutputFormat.MARKDOWN)

    lines = output.splitlines()
    assert len(lines) == 4
    assert lines[0] == "| Name |  | Age | Joined | Active |"
    assert lines[1] == "| --- | --- | --- | --- | --- |"
    assert lines[2] == "| Alice | x | 30 | 2024-01-02 00:00:00 | TRUE |"
    assert lines[3].startswith("| Bob\\|Builder |")
    assert output == output.rstrip()


def test_single_sheet_csv_reads_back_with_pandas(sample_workbook):
    output = convert_workbook(sample_workbook, "People", "csv")

    frame = pd.read_csv(io.StringIO(output), header=None, dtype=str, keep_default_na=False)
    assert frame.shape == (3, 5)
    assert frame.iloc[2, 1] == 'He said, "hi"'
    assert '"He said, ""hi"""' in output.splitlines()[2]


def test_single_sheet_json(sample_workbook):
    records = json.loads(convert_workbook(sample_workbook, "People", "json"))

    assert records == [
        {"Name": "Alice", "Column_2": "x", "Age": 30, "Joined": "2024-01-02T00:00:00", "Active": True},
        {"Name": "Bob|Builder", "Column_2": 'He said, "hi"', "Age": 41.5, "Joined": "", "Active": False},
    ]


def test_single_sheet_html(sample_workbook):
    output = convert_workbook(sample_workbook, "Notes", "html")

    assert "<title>Notes</title>" in output
    assert "<th>&lt;b&gt;&amp;&quot;&#39;</th>" in output
    assert output.endswith("</html>")


@pytest.mark.parametrize(
    "fmt, expected",
    [
        ("markdown", "(empty sheet)"),
        ("csv", ""),
        ("json", "[]"),
    ],
)
def test_empty_sheet_outputs(sample_workbook, fmt, expected):
    assert convert_workbook(sample_workbook, "Empty", fmt) == expected


def test_missing_sheet_is_reported_by_name(sample_workbook):
    with pytest.raises(SheetNotFoundError, match="Sheet99") as excinfo:
        convert_workbook(sample_workbook, "Sheet99", "markdown")
    assert excinfo.value.sheet == "Sheet99"
    assert isinstance(excinfo.value, ValueError)


def test_missing_workbook(tmp_path):
    with pytest.raises(WorkbookNotFoundError):
        convert_workbook(tmp_path / "nope.xlsx")


def test_whole_workbook_markdown(sample_workbook):
    output = convert_workbook(sample_workbook)

    assert output.startswith("# People\n\n| Name |")
    assert "# Empty\n\n(empty sheet)\n\n# Notes" in output
    assert output.endswith("| --- |")


def test_whole_workbook_csv_concatenates_sheets(sample_workbook):
    output = convert_workbook(sample_workbook, output_format="csv")

    assert output.startswith("Name,,Age,Joined,Active\n")
    assert output.endswith("\"<b>&\"\"'\"")


def test_whole_workbook_json_matches_single_sheet_output(sample_workbook):
    payload = json.loads(convert_workbook(sample_workbook, output_format="json"))

    assert list(payload) == list_sheet_names(sample_workbook)
    for name, records in payload.items():
        assert records == json.loads(convert_workbook(sample_workbook, name, "json"))


def test_whole_workbook_html(sample_workbook):
    output = convert_workbook(sample_workbook, output_format=OutputFormat.HTML)

    assert "<title>Excel Workbook</title>" in output
    assert [line.strip() for line in output.splitlines() if "<h2>" in line] == [
        "<h2>People</h2>",
        "<h2>Empty</h2>",
        "<h2>Notes</h2>",
    ]
    assert output.count("<p>(empty sheet)</p>") == 1


def test_conversion_request_runs(sample_workbook):
    request = ConversionRequest(path=sample_workbook, sheet="Notes", output_format=OutputFormat.CSV)
    assert request.run() == "\"<b>&\"\"'\""


def test_convert_frames():
    frames = {
        "Scores": pd.DataFrame({"Name": ["Alice", "Bob"], "Score": [np.int64(3), None]}),
        "Blank": pd.DataFrame(),
    }

    assert json.loads(convert_frames(frames, "Scores", "json")) == [
        {"Name": "Alice", "Score": 3},
        {"Name": "Bob", "Score": ""},
    ]
    assert json.loads(convert_frames(frames, output_format="json"))["Blank"] == []


def test_slow_conversion_logs_warning(sample_workbook, monkeypatch, caplog):
    monkeypatch.setattr(converter, "SLOW_CONVERSION_SECONDS", -1.0)

    with caplog.at_level(logging.WARNING, logger="xlconvert.converter"):
        convert_workbook(sample_workbook, "Notes", "csv")

    assert any("took" in record.getMessage() for record in caplog.records)
