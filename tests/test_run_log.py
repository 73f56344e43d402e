"""Tests for the categorised run logs."""

import csv
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sheet_to_docx.model import AlreadyExists, Created, Failed, RunSummary
from sheet_to_docx.run_log import RunLog, format_properties, summary_lines


def _read(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_files_have_fixed_headers(tmp_path):
    with RunLog(str(tmp_path / "logs"), timestamp="20240301_093000") as log:
        paths = dict(log.paths)
    assert os.path.basename(paths["created"]) == "created_20240301_093000.csv"
    assert _read(paths["created"]) == [["Application", "Path", "Properties"]]
    assert _read(paths["existing"]) == [["Application", "Path", "StatusUpdated"]]
    assert _read(paths["errors"]) == [["Application", "Error"]]


def test_each_outcome_goes_to_its_category(tmp_path):
    with RunLog(str(tmp_path), timestamp="ts") as log:
        log.record(Created("Orders", "out/Orders.docx",
                           (("System Name", "Orders"), ("User Count", 120))))
        log.record(AlreadyExists("Billing", "out/Billing.docx", True))
        log.record(Failed("Payroll", "disk full, retry later"))
        paths = dict(log.paths)

    assert _read(paths["created"])[1] == [
        "Orders", "out/Orders.docx", "System Name=Orders; User Count=120"]
    assert _read(paths["existing"])[1] == ["Billing", "out/Billing.docx", "Yes"]
    assert _read(paths["errors"])[1] == ["Payroll", "disk full, retry later"]


def test_reopening_appends_without_second_header(tmp_path):
    with RunLog(str(tmp_path), timestamp="ts") as log:
        log.record(Failed("A", "x"))
    with RunLog(str(tmp_path), timestamp="ts") as log:
        log.record(Failed("B", "y"))
        errors = log.paths["errors"]
    assert _read(errors) == [["Application", "Error"], ["A", "x"], ["B", "y"]]


def test_unknown_outcome_rejected(tmp_path):
    with RunLog(str(tmp_path), timestamp="ts") as log:
        with pytest.raises(TypeError):
            log.record("not an outcome")


def test_format_properties():
    assert format_properties(()) == ""
    assert format_properties((("A", 1), ("B", "x"))) == "A=1; B=x"


def test_summary_lines_include_total():
    lines = summary_lines(RunSummary(created=2, existing=3, failed=1))
    assert lines[0].endswith("2")
    assert lines[1].endswith("3")
    assert lines[2].endswith("1")
    assert lines[3].startswith("Total rows processed:")
    assert lines[3].endswith("6")
