"""Tests for the openpyxl spreadsheet wrapper."""

import os
import sys

import pytest
from openpyxl import Workbook, load_workbook

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from create_sample_inputs import SAMPLE_HEADERS, create_sample_workbook
from sheet_to_docx.errors import SpreadsheetError
from sheet_to_docx.spreadsheet import Spreadsheet


@pytest.fixture
def workbook_path(tmp_path):
    return create_sample_workbook(str(tmp_path / "systems.xlsx"))


def test_headers_and_rows(workbook_path):
    with Spreadsheet.open(workbook_path, "Systems") as sheet:
        assert sheet.headers == SAMPLE_HEADERS
        rows = list(sheet.rows())
    assert [r.number for r in rows] == [2, 3, 4]
    assert rows[0].values["Application / System"] == "Orders"
    assert rows[0].values["Users"] == 120
    assert rows[2].get("Owner") is None


def test_blank_rows_are_skipped(tmp_path):
    path = create_sample_workbook(
        str(tmp_path / "gaps.xlsx"),
        rows=[["Orders", "Finance", "Alice", 1, None],
              [None, None, None, None, None],
              ["Billing", "Finance", "Bob", 2, None]],
    )
    with Spreadsheet.open(path, "Systems") as sheet:
        assert [r.number for r in sheet.rows()] == [2, 4]


def test_status_column_lookup_is_exact(workbook_path):
    with Spreadsheet.open(workbook_path, "Systems") as sheet:
        assert sheet.status_column("Type 1 Analysis Created") == 5
        assert sheet.status_column("type 1 analysis created") is None
        assert sheet.status_column("Type 2 Analysis Created") is None


def test_write_and_save(workbook_path):
    sheet = Spreadsheet.open(workbook_path, "Systems")
    try:
        assert sheet.save() is False
        sheet.write_cell(2, 5, "Yes")
        assert sheet.read_cell(2, 5) == "Yes"
        assert sheet.dirty
        assert sheet.save() is True
    finally:
        sheet.close()
    sheet.close()

    wb = load_workbook(workbook_path)
    assert wb["Systems"]["E2"].value == "Yes"
    wb.close()


def test_missing_file(tmp_path):
    with pytest.raises(SpreadsheetError, match="not found"):
        Spreadsheet.open(str(tmp_path / "missing.xlsx"), "Systems")


def test_missing_sheet_lists_available(workbook_path):
    with pytest.raises(SpreadsheetError, match="available: Systems"):
        Spreadsheet.open(workbook_path, "Apps")


def test_sheet_without_data_rows(tmp_path):
    path = create_sample_workbook(str(tmp_path / "empty.xlsx"), rows=[])
    with pytest.raises(SpreadsheetError, match="no data rows"):
        Spreadsheet.open(path, "Systems")


def test_sheet_without_identity_column(tmp_path):
    path = str(tmp_path / "noid.xlsx")
    wb = Workbook()
    ws = wb.active
    ws.title = "Systems"
    ws.append(["Name", "Division"])
    ws.append(["Orders", "Finance"])
    wb.save(path)
    wb.close()
    with pytest.raises(SpreadsheetError, match="Application / System"):
        Spreadsheet.open(path, "Systems")


def test_formulas_survive_save(tmp_path):
    path = str(tmp_path / "formulas.xlsx")
    wb = Workbook()
    ws = wb.active
    ws.title = "Systems"
    ws.append(["Application / System", "Users", "Double", "Type 1 Analysis Created"])
    ws.append(["Orders", 10, "=B2*2", None])
    wb.save(path)
    wb.close()

    with Spreadsheet.open(path, "Systems") as sheet:
        sheet.write_cell(2, 4, "Yes")
        sheet.save()

    wb = load_workbook(path)
    assert wb["Systems"]["C2"].value == "=B2*2"
    wb.close()
