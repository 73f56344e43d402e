"""
Spreadsheet Reader/Writer
=========================
Thin openpyxl wrapper that exposes worksheet rows as header-keyed dicts and
lets the caller write status values back into individual cells.

Two copies of the workbook are loaded: one with cached values
(``data_only=True``) for reading, and one with formulas intact which is the
copy that gets written to and saved, so saving never flattens formulas.
"""

import logging
import os
from typing import Any, Iterator, List, Optional

from openpyxl import load_workbook
from openpyxl.utils import get_column_letter

from .errors import SpreadsheetError
from .model import IDENTITY_COLUMN, SheetRow

logger = logging.getLogger(__name__)

HEADER_ROW = 1


class Spreadsheet:
    """An open worksheet with its header row resolved."""

    def __init__(self, path: str, sheet_name: str, workbook, values_workbook):
        self.path = path
        self.sheet_name = sheet_name
        self._wb = workbook
        self._wb_values = values_workbook
        self._ws = workbook[sheet_name]
        self._ws_values = values_workbook[sheet_name]
        self._dirty = False
        self._closed = False
        self.headers = self._read_headers()

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, path: str, sheet_name: str) -> "Spreadsheet":
        """Open *sheet_name* in the workbook at *path*.

        Raises:
            SpreadsheetError: missing file, missing sheet, no data rows, or
                no identity column in the header row.
        """
        if not os.path.isfile(path):
            raise SpreadsheetError(f"Spreadsheet not found: {path}")

        keep_vba = path.lower().endswith(".xlsm")
        try:
            wb = load_workbook(path, keep_vba=keep_vba)
            wb_values = load_workbook(path, data_only=True)
        except Exception as e:
            raise SpreadsheetError(f"Cannot open spreadsheet {path}: {e}") from e

        if sheet_name not in wb.sheetnames:
            available = ", ".join(wb.sheetnames)
            wb.close()
            wb_values.close()
            raise SpreadsheetError(
                f"Worksheet '{sheet_name}' not found in {path} (available: {available})"
            )

        sheet = cls(path, sheet_name, wb, wb_values)
        try:
            sheet._check_structure()
        except SpreadsheetError:
            sheet.close()
            raise
        return sheet

    def _read_headers(self) -> List[Optional[str]]:
        headers = []
        for col in range(1, self._ws_values.max_column + 1):
            value = self._ws_values.cell(row=HEADER_ROW, column=col).value
            headers.append(str(value).strip() if value is not None else None)
        return headers

    def _check_structure(self):
        if self._ws_values.max_row <= HEADER_ROW:
            raise SpreadsheetError(
                f"Worksheet '{self.sheet_name}' in {self.path} has no data rows"
            )
        if IDENTITY_COLUMN not in self.headers:
            raise SpreadsheetError(
                f"Worksheet '{self.sheet_name}' has no '{IDENTITY_COLUMN}' column"
            )

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def rows(self) -> Iterator[SheetRow]:
        """Yield every non-blank data row, in sheet order."""
        for r, cells in enumerate(
                self._ws_values.iter_rows(min_row=HEADER_ROW + 1, values_only=True),
                start=HEADER_ROW + 1):
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in cells):
                continue
            values = {}
            for header, value in zip(self.headers, cells):
                # First occurrence wins for duplicated header names
                if header is not None and header not in values:
                    values[header] = value
            yield SheetRow(number=r, values=values)

    def column_index(self, name: str) -> Optional[int]:
        """1-based index of the column whose header is exactly *name*."""
        for idx, header in enumerate(self.headers, 1):
            if header == name:
                return idx
        return None

    def status_column(self, name: str) -> Optional[int]:
        return self.column_index(name)

    def read_cell(self, row: int, col: int) -> Any:
        return self._ws.cell(row=row, column=col).value

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write_cell(self, row: int, col: int, value: Any):
        self._ws.cell(row=row, column=col, value=value)
        self._dirty = True
        logger.debug(f"Set {self.sheet_name}!{get_column_letter(col)}{row} = {value!r}")

    @property
    def dirty(self) -> bool:
        return self._dirty

    def save(self) -> bool:
        """Persist pending cell writes.  Returns True if the file was written."""
        if not self._dirty:
            return False
        try:
            self._wb.save(self.path)
        except OSError as e:
            raise SpreadsheetError(f"Cannot save {self.path}: {e}") from e
        self._dirty = False
        logger.info(f"Saved status updates to {self.path}")
        return True

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._wb.close()
        self._wb_values.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
